"""
Synthetic vehicle detector used in place of a real model.
Provides the observation source capability and a simulated model loader.
"""

import numpy as np
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..core.scheduler import FrameScheduler, TaskHandle
from ..core.state import SessionState


@dataclass
class Detection:
    """
    Data class for one per-frame vehicle observation
    """
    detection_id: str
    timestamp: datetime
    speed: int  # km/h
    confidence: float
    vehicle_type: str


class ObservationSource(ABC):
    """
    Capability that turns the current frame into vehicle observations.
    A real detector can replace the random source without touching the
    detection loop.
    """

    @abstractmethod
    def observe(self, timestamp: datetime, frame: Optional[np.ndarray] = None) -> List[Detection]:
        """Produce the detections for one tick"""
        pass


class RandomObservationSource(ObservationSource):
    """
    Emits exactly one random vehicle per tick.
    """

    VEHICLE_TYPES = ('car', 'truck', 'bus')

    def __init__(self,
                 speed_range: Tuple[int, int] = (20, 100),
                 confidence_range: Tuple[float, float] = (0.7, 1.0),
                 vehicle_types: Sequence[str] = VEHICLE_TYPES,
                 seed: Optional[int] = None):
        """
        Args:
            speed_range: Half-open integer range [low, high) in km/h
            confidence_range: Half-open range [low, high)
            vehicle_types: Types chosen uniformly
            seed: Seed for reproducible runs
        """
        if speed_range[1] <= speed_range[0]:
            raise ValueError(f"Invalid speed range: {speed_range}")
        if not 0.0 <= confidence_range[0] < confidence_range[1] <= 1.0:
            raise ValueError(f"Invalid confidence range: {confidence_range}")
        if not vehicle_types:
            raise ValueError("At least one vehicle type is required")

        self.speed_range = (int(speed_range[0]), int(speed_range[1]))
        self.confidence_range = (float(confidence_range[0]), float(confidence_range[1]))
        self.vehicle_types = tuple(vehicle_types)
        self.rng = np.random.default_rng(seed)

    def observe(self, timestamp: datetime, frame: Optional[np.ndarray] = None) -> List[Detection]:
        low, high = self.confidence_range
        return [
            Detection(
                detection_id=f"car-{self.rng.random()}",
                timestamp=timestamp,
                speed=int(self.rng.integers(self.speed_range[0], self.speed_range[1])),
                confidence=float(low + self.rng.random() * (high - low)),
                vehicle_type=self.vehicle_types[int(self.rng.integers(len(self.vehicle_types)))]
            )
        ]


class MockModelLoader:
    """
    Simulates asynchronous model initialization.

    ``initialize()`` flags loading immediately and completes after a fixed
    delay on the scheduler. Disposing before completion turns the pending
    completion into a no-op.
    """

    def __init__(self,
                 state: SessionState,
                 scheduler: FrameScheduler,
                 source: Optional[ObservationSource] = None,
                 load_delay: float = 2.0):
        self.state = state
        self.scheduler = scheduler
        self.load_delay = load_delay
        self.logger = logging.getLogger(__name__)

        self._source = source or RandomObservationSource()
        self._pending: Optional[TaskHandle] = None
        self.disposed = False

    @property
    def model(self) -> Optional[ObservationSource]:
        """The observation source, available only once loading finished"""
        return self._source if self.state.model_loaded else None

    def initialize(self):
        if self.disposed:
            raise RuntimeError("Model loader has been disposed")
        if self.state.model_loaded or self._pending is not None:
            return

        self.state.loading = True
        self.logger.info(f"Loading detection model (simulated, {self.load_delay:.1f}s)")
        self._pending = self.scheduler.call_later(self.load_delay, self._complete)

    def dispose(self):
        """Cancel a pending load; safe to call more than once"""
        self.disposed = True
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None

    def _complete(self):
        self._pending = None
        if self.disposed:
            return
        self.state.model_loaded = True
        self.state.loading = False
        self.logger.info("Detection model loaded")
