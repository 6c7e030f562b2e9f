"""
Per-refresh detection loop: pulls synthetic observations, draws them on the
overlay and derives speed violations.
"""

import numpy as np
import logging
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..core.camera_session import CameraSession
from ..core.overlay import OverlaySurface
from ..core.scheduler import FrameScheduler, TaskHandle
from ..core.state import SessionState, Settings
from ..models.mock_detector import Detection, MockModelLoader
from ..violations.violation_log import ViolationLog


BOX_WIDTH = 200
BOX_HEIGHT = 150
MAX_TICK_TIMES = 100


def instantaneous_fps(previous: Optional[float], now: float) -> Optional[int]:
    """
    Frame rate from the time between two ticks.

    Returns None on the first tick or when the clock did not advance.
    """
    if previous is None:
        return None
    delta = now - previous
    if delta <= 0:
        return None
    return int(round(1.0 / delta))


def format_label(detection: Detection) -> str:
    return f"{detection.vehicle_type} - {detection.speed} km/h"


class DetectionLoop:
    """
    Runs once per display refresh while detection is on.

    The loop is a repeating scheduler task: ``start()`` registers it and
    ``stop()`` cancels the handle, so no tick runs after cancellation.
    """

    def __init__(self,
                 state: SessionState,
                 settings: Settings,
                 scheduler: FrameScheduler,
                 preview: Optional[CameraSession],
                 overlay: Optional[OverlaySurface],
                 model_loader: MockModelLoader,
                 violations: ViolationLog,
                 box_size: tuple = (BOX_WIDTH, BOX_HEIGHT),
                 seed: Optional[int] = None,
                 now: Callable[[], datetime] = datetime.now):
        self.state = state
        self.settings = settings
        self.scheduler = scheduler
        self.preview = preview
        self.overlay = overlay
        self.model_loader = model_loader
        self.violations = violations
        self.box_size = box_size
        self.rng = np.random.default_rng(seed)
        self.now = now
        self.logger = logging.getLogger(__name__)

        self.current_detections: List[Detection] = []
        self.last_frame_time: Optional[float] = None
        self.tick_count = 0
        self.error_count = 0
        self.tick_times: List[float] = []
        self._task: Optional[TaskHandle] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.active

    def start(self) -> bool:
        """
        Register the loop with the scheduler.

        Returns:
            True if the loop is running after the call
        """
        if self.running:
            return True
        if not self.state.detecting:
            self.logger.warning("Detection loop not started: detection is off")
            return False

        self.last_frame_time = None
        self._task = self.scheduler.every_frame(self.tick)
        self.logger.info("Detection loop started")
        return True

    def stop(self):
        """Cancel the pending tick and clear the per-frame output"""
        was_running = self.running
        self._cancel_task()
        self.current_detections = []
        self.last_frame_time = None
        if self.overlay is not None:
            self.overlay.clear()
        if was_running:
            self.logger.info(f"Detection loop stopped after {self.tick_count} ticks")

    def is_ready(self) -> bool:
        return (
            self.preview is not None
            and self.preview.is_bound
            and self.overlay is not None
            and self.model_loader.model is not None
            and self.state.detecting
        )

    def tick(self, now: float):
        """
        One loop iteration, bound to one display refresh.

        Args:
            now: Refresh timestamp in seconds
        """
        if not self.is_ready():
            self._cancel_task()
            return

        tick_start = time.perf_counter()
        self.tick_count += 1

        try:
            fps = instantaneous_fps(self.last_frame_time, now)
            if fps is not None:
                self.state.fps = fps
            self.last_frame_time = now

            frame_width, frame_height = self.preview.frame_size
            self.overlay.resize(frame_width, frame_height)

            detections = self.model_loader.model.observe(self.now(), self.preview.frame)

            self.overlay.clear()
            for detection in detections:
                self._draw_detection(detection)
                self.violations.record(detection, self.settings.speed_limit)

            self.current_detections = detections

        except Exception as e:
            # A partially drawn overlay is left as is
            self.error_count += 1
            self.logger.error(f"Detection error: {e}")

        self.tick_times.append(time.perf_counter() - tick_start)

        # Keep only recent times for rolling statistics
        if len(self.tick_times) > MAX_TICK_TIMES:
            self.tick_times = self.tick_times[-MAX_TICK_TIMES:]

    def get_performance_stats(self) -> Dict[str, float]:
        """Get tick timing statistics"""
        if not self.tick_times:
            return {}

        times = np.array(self.tick_times)

        return {
            'mean_tick_time': float(np.mean(times)),
            'median_tick_time': float(np.median(times)),
            'max_tick_time': float(np.max(times)),
            'total_ticks': self.tick_count,
            'failed_ticks': self.error_count
        }

    def reset_stats(self):
        self.tick_times = []
        self.tick_count = 0
        self.error_count = 0

    def _draw_detection(self, detection: Detection):
        box_width, box_height = self.box_size
        x = self.rng.random() * max(self.overlay.width - box_width, 0)
        y = self.rng.random() * max(self.overlay.height - box_height, 0)

        self.overlay.stroke_rect(x, y, box_width, box_height)
        self.overlay.fill_text(format_label(detection), x, y - 5)

    def _cancel_task(self):
        if self._task is not None:
            self.scheduler.cancel(self._task)
            self._task = None
