"""
Overspeed violation records and the bounded most-recent-first list that
holds them.
"""

import itertools
import logging
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Deque, Dict, Iterator, List, Optional

from ..models.mock_detector import Detection


DEFAULT_LOCATION = "Camera View"


@dataclass(frozen=True)
class Violation:
    """
    A detection whose speed exceeded the limit in force when it was seen.
    ``speed_limit`` is a snapshot, later limit changes do not touch it.
    """
    violation_id: str
    timestamp: datetime
    speed: int
    speed_limit: int
    vehicle_type: str
    location: str = DEFAULT_LOCATION

    @property
    def excess(self) -> int:
        return self.speed - self.speed_limit

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data


def is_violation(speed: int, speed_limit: int) -> bool:
    """Strictly over the limit; driving exactly at the limit is allowed"""
    return speed > speed_limit


class ViolationLog:
    """
    Ring buffer of the most recent violations, newest first.
    """

    def __init__(self, capacity: int = 10, location: str = DEFAULT_LOCATION):
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.location = location
        self.logger = logging.getLogger(__name__)
        self._entries: Deque[Violation] = deque(maxlen=capacity)
        self._sequence = itertools.count(1)
        self.total_recorded = 0

    def record(self, detection: Detection, speed_limit: int) -> Optional[Violation]:
        """
        Record a violation for the detection if it is over the limit.

        Args:
            detection: Observation from the current tick
            speed_limit: Limit in force at this tick

        Returns:
            The new Violation, or None when the detection is within the limit
        """
        if not is_violation(detection.speed, speed_limit):
            return None

        timestamp = detection.timestamp
        violation = Violation(
            violation_id=f"violation-{int(timestamp.timestamp() * 1000)}-{next(self._sequence)}",
            timestamp=timestamp,
            speed=detection.speed,
            speed_limit=speed_limit,
            vehicle_type=detection.vehicle_type,
            location=self.location
        )
        # appendleft on a bounded deque evicts the oldest entry from the right
        self._entries.appendleft(violation)
        self.total_recorded += 1
        self.logger.info(
            f"Speed violation: {violation.vehicle_type} at {violation.speed} km/h "
            f"(limit {violation.speed_limit} km/h)"
        )
        return violation

    def clear(self):
        self._entries.clear()

    def latest(self) -> Optional[Violation]:
        return self._entries[0] if self._entries else None

    def to_list(self) -> List[Violation]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Violation]:
        return iter(list(self._entries))
