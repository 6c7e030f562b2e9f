"""
Session state and user settings shared by the controller and its components.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


SPEED_LIMIT_MIN = 20
SPEED_LIMIT_MAX = 120
SPEED_LIMIT_STEP = 5
DEFAULT_SPEED_LIMIT = 50


@dataclass
class SessionState:
    """
    Lifecycle flags of one demo session
    """
    camera_on: bool = False
    detecting: bool = False
    model_loaded: bool = False
    loading: bool = False
    fps: int = 0

    @property
    def ready_to_detect(self) -> bool:
        """Detection may only be switched on with a live camera and a loaded model"""
        return self.camera_on and self.model_loaded

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_speed_limit(value: int) -> int:
    """
    Check a speed limit against the slider range.

    Args:
        value: Requested limit in km/h

    Returns:
        The limit as an int

    Raises:
        ValueError: If the value is outside [20, 120] or not a multiple of 5
    """
    if isinstance(value, bool) or int(value) != value:
        raise ValueError(f"Speed limit must be an integer, got {value!r}")
    value = int(value)
    if not SPEED_LIMIT_MIN <= value <= SPEED_LIMIT_MAX:
        raise ValueError(
            f"Speed limit must be between {SPEED_LIMIT_MIN} and {SPEED_LIMIT_MAX} km/h, got {value}"
        )
    if (value - SPEED_LIMIT_MIN) % SPEED_LIMIT_STEP != 0:
        raise ValueError(f"Speed limit must be a multiple of {SPEED_LIMIT_STEP} km/h, got {value}")
    return value


@dataclass
class Settings:
    """
    User-adjustable detection settings
    """
    speed_limit: int = DEFAULT_SPEED_LIMIT

    def __post_init__(self):
        self.speed_limit = validate_speed_limit(self.speed_limit)

    def set_speed_limit(self, value: int) -> int:
        self.speed_limit = validate_speed_limit(value)
        return self.speed_limit


def slider_position_to_limit(position: int) -> int:
    """Map a 0-based trackbar position to a speed limit"""
    position = max(0, min(int(position), slider_positions() - 1))
    return SPEED_LIMIT_MIN + position * SPEED_LIMIT_STEP


def limit_to_slider_position(limit: int) -> int:
    return (validate_speed_limit(limit) - SPEED_LIMIT_MIN) // SPEED_LIMIT_STEP


def slider_positions() -> int:
    return (SPEED_LIMIT_MAX - SPEED_LIMIT_MIN) // SPEED_LIMIT_STEP + 1
