"""
Controller tying user intents from the view to the camera session, the
simulated model and the detection loop.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..core.camera_session import CameraSession
from ..core.overlay import OverlaySurface
from ..core.scheduler import FrameScheduler
from ..core.state import SessionState, Settings
from ..models.mock_detector import Detection, MockModelLoader, RandomObservationSource
from ..violations.violation_log import Violation, ViolationLog
from .detection_loop import DetectionLoop


NOT_READY_MESSAGE = "Please start camera and wait for model to load"


@dataclass
class DashboardSnapshot:
    """
    Read-only copy of everything the view displays
    """
    camera_on: bool
    detecting: bool
    model_loaded: bool
    loading: bool
    fps: int
    speed_limit: int
    detections: List[Detection] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    frame: Optional[np.ndarray] = None
    camera_location: str = "Main Road"

    @property
    def can_toggle_detection(self) -> bool:
        return self.camera_on and self.model_loaded

    @property
    def total_violations(self) -> int:
        return len(self.violations)

    @property
    def active_vehicles(self) -> int:
        return len(self.detections)


class OverspeedController:
    """
    Owns the session state and exposes the operations the view triggers.
    """

    def __init__(self,
                 scheduler: FrameScheduler,
                 camera: CameraSession,
                 model_loader: MockModelLoader,
                 loop: DetectionLoop,
                 violations: ViolationLog,
                 notifier: Optional[Callable[[str], None]] = None,
                 camera_location: str = "Main Road"):
        self.scheduler = scheduler
        self.camera = camera
        self.model_loader = model_loader
        self.loop = loop
        self.violations = violations
        self.state = loop.state
        self.settings = loop.settings
        self.notifier = notifier
        self.camera_location = camera_location
        self.logger = logging.getLogger(__name__)
        self.mounted = False

    def mount(self):
        """Start the simulated model load"""
        if self.mounted:
            return
        self.mounted = True
        self.model_loader.initialize()

    def unmount(self):
        """Release the camera, stop the loop and drop every pending callback"""
        self.stop_camera()
        self.loop.stop()
        self.model_loader.dispose()
        self.scheduler.close()
        self.mounted = False
        self.logger.info("Session torn down")

    def start_camera(self) -> bool:
        return self.camera.start()

    def stop_camera(self):
        self.camera.stop()
        self._sync_loop()

    def toggle_camera(self) -> bool:
        """
        Returns:
            Whether the camera is on after the call
        """
        if self.state.camera_on:
            self.stop_camera()
        else:
            self.start_camera()
        return self.state.camera_on

    def toggle_detection(self) -> bool:
        """
        Switch detection on or off.

        Turning it on requires a live camera and a loaded model; otherwise
        the user is told so and nothing changes.

        Returns:
            Whether detection is on after the call
        """
        if not self.state.ready_to_detect:
            self.logger.warning("Detection toggle rejected: camera off or model not loaded")
            self._notify(NOT_READY_MESSAGE)
            return self.state.detecting

        self.state.detecting = not self.state.detecting
        self._sync_loop()
        return self.state.detecting

    def set_speed_limit(self, value: int) -> int:
        """Takes effect from the next tick; recorded violations keep their limit"""
        limit = self.settings.set_speed_limit(value)
        self.logger.debug(f"Speed limit set to {limit} km/h")
        return limit

    def refresh(self, now: Optional[float] = None) -> int:
        """
        One display refresh: update the preview frame, then run due
        timers and frame tasks.
        """
        if self.state.camera_on:
            self.camera.read_frame()
        return self.scheduler.run_frame(now)

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            camera_on=self.state.camera_on,
            detecting=self.state.detecting,
            model_loaded=self.state.model_loaded,
            loading=self.state.loading,
            fps=self.state.fps,
            speed_limit=self.settings.speed_limit,
            detections=list(self.loop.current_detections),
            violations=self.violations.to_list(),
            frame=self.camera.frame if self.state.camera_on else None,
            camera_location=self.camera_location
        )

    def get_status(self) -> Dict[str, Any]:
        """Session summary used for logging on exit"""
        return {
            'state': self.state.to_dict(),
            'speed_limit': self.settings.speed_limit,
            'violations': len(self.violations),
            'violations_recorded': self.violations.total_recorded,
            'camera': self.camera.get_properties(),
            'loop': self.loop.get_performance_stats()
        }

    def _sync_loop(self):
        if self.state.detecting:
            self.loop.start()
        else:
            self.loop.stop()

    def _notify(self, message: str):
        if self.notifier is not None:
            self.notifier(message)


def build_controller(config: Dict[str, Any],
                     notifier: Optional[Callable[[str], None]] = None,
                     scheduler: Optional[FrameScheduler] = None) -> OverspeedController:
    """
    Assemble a controller and its components from a configuration dict.

    Args:
        config: Configuration as returned by ``load_config``
        notifier: Receives user-visible messages
        scheduler: Scheduler to use, a new one by default

    Returns:
        Controller ready to be mounted
    """
    camera_cfg = config['camera']
    model_cfg = config['model']
    detection_cfg = config['detection']
    display_cfg = config['display']

    scheduler = scheduler or FrameScheduler()
    state = SessionState()
    settings = Settings(speed_limit=detection_cfg['speed_limit'])

    camera = CameraSession(
        state,
        camera_index=camera_cfg['index'],
        rear_index=camera_cfg.get('rear_index'),
        resolution=tuple(camera_cfg['resolution']),
        notifier=notifier
    )

    seed = detection_cfg.get('seed')
    source = RandomObservationSource(
        speed_range=tuple(detection_cfg['speed_range']),
        confidence_range=tuple(detection_cfg['confidence_range']),
        vehicle_types=detection_cfg['vehicle_types'],
        seed=seed
    )
    model_loader = MockModelLoader(state, scheduler, source=source, load_delay=model_cfg['load_delay'])

    violations = ViolationLog(
        capacity=detection_cfg['max_violations'],
        location=detection_cfg['location']
    )

    width, height = camera.frame_size
    loop = DetectionLoop(
        state,
        settings,
        scheduler,
        preview=camera,
        overlay=OverlaySurface(width, height),
        model_loader=model_loader,
        violations=violations,
        box_size=tuple(detection_cfg['box_size']),
        seed=None if seed is None else seed + 1
    )

    return OverspeedController(
        scheduler,
        camera,
        model_loader,
        loop,
        violations,
        notifier=notifier,
        camera_location=display_cfg['camera_location']
    )
