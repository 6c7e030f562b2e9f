"""
Camera session handling: acquires and releases the live capture device
that feeds the preview.
"""

import cv2
import numpy as np
import logging
from typing import Callable, Dict, Any, List, Optional, Tuple

from .state import SessionState


CAMERA_ERROR_MESSAGE = "Unable to access camera. Please check permissions."


class CameraSession:
    """
    Owns the single active capture stream.

    Only one stream is held at a time; starting an already running session
    is a no-op. Stopping the camera always stops detection too.
    """

    def __init__(self,
                 state: SessionState,
                 camera_index: int = 0,
                 rear_index: Optional[int] = None,
                 resolution: Tuple[int, int] = (1280, 720),
                 notifier: Optional[Callable[[str], None]] = None,
                 source_id: str = "camera"):
        """
        Args:
            state: Session state updated on start/stop
            camera_index: Default capture device index
            rear_index: Environment-facing device, tried first when set
            resolution: Preferred (width, height)
            notifier: Receives user-visible error messages
            source_id: Name used in log records
        """
        self.state = state
        self.camera_index = camera_index
        self.rear_index = rear_index
        self.resolution = resolution
        self.notifier = notifier
        self.source_id = source_id
        self.logger = logging.getLogger(f"CameraSession.{source_id}")

        self.cap: Optional[cv2.VideoCapture] = None
        self.active_index: Optional[int] = None
        self.frame: Optional[np.ndarray] = None
        self.frame_count = 0
        self.width = resolution[0]
        self.height = resolution[1]

    @property
    def is_bound(self) -> bool:
        """True while a stream is attached to the preview"""
        return self.cap is not None and self.state.camera_on

    @property
    def frame_size(self) -> Tuple[int, int]:
        """Size of the preview in pixels, from the latest frame when one exists"""
        if self.frame is not None:
            height, width = self.frame.shape[:2]
            return width, height
        return self.width, self.height

    def candidate_indices(self) -> List[int]:
        indices = []
        if self.rear_index is not None:
            indices.append(self.rear_index)
        if self.camera_index not in indices:
            indices.append(self.camera_index)
        return indices

    def start(self) -> bool:
        """
        Open the capture device and bind it to the preview.

        On failure the session state is left untouched and the user is
        notified. There is no automatic retry.

        Returns:
            True if a stream is active after the call
        """
        if self.cap is not None:
            self.logger.debug("Camera already active, ignoring start request")
            return True

        for index in self.candidate_indices():
            cap = self._open(index)
            if cap is None:
                continue

            self.cap = cap
            self.active_index = index
            self.frame = None
            self.frame_count = 0
            self.state.camera_on = True
            self.logger.info(
                f"Connected to camera {index}: ({self.width}x{self.height})"
            )
            return True

        self.logger.error(f"Error accessing camera (tried devices {self.candidate_indices()})")
        if self.notifier is not None:
            self.notifier(CAMERA_ERROR_MESSAGE)
        return False

    def stop(self):
        """Release the stream and switch both camera and detection off"""
        if self.cap is not None:
            self.cap.release()
            self.logger.info(f"Released camera {self.active_index}")

        self.cap = None
        self.active_index = None
        self.frame = None
        self.state.camera_on = False
        self.state.detecting = False

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Pull the next frame into the preview.

        A failed read keeps the previous frame on screen.
        """
        if self.cap is None or not self.cap.isOpened():
            return False, self.frame

        ret, frame = self.cap.read()
        if ret and frame is not None:
            self.frame = frame
            self.frame_count += 1
            return True, frame

        self.logger.warning(f"Failed to read frame from camera {self.active_index}")
        return False, self.frame

    def get_properties(self) -> Dict[str, Any]:
        """Get camera properties"""
        width, height = self.frame_size
        return {
            'source_id': self.source_id,
            'camera_index': self.active_index,
            'width': width,
            'height': height,
            'frame_count': self.frame_count,
            'is_bound': self.is_bound
        }

    def _open(self, index: int) -> Optional[cv2.VideoCapture]:
        try:
            cap = cv2.VideoCapture(index)

            if not cap.isOpened():
                self.logger.warning(f"Camera {index} could not be opened")
                cap.release()
                return None

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
            cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

            # The driver may not honour the requested size
            self.width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or self.resolution[0]
            self.height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self.resolution[1]
            return cap

        except Exception as e:
            self.logger.error(f"Failed to connect to camera {index}: {e}")
            return None
