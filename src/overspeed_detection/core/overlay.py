"""
Transparent drawing surface laid over the camera preview.
"""

import cv2
import numpy as np
from typing import Tuple


GREEN = (0, 255, 0)


class OverlaySurface:
    """
    BGRA canvas supporting the three primitives the detection overlay
    needs: clear, stroke rectangle and text.
    """

    def __init__(self, width: int = 1280, height: int = 720):
        self.width = 0
        self.height = 0
        self.canvas = np.zeros((0, 0, 4), dtype=np.uint8)
        self.resize(width, height)

    def resize(self, width: int, height: int):
        """Match the surface to the video frame size (clears it when the size changes)"""
        width, height = max(int(width), 0), max(int(height), 0)
        if (width, height) == (self.width, self.height):
            return
        self.width = width
        self.height = height
        self.canvas = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self):
        self.canvas[:] = 0

    def stroke_rect(self, x: float, y: float, width: float, height: float,
                    color: Tuple[int, int, int] = GREEN, line_width: int = 2):
        pt1 = (int(round(x)), int(round(y)))
        pt2 = (int(round(x + width)), int(round(y + height)))
        cv2.rectangle(self.canvas, pt1, pt2, (*color, 255), line_width)

    def fill_text(self, text: str, x: float, y: float,
                  color: Tuple[int, int, int] = GREEN, scale: float = 0.6, thickness: int = 2):
        """Draw text with its baseline at (x, y)"""
        cv2.putText(self.canvas, text, (int(round(x)), int(round(y))),
                    cv2.FONT_HERSHEY_SIMPLEX, scale, (*color, 255), thickness, cv2.LINE_AA)

    def is_blank(self) -> bool:
        return not self.canvas[..., 3].any()

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """
        Alpha-blend the overlay onto a BGR frame.

        The overlay is stretched to the frame size when they differ.

        Args:
            frame: BGR image

        Returns:
            New BGR image with the overlay applied
        """
        out = frame.copy()
        if self.width == 0 or self.height == 0:
            return out

        overlay = self.canvas
        if overlay.shape[:2] != frame.shape[:2]:
            overlay = cv2.resize(overlay, (frame.shape[1], frame.shape[0]),
                                 interpolation=cv2.INTER_NEAREST)

        alpha = overlay[..., 3:4].astype(np.float32) / 255.0
        blended = overlay[..., :3].astype(np.float32) * alpha + out.astype(np.float32) * (1.0 - alpha)
        return blended.astype(np.uint8)
