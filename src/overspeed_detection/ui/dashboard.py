"""
OpenCV dashboard window: live feed with the detection overlay, controls,
settings, detection and violation lists and statistics.
"""

import cv2
import numpy as np
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.overlay import OverlaySurface
from ..core.state import (
    SPEED_LIMIT_MAX, SPEED_LIMIT_MIN, SPEED_LIMIT_STEP,
    limit_to_slider_position, slider_position_to_limit, slider_positions
)
from ..inference.controller import DashboardSnapshot, OverspeedController


# BGR colours
BACKGROUND = (42, 23, 15)
CARD = (55, 41, 31)
BORDER = (81, 65, 55)
WHITE = (255, 255, 255)
MUTED = (175, 163, 156)
BLUE = (235, 99, 37)
RED = (38, 38, 220)
GRAY = (99, 85, 75)
VIOLATION_BG = (30, 25, 70)

FONT = cv2.FONT_HERSHEY_SIMPLEX

BADGE_COLORS = {
    'default': BLUE,
    'secondary': GRAY,
    'destructive': RED,
}

TRACKBAR_NAME = 'Speed limit'


@dataclass
class DashboardLayout:
    """
    Pixel geometry of the dashboard
    """
    preview_width: int = 960
    panel_width: int = 420
    margin: int = 16
    header_height: int = 70
    controls_height: int = 190

    @property
    def preview_height(self) -> int:
        return self.preview_width * 9 // 16

    @property
    def width(self) -> int:
        return self.preview_width + self.panel_width + 3 * self.margin

    @property
    def height(self) -> int:
        return self.header_height + self.preview_height + self.controls_height + 2 * self.margin


def _text(img: np.ndarray, text: str, org: Tuple[int, int],
          color=WHITE, scale: float = 0.5, thickness: int = 1):
    cv2.putText(img, text, org, FONT, scale, color, thickness, cv2.LINE_AA)


def _badge(img: np.ndarray, text: str, right: int, baseline: int, variant: str = 'default') -> int:
    """
    Draw a pill badge whose right edge is at ``right``.

    Returns:
        Left edge of the badge, for chaining badges leftwards
    """
    (tw, th), _ = cv2.getTextSize(text, FONT, 0.45, 1)
    left = right - tw - 16
    top = baseline - th - 6
    if variant == 'outline':
        cv2.rectangle(img, (left, top), (right, baseline + 6), GRAY, 1)
        color = MUTED
    else:
        cv2.rectangle(img, (left, top), (right, baseline + 6), BADGE_COLORS[variant], -1)
        color = WHITE
    _text(img, text, (left + 8, baseline), color, 0.45)
    return left


def _card(img: np.ndarray, x: int, y: int, w: int, h: int, title: str) -> int:
    """Draw a card frame and return the y of its content area"""
    cv2.rectangle(img, (x, y), (x + w, y + h), CARD, -1)
    cv2.rectangle(img, (x, y), (x + w, y + h), BORDER, 1)
    _text(img, title, (x + 14, y + 28), WHITE, 0.65, 2)
    cv2.line(img, (x, y + 42), (x + w, y + 42), BORDER, 1)
    return y + 42


def _dim(img: np.ndarray, x: int, y: int, w: int, h: int, alpha: float = 0.8):
    region = img[y:y + h, x:x + w]
    shade = np.full_like(region, BACKGROUND)
    img[y:y + h, x:x + w] = cv2.addWeighted(shade, alpha, region, 1.0 - alpha, 0)


def _centered(img: np.ndarray, text: str, cx: int, cy: int, color=MUTED, scale: float = 0.7):
    (tw, th), _ = cv2.getTextSize(text, FONT, scale, 2)
    _text(img, text, (cx - tw // 2, cy + th // 2), color, scale, 2)


def camera_badge(snapshot: DashboardSnapshot) -> Tuple[str, str]:
    return ("Camera Active", 'default') if snapshot.camera_on else ("Camera Off", 'secondary')


def detection_badge(snapshot: DashboardSnapshot) -> Tuple[str, str]:
    return ("Detecting", 'destructive') if snapshot.detecting else ("Idle", 'secondary')


def model_badge(snapshot: DashboardSnapshot) -> Tuple[str, str]:
    return ("Loaded", 'default') if snapshot.model_loaded else ("Loading...", 'secondary')


def camera_button_label(snapshot: DashboardSnapshot) -> str:
    return "[c] Stop Camera" if snapshot.camera_on else "[c] Start Camera"


def detection_button_label(snapshot: DashboardSnapshot) -> str:
    return "[d] Pause Detection" if snapshot.detecting else "[d] Start Detection"


def render_dashboard(snapshot: DashboardSnapshot,
                     overlay: Optional[OverlaySurface] = None,
                     layout: Optional[DashboardLayout] = None) -> np.ndarray:
    """
    Render the full dashboard for one refresh.

    Args:
        snapshot: Current controller state
        overlay: Detection overlay to composite on the camera frame
        layout: Geometry, defaults to DashboardLayout()

    Returns:
        BGR image of size (layout.height, layout.width)
    """
    layout = layout or DashboardLayout()
    m = layout.margin
    img = np.full((layout.height, layout.width, 3), BACKGROUND, dtype=np.uint8)

    _text(img, "Real-Time Car Overspeeding Detection", (m, 38), WHITE, 0.95, 2)
    _text(img, "AI-powered video analysis system for traffic monitoring", (m, 60), MUTED, 0.5)

    _draw_feed(img, snapshot, overlay, layout)
    _draw_controls(img, snapshot, layout)

    px = layout.preview_width + 2 * m
    pw = layout.panel_width
    top = layout.header_height
    available = layout.height - top - m
    detections_h = int(available * 0.22)
    violations_h = int(available * 0.48)
    stats_h = available - detections_h - violations_h - 2 * m

    _draw_detections(img, snapshot, px, top, pw, detections_h)
    _draw_violations(img, snapshot, px, top + detections_h + m, pw, violations_h)
    _draw_statistics(img, snapshot, px, top + detections_h + violations_h + 2 * m, pw, stats_h)

    return img


def _draw_feed(img: np.ndarray, snapshot: DashboardSnapshot,
               overlay: Optional[OverlaySurface], layout: DashboardLayout):
    m = layout.margin
    x, y = m, layout.header_height
    w, h = layout.preview_width, layout.preview_height

    if snapshot.frame is not None:
        frame = snapshot.frame
        if overlay is not None:
            frame = overlay.composite(frame)
        img[y:y + h, x:x + w] = cv2.resize(frame, (w, h))
    else:
        img[y:y + h, x:x + w] = 0

    label, variant = detection_badge(snapshot)
    left = _badge(img, label, x + w - 10, y + 24, variant)
    label, variant = camera_badge(snapshot)
    _badge(img, label, left - 8, y + 24, variant)

    if not snapshot.camera_on:
        _dim(img, x, y, w, h)
        _centered(img, "Camera is turned off", x + w // 2, y + h // 2)

    if snapshot.loading:
        _dim(img, x, y, w, h)
        _centered(img, "Loading AI Model...", x + w // 2, y + h // 2, BLUE)


def _draw_controls(img: np.ndarray, snapshot: DashboardSnapshot, layout: DashboardLayout):
    m = layout.margin
    x = m
    y = layout.header_height + layout.preview_height + m
    w = layout.preview_width
    half = (w - m) // 2

    cam_color = RED if snapshot.camera_on else BLUE
    cv2.rectangle(img, (x, y), (x + half, y + 40), cam_color, -1)
    _centered(img, camera_button_label(snapshot), x + half // 2, y + 20, WHITE, 0.6)

    det_x = x + half + m
    if snapshot.can_toggle_detection:
        det_color = RED if snapshot.detecting else BLUE
        text_color = WHITE
    else:
        det_color = GRAY
        text_color = MUTED
    cv2.rectangle(img, (det_x, y), (det_x + half, y + 40), det_color, -1)
    _centered(img, detection_button_label(snapshot), det_x + half // 2, y + 20, text_color, 0.6)

    sy = y + 56
    cv2.rectangle(img, (x, sy), (x + w, sy + layout.controls_height - 56), CARD, -1)
    cv2.rectangle(img, (x, sy), (x + w, sy + layout.controls_height - 56), BORDER, 1)
    _text(img, "Detection Settings", (x + 14, sy + 26), WHITE, 0.65, 2)

    _text(img, f"Speed Limit: {snapshot.speed_limit} km/h", (x + 14, sy + 58), WHITE, 0.55)
    _draw_slider(img, snapshot.speed_limit, x + 260, sy + 52, w - 290)

    _text(img, "Model Status", (x + 14, sy + 94), WHITE, 0.55)
    label, variant = model_badge(snapshot)
    _badge(img, label, x + w - 14, sy + 94, variant)

    _text(img, "Current FPS", (x + 14, sy + 124), WHITE, 0.55)
    _badge(img, str(snapshot.fps), x + w - 14, sy + 124, 'outline')


def _draw_slider(img: np.ndarray, limit: int, x: int, y: int, width: int):
    cv2.line(img, (x, y), (x + width, y), GRAY, 4)
    fraction = (limit - SPEED_LIMIT_MIN) / (SPEED_LIMIT_MAX - SPEED_LIMIT_MIN)
    knob = x + int(round(fraction * width))
    cv2.line(img, (x, y), (knob, y), BLUE, 4)
    cv2.circle(img, (knob, y), 8, WHITE, -1)


def _draw_detections(img: np.ndarray, snapshot: DashboardSnapshot, x: int, y: int, w: int, h: int):
    content = _card(img, x, y, w, h, f"Current Detections ({len(snapshot.detections)})")

    if not snapshot.detections:
        _centered(img, "No vehicles detected", x + w // 2, content + (h - 42) // 2, MUTED, 0.5)
        return

    row_y = content + 12
    for detection in snapshot.detections:
        if row_y + 50 > y + h:
            break
        cv2.rectangle(img, (x + 10, row_y), (x + w - 10, row_y + 48), BORDER, -1)
        _text(img, detection.vehicle_type.capitalize(), (x + 20, row_y + 20), WHITE, 0.55)
        variant = 'destructive' if detection.speed > snapshot.speed_limit else 'secondary'
        _badge(img, f"{detection.speed} km/h", x + w - 20, row_y + 20, variant)
        _text(img, f"Confidence: {round(detection.confidence * 100)}%", (x + 20, row_y + 40), MUTED, 0.42)
        row_y += 56


def _draw_violations(img: np.ndarray, snapshot: DashboardSnapshot, x: int, y: int, w: int, h: int):
    content = _card(img, x, y, w, h, f"Speed Violations ({len(snapshot.violations)})")

    if not snapshot.violations:
        _centered(img, "No violations detected", x + w // 2, content + (h - 42) // 2, MUTED, 0.5)
        return

    row_y = content + 8
    for violation in snapshot.violations:
        if row_y + 28 > y + h:
            break
        cv2.rectangle(img, (x + 10, row_y), (x + w - 10, row_y + 26), VIOLATION_BG, -1)
        cv2.rectangle(img, (x + 10, row_y), (x + w - 10, row_y + 26), RED, 1)
        _text(img, violation.vehicle_type.capitalize(), (x + 18, row_y + 18), WHITE, 0.45)
        _text(img, f"Limit: {violation.speed_limit} km/h", (x + 90, row_y + 18), MUTED, 0.42)
        _text(img, violation.timestamp.strftime('%H:%M:%S'), (x + 215, row_y + 18), MUTED, 0.42)
        _badge(img, f"{violation.speed} km/h", x + w - 16, row_y + 17, 'destructive')
        row_y += 30


def _draw_statistics(img: np.ndarray, snapshot: DashboardSnapshot, x: int, y: int, w: int, h: int):
    content = _card(img, x, y, w, h, "Statistics")

    rows = [
        ("Total Violations", str(snapshot.total_violations)),
        ("Active Vehicles", str(snapshot.active_vehicles)),
        ("Detection Rate", f"{snapshot.fps} FPS"),
    ]
    row_y = content + 26
    for label, value in rows:
        _text(img, label, (x + 14, row_y), MUTED, 0.5)
        (tw, _), _ = cv2.getTextSize(value, FONT, 0.55, 2)
        _text(img, value, (x + w - 14 - tw, row_y), WHITE, 0.55, 2)
        row_y += 26

    cv2.line(img, (x, row_y - 8), (x + w, row_y - 8), BORDER, 1)
    _centered(img, f"Camera Location: {snapshot.camera_location}", x + w // 2, row_y + 12, MUTED, 0.45)


def draw_alert(image: np.ndarray, message: str) -> np.ndarray:
    """Dialog box with the message, drawn over a copy of the current dashboard"""
    out = image.copy()
    h, w = out.shape[:2]
    _dim(out, 0, 0, w, h, 0.6)

    (tw, _), _ = cv2.getTextSize(message, FONT, 0.6, 1)
    box_w = max(tw + 60, 360)
    x0, y0 = (w - box_w) // 2, h // 2 - 60
    cv2.rectangle(out, (x0, y0), (x0 + box_w, y0 + 120), CARD, -1)
    cv2.rectangle(out, (x0, y0), (x0 + box_w, y0 + 120), BORDER, 1)
    _text(out, message, (x0 + 30, y0 + 50), WHITE, 0.6)
    _text(out, "Press any key to continue", (x0 + 30, y0 + 92), MUTED, 0.45)
    return out


class DashboardWindow:
    """
    Event loop of the demo: one iteration per display refresh.

    Keys: ``c`` camera, ``d``/space detection, ``+``/``-`` speed limit,
    ``q``/Esc quit. The speed limit also has a trackbar.
    """

    QUIT_KEYS = (ord('q'), 27)

    def __init__(self, window_name: str = 'Real-Time Car Overspeeding Detection',
                 layout: Optional[DashboardLayout] = None):
        self.window_name = window_name
        self.layout = layout or DashboardLayout()
        self.controller: Optional[OverspeedController] = None
        self.logger = logging.getLogger(__name__)
        self.window_open = False
        self._last_image: Optional[np.ndarray] = None

    @classmethod
    def from_config(cls, config: Dict) -> 'DashboardWindow':
        display = config['display']
        layout = DashboardLayout(
            preview_width=display['preview_width'],
            panel_width=display['panel_width']
        )
        return cls(window_name=display['window_name'], layout=layout)

    def attach(self, controller: OverspeedController):
        self.controller = controller

    def show_alert(self, message: str):
        """
        Blocking notification: the dialog stays up until a key is pressed.
        """
        self.logger.warning(message)
        if not self.window_open:
            return
        base = self._last_image
        if base is None:
            base = np.full((self.layout.height, self.layout.width, 3), BACKGROUND, dtype=np.uint8)
        cv2.imshow(self.window_name, draw_alert(base, message))
        cv2.waitKey(0)

    def handle_key(self, key: int) -> bool:
        """
        Apply a key press.

        Returns:
            False when the user asked to quit
        """
        if key in self.QUIT_KEYS:
            return False
        if key == ord('c'):
            self.controller.toggle_camera()
        elif key in (ord('d'), ord(' ')):
            self.controller.toggle_detection()
        elif key in (ord('+'), ord('=')):
            self._step_speed_limit(SPEED_LIMIT_STEP)
        elif key in (ord('-'), ord('_')):
            self._step_speed_limit(-SPEED_LIMIT_STEP)
        return True

    def render(self) -> np.ndarray:
        image = render_dashboard(self.controller.snapshot(), self.controller.loop.overlay, self.layout)
        self._last_image = image
        return image

    def run(self):
        """Mount the controller and pump refreshes until the user quits"""
        if self.controller is None:
            raise RuntimeError("No controller attached")

        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        self.window_open = True
        cv2.createTrackbar(TRACKBAR_NAME, self.window_name,
                           limit_to_slider_position(self.controller.settings.speed_limit),
                           slider_positions() - 1, self._on_trackbar)

        self.controller.mount()
        self.logger.info("Dashboard running, press 'q' to quit")

        try:
            while True:
                self.controller.refresh()
                cv2.imshow(self.window_name, self.render())

                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
                if cv2.getWindowProperty(self.window_name, cv2.WND_PROP_VISIBLE) < 1:
                    break
        finally:
            self.controller.unmount()
            self.window_open = False
            cv2.destroyAllWindows()

    def _on_trackbar(self, position: int):
        self.controller.set_speed_limit(slider_position_to_limit(position))

    def _step_speed_limit(self, delta: int):
        limit = self.controller.settings.speed_limit + delta
        limit = max(SPEED_LIMIT_MIN, min(SPEED_LIMIT_MAX, limit))
        self.controller.set_speed_limit(limit)
        if self.window_open:
            cv2.setTrackbarPos(TRACKBAR_NAME, self.window_name, limit_to_slider_position(limit))
