"""
Unit tests for dashboard rendering and key handling.
"""

import pytest
import numpy as np
from datetime import datetime
from unittest.mock import Mock, patch

from overspeed_detection.core.overlay import OverlaySurface
from overspeed_detection.core.state import Settings
from overspeed_detection.inference.controller import DashboardSnapshot
from overspeed_detection.models.mock_detector import Detection
from overspeed_detection.ui.dashboard import (
    DashboardLayout, DashboardWindow, camera_badge, camera_button_label,
    detection_badge, detection_button_label, draw_alert, model_badge, render_dashboard
)
from overspeed_detection.violations.violation_log import Violation


def make_snapshot(**kwargs) -> DashboardSnapshot:
    values = dict(
        camera_on=False, detecting=False, model_loaded=False,
        loading=False, fps=0, speed_limit=50
    )
    values.update(kwargs)
    return DashboardSnapshot(**values)


def make_controller_mock(speed_limit: int = 50) -> Mock:
    controller = Mock()
    controller.settings = Settings(speed_limit=speed_limit)
    controller.set_speed_limit.side_effect = controller.settings.set_speed_limit
    return controller


class TestLabels:
    """Test badge and button texts"""

    def test_camera_badge(self):
        """Camera badge follows the camera state"""
        assert camera_badge(make_snapshot(camera_on=True)) == ("Camera Active", 'default')
        assert camera_badge(make_snapshot()) == ("Camera Off", 'secondary')

    def test_detection_badge(self):
        """Detection badge shows Detecting or Idle"""
        assert detection_badge(make_snapshot(detecting=True)) == ("Detecting", 'destructive')
        assert detection_badge(make_snapshot()) == ("Idle", 'secondary')

    def test_model_badge(self):
        """Model badge shows the load status"""
        assert model_badge(make_snapshot(model_loaded=True))[0] == "Loaded"
        assert model_badge(make_snapshot())[0] == "Loading..."

    def test_button_labels(self):
        """Button texts reflect the next action"""
        assert "Start Camera" in camera_button_label(make_snapshot())
        assert "Stop Camera" in camera_button_label(make_snapshot(camera_on=True))
        assert "Start Detection" in detection_button_label(make_snapshot())
        assert "Pause Detection" in detection_button_label(make_snapshot(detecting=True))


class TestRenderDashboard:
    """Test full dashboard rendering"""

    def test_idle_dashboard(self):
        """An idle session renders at the layout size"""
        layout = DashboardLayout()
        image = render_dashboard(make_snapshot(loading=True), layout=layout)

        assert image.shape == (layout.height, layout.width, 3)
        assert image.dtype == np.uint8

    def test_dashboard_with_frame_and_lists(self):
        """Frames, detections and violations render without errors"""
        now = datetime.now()
        frame = np.full((480, 640, 3), 128, dtype=np.uint8)
        overlay = OverlaySurface(640, 480)
        overlay.stroke_rect(10, 10, 200, 150)
        violations = [
            Violation(f'violation-{i}', now, 60 + i, 50, 'truck') for i in range(10)
        ]
        snapshot = make_snapshot(
            camera_on=True, detecting=True, model_loaded=True, fps=60,
            detections=[Detection('car-1', now, 75, 0.93, 'car')],
            violations=violations, frame=frame
        )

        layout = DashboardLayout(preview_width=640, panel_width=360)
        image = render_dashboard(snapshot, overlay, layout)

        assert image.shape == (layout.height, layout.width, 3)
        # The preview region holds the scaled camera frame
        preview = image[layout.header_height + 60:layout.header_height + 100, 300:340]
        assert preview.mean() > 50

    def test_camera_off_dims_preview(self):
        """Without a frame the preview area stays dark"""
        layout = DashboardLayout()
        image = render_dashboard(make_snapshot(), layout=layout)
        region = image[layout.header_height + 10:layout.header_height + 60,
                       layout.margin + 10:layout.margin + 60]
        assert region.mean() < 60

    def test_draw_alert_keeps_size(self):
        """Alert dialogs are drawn over a copy of the dashboard"""
        base = np.zeros((400, 600, 3), dtype=np.uint8)
        out = draw_alert(base, "Please start camera and wait for model to load")

        assert out.shape == base.shape
        assert out is not base
        assert not base.any()
        assert out.any()


class TestDashboardWindow:
    """Test key handling of the window loop"""

    def make_window(self, speed_limit: int = 50):
        window = DashboardWindow(layout=DashboardLayout(preview_width=320, panel_width=240))
        controller = make_controller_mock(speed_limit)
        window.attach(controller)
        return window, controller

    def test_quit_keys(self):
        """q and Esc end the loop"""
        window, _ = self.make_window()
        assert not window.handle_key(ord('q'))
        assert not window.handle_key(27)

    def test_camera_and_detection_keys(self):
        """c toggles the camera, d and space toggle detection"""
        window, controller = self.make_window()

        assert window.handle_key(ord('c'))
        assert window.handle_key(ord('d'))
        assert window.handle_key(ord(' '))

        controller.toggle_camera.assert_called_once()
        assert controller.toggle_detection.call_count == 2

    def test_speed_limit_keys(self):
        """+ and - step the limit by 5 and stop at the range ends"""
        window, controller = self.make_window(speed_limit=115)

        window.handle_key(ord('+'))
        assert controller.settings.speed_limit == 120
        window.handle_key(ord('+'))
        assert controller.settings.speed_limit == 120

        window.handle_key(ord('-'))
        assert controller.settings.speed_limit == 115

    def test_trackbar_maps_positions(self):
        """Trackbar positions map to 20..120 in steps of 5"""
        window, controller = self.make_window()

        window._on_trackbar(0)
        assert controller.settings.speed_limit == 20
        window._on_trackbar(20)
        assert controller.settings.speed_limit == 120
        window._on_trackbar(6)
        assert controller.settings.speed_limit == 50

    def test_alert_without_window_only_logs(self, caplog):
        """Before the window is open alerts are logged, not shown"""
        window, _ = self.make_window()

        with patch('cv2.imshow') as imshow, patch('cv2.waitKey') as wait_key:
            window.show_alert("Unable to access camera. Please check permissions.")

        imshow.assert_not_called()
        wait_key.assert_not_called()
        assert "Unable to access camera" in caplog.text

    def test_alert_blocks_for_key(self):
        """With an open window the alert waits for a key press"""
        window, _ = self.make_window()
        window.window_open = True

        with patch('cv2.imshow') as imshow, patch('cv2.waitKey') as wait_key:
            window.show_alert("Please start camera and wait for model to load")

        imshow.assert_called_once()
        wait_key.assert_called_once_with(0)

    def test_run_requires_controller(self):
        """Running without a controller is an error"""
        window = DashboardWindow()
        with pytest.raises(RuntimeError, match="No controller"):
            window.run()

    def test_from_config(self):
        """Window geometry comes from the display section"""
        config = {'display': {'window_name': 'Demo', 'preview_width': 640, 'panel_width': 300}}
        window = DashboardWindow.from_config(config)

        assert window.window_name == 'Demo'
        assert window.layout.preview_width == 640
        assert window.layout.preview_height == 360


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
