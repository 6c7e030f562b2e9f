"""
Unit tests for the command line entry point.
"""

import pytest
from unittest.mock import patch

from overspeed_detection.app import build_overrides, main, parse_args


class TestArguments:
    """Test argument parsing"""

    def test_no_overrides(self):
        """Without flags there is nothing to override"""
        assert build_overrides(parse_args([])) == {}

    def test_overrides(self):
        """Flags map onto their config sections"""
        args = parse_args([
            '--camera-index', '2', '--rear-camera-index', '1',
            '--speed-limit', '70', '--seed', '9', '--log-level', 'DEBUG'
        ])
        overrides = build_overrides(args)

        assert overrides == {
            'camera': {'index': 2, 'rear_index': 1},
            'detection': {'speed_limit': 70, 'seed': 9},
            'logging': {'level': 'DEBUG'}
        }


class TestMain:
    """Test the main function"""

    def test_missing_config_returns_error(self, capsys):
        """A missing config file exits with status 1"""
        assert main(['--config', 'missing.json']) == 1
        assert "Configuration file not found" in capsys.readouterr().out

    def test_invalid_speed_limit_returns_error(self, capsys):
        """An invalid limit on the command line exits with status 1"""
        assert main(['--speed-limit', '33']) == 1
        assert "Speed limit" in capsys.readouterr().out

    def test_wrongly_typed_config_returns_error(self, tmp_path, capsys):
        """A null or wrongly typed config value exits with status 1"""
        path = tmp_path / 'config.json'
        path.write_text('{"model": {"load_delay": null}}')

        assert main(['--config', str(path)]) == 1
        assert "Invalid configuration value" in capsys.readouterr().out

    def test_runs_window_with_overrides(self):
        """The window is built, attached and run with the merged config"""
        with patch('overspeed_detection.app.setup_logging'), \
             patch('overspeed_detection.app.DashboardWindow.run') as run:
            assert main(['--speed-limit', '60', '--seed', '4']) == 0

        run.assert_called_once()

    def test_keyboard_interrupt_is_clean(self):
        """Ctrl+C ends the demo with status 0"""
        with patch('overspeed_detection.app.setup_logging'), \
             patch('overspeed_detection.app.DashboardWindow.run', side_effect=KeyboardInterrupt):
            assert main([]) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
