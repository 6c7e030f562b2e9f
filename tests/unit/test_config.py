"""
Unit tests for configuration loading.
"""

import json
import logging
import pytest
from pathlib import Path
from unittest.mock import patch

from overspeed_detection.config import DEFAULT_CONFIG, load_config, setup_logging


PROJECT_ROOT = Path(__file__).parent.parent.parent


class TestLoadConfig:
    """Test loading and merging configuration"""

    def test_defaults(self):
        """No argument yields the built-in defaults"""
        config = load_config()

        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG
        assert config['detection']['speed_limit'] == 50
        assert config['model']['load_delay'] == 2.0

    def test_dict_overrides_are_merged(self):
        """Nested overrides keep the untouched defaults of the section"""
        config = load_config({'detection': {'speed_limit': 70}})

        assert config['detection']['speed_limit'] == 70
        assert config['detection']['max_violations'] == 10
        assert config['camera']['resolution'] == [1280, 720]

    def test_defaults_not_mutated(self):
        """Merging never modifies the default dict"""
        config = load_config({'camera': {'index': 4}})
        config['detection']['vehicle_types'].append('motorcycle')

        assert DEFAULT_CONFIG['camera']['index'] == 0
        assert DEFAULT_CONFIG['detection']['vehicle_types'] == ['car', 'truck', 'bus']

    def test_json_file(self, tmp_path):
        """JSON files are read by suffix"""
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'display': {'camera_location': 'Ring Road'}}))

        config = load_config(path)
        assert config['display']['camera_location'] == 'Ring Road'

    def test_yaml_file(self, tmp_path):
        """YAML files are read by suffix"""
        path = tmp_path / 'config.yaml'
        path.write_text("detection:\n  speed_limit: 90\n  seed: 3\n")

        config = load_config(str(path))
        assert config['detection']['speed_limit'] == 90
        assert config['detection']['seed'] == 3

    def test_empty_yaml_file(self, tmp_path):
        """An empty YAML file means defaults"""
        path = tmp_path / 'empty.yml'
        path.write_text("")

        assert load_config(path) == DEFAULT_CONFIG

    def test_missing_file(self):
        """Missing files raise FileNotFoundError"""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_config('does/not/exist.json')

    def test_unsupported_format(self, tmp_path):
        """Unknown suffixes are rejected"""
        path = tmp_path / 'config.ini'
        path.write_text("[camera]\n")

        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_shipped_configs_load(self):
        """The configs shipped with the project are valid"""
        default = load_config(PROJECT_ROOT / 'configs' / 'default_config.json')
        highway = load_config(PROJECT_ROOT / 'configs' / 'highway_config.yaml')

        assert default == DEFAULT_CONFIG
        assert highway['camera']['rear_index'] == 1
        assert highway['detection']['speed_limit'] == 80


class TestValidation:
    """Test configuration validation"""

    @pytest.mark.parametrize("overrides,message", [
        ({'detection': {'speed_limit': 10}}, "between"),
        ({'detection': {'speed_limit': 53}}, "multiple"),
        ({'detection': {'speed_range': [80, 20]}}, "speed range"),
        ({'detection': {'confidence_range': [0.5, 1.2]}}, "confidence range"),
        ({'detection': {'vehicle_types': []}}, "vehicle type"),
        ({'detection': {'box_size': [0, 150]}}, "box size"),
        ({'detection': {'max_violations': 0}}, "max_violations"),
        ({'camera': {'resolution': [1280]}}, "resolution"),
        ({'model': {'load_delay': -1}}, "non-negative"),
        ({'logging': {'level': 'LOUD'}}, "log level"),
        ({'display': None}, "section"),
        ({'model': {'load_delay': None}}, "Invalid configuration value"),
        ({'camera': {'resolution': 1280}}, "Invalid configuration value"),
        ({'detection': {'max_violations': None}}, "Invalid configuration value"),
    ])
    def test_invalid_values(self, overrides, message):
        """Invalid values raise ValueError naming the problem"""
        with pytest.raises(ValueError, match=message):
            load_config(overrides)

    def test_null_value_in_file(self, tmp_path):
        """A null value in a config file is reported as ValueError"""
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'model': {'load_delay': None}}))

        with pytest.raises(ValueError, match="Invalid configuration value"):
            load_config(path)


class TestSetupLogging:
    """Test logging setup"""

    def test_setup_logging_uses_config(self):
        """basicConfig receives the configured level and format"""
        config = load_config({'logging': {'level': 'debug', 'format': '%(message)s'}})

        with patch('logging.basicConfig') as basic_config:
            setup_logging(config)

        basic_config.assert_called_once_with(level=logging.DEBUG, format='%(message)s')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
