"""
Configuration loading for the overspeed detection demo.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core.state import validate_speed_limit


DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_CONFIG: Dict[str, Any] = {
    'camera': {
        'index': 0,
        'rear_index': None,
        'resolution': [1280, 720]
    },
    'model': {
        'load_delay': 2.0
    },
    'detection': {
        'speed_limit': 50,
        'speed_range': [20, 100],
        'confidence_range': [0.7, 1.0],
        'vehicle_types': ['car', 'truck', 'bus'],
        'box_size': [200, 150],
        'max_violations': 10,
        'location': 'Camera View',
        'seed': None
    },
    'display': {
        'window_name': 'Real-Time Car Overspeeding Detection',
        'camera_location': 'Main Road',
        'preview_width': 960,
        'panel_width': 420
    },
    'logging': {
        'level': 'INFO',
        'format': DEFAULT_LOG_FORMAT
    }
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config: Optional[Union[str, Path, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Load configuration and merge it over the defaults.

    Args:
        config: JSON/YAML file path, a dict of overrides, or None for defaults

    Returns:
        Validated configuration dictionary
    """
    if config is None:
        data: Dict[str, Any] = {}
    elif isinstance(config, dict):
        data = config
    else:
        data = _read_config_file(Path(config))

    merged = _merge(DEFAULT_CONFIG, data)
    try:
        validate_config(merged)
    except TypeError as e:
        # null or wrongly typed values, e.g. load_delay: null or resolution: 1280
        raise ValueError(f"Invalid configuration value: {e}") from e
    return merged


def _read_config_file(config_file: Path) -> Dict[str, Any]:
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with open(config_file, 'r') as f:
        if config_file.suffix.lower() == '.json':
            data = json.load(f)
        elif config_file.suffix.lower() in ['.yml', '.yaml']:
            data = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported config format: {config_file.suffix}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_file}")
    return data


def validate_config(config: Dict[str, Any]):
    """Raise ValueError on values the demo cannot run with"""
    for section in DEFAULT_CONFIG:
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Missing required config section: {section}")

    camera = config['camera']
    if len(camera['resolution']) != 2 or min(camera['resolution']) <= 0:
        raise ValueError(f"Invalid camera resolution: {camera['resolution']}")

    if float(config['model']['load_delay']) < 0:
        raise ValueError("Model load delay must be non-negative")

    detection = config['detection']
    validate_speed_limit(detection['speed_limit'])

    low, high = detection['speed_range']
    if high <= low:
        raise ValueError(f"Invalid speed range: {detection['speed_range']}")

    low, high = detection['confidence_range']
    if not 0.0 <= low < high <= 1.0:
        raise ValueError(f"Invalid confidence range: {detection['confidence_range']}")

    if not detection['vehicle_types']:
        raise ValueError("At least one vehicle type is required")

    if len(detection['box_size']) != 2 or min(detection['box_size']) <= 0:
        raise ValueError(f"Invalid box size: {detection['box_size']}")

    if int(detection['max_violations']) <= 0:
        raise ValueError("max_violations must be positive")

    level = str(config['logging']['level']).upper()
    if not isinstance(getattr(logging, level, None), int):
        raise ValueError(f"Unknown log level: {config['logging']['level']}")


def setup_logging(config: Dict[str, Any]):
    """Setup logging configuration"""
    log_config = config.get('logging', {})

    level = getattr(logging, log_config.get('level', 'INFO').upper())
    format_str = log_config.get('format', DEFAULT_LOG_FORMAT)

    logging.basicConfig(level=level, format=format_str)
