"""
Command line entry point for the overspeed detection demo.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import load_config, setup_logging
from .inference.controller import build_controller
from .ui.dashboard import DashboardWindow


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Real-time car overspeeding detection demo (synthetic detections)'
    )
    parser.add_argument('--config', help='Path to JSON or YAML config file')
    parser.add_argument('--camera-index', type=int, help='Capture device index')
    parser.add_argument('--rear-camera-index', type=int, help='Environment-facing device, tried first')
    parser.add_argument('--speed-limit', type=int, help='Initial speed limit in km/h (20-120, step 5)')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible detections')
    parser.add_argument('--log-level', help='Logging level (DEBUG, INFO, ...)')
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    """Turn command line flags into a config override dict"""
    overrides: dict = {}
    if args.camera_index is not None:
        overrides.setdefault('camera', {})['index'] = args.camera_index
    if args.rear_camera_index is not None:
        overrides.setdefault('camera', {})['rear_index'] = args.rear_camera_index
    if args.speed_limit is not None:
        overrides.setdefault('detection', {})['speed_limit'] = args.speed_limit
    if args.seed is not None:
        overrides.setdefault('detection', {})['seed'] = args.seed
    if args.log_level is not None:
        overrides.setdefault('logging', {})['level'] = args.log_level
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """Command line interface for the demo"""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        overrides = build_overrides(args)
        if overrides:
            config = load_config(_sections(config, overrides))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    setup_logging(config)
    logger = logging.getLogger(__name__)

    window = DashboardWindow.from_config(config)
    controller = build_controller(config, notifier=window.show_alert)
    window.attach(controller)

    try:
        window.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    logger.info(f"Session summary: {controller.get_status()}")
    return 0


def _sections(config: dict, overrides: dict) -> dict:
    merged = {section: dict(values) for section, values in config.items()}
    for section, values in overrides.items():
        merged.setdefault(section, {}).update(values)
    return merged


if __name__ == "__main__":
    sys.exit(main())
