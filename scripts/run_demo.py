#!/usr/bin/env python3
"""
Example script for running the overspeed detection demo.
"""

import sys
import argparse
from pathlib import Path

from overspeed_detection.app import main as run_app


def main():
    """Main function for running the demo"""
    parser = argparse.ArgumentParser(
        description="Run the car overspeeding detection demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the default config on the first camera
  python scripts/run_demo.py

  # Highway preset with a rear-facing camera
  python scripts/run_demo.py --config configs/highway_config.yaml

  # Reproducible detections at a 60 km/h limit
  python scripts/run_demo.py --speed-limit 60 --seed 42

Controls:
  c        start/stop camera
  d/space  start/pause detection
  + / -    raise/lower speed limit
  q/Esc    quit
        """
    )

    parser.add_argument(
        '--config',
        default='configs/default_config.json',
        help='Configuration file path (default: configs/default_config.json)'
    )

    args, passthrough = parser.parse_known_args()

    # Validate config file
    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        print("Available configs:")
        config_dir = Path("configs")
        if config_dir.exists():
            for config_file in sorted(config_dir.glob("*.*")):
                print(f"  {config_file}")
        return 1

    print(f"Starting demo with config: {config_path}")
    return run_app(['--config', str(config_path)] + passthrough)


if __name__ == "__main__":
    sys.exit(main())
