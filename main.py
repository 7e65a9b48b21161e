#!/usr/bin/env python3
"""Main entry point for framecap: headless capture of a synthetic scene.

Examples:
    python main.py
    python main.py --frames 120 --output-dir captures/simple
    LOG_LEVEL=DEBUG python main.py --config-dir config
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from framecap.app_orchestrator import AppOrchestrator


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Capture rendered frames into images, GIF and video.")
    parser.add_argument("--config-dir", default="config", help="Directory holding app.json (created if missing)")
    parser.add_argument("--output-dir", default="captures/simple", help="Where encoders write their output")
    parser.add_argument("--frames", type=int, default=None, help="Ticks to capture (default: capture.frames)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    orchestrator = AppOrchestrator(Path(args.config_dir), Path(args.output_dir))
    metrics = orchestrator.run(args.frames)
    return 1 if metrics.get("frames_failed") else 0


if __name__ == "__main__":
    sys.exit(main())
