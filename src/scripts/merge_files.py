#!/usr/bin/env python3
"""
Merge Audio Files Script

Usage:
  python src/scripts/merge_files.py a.mp3 b.mp3 c.mp3 -o mix.mp3 [--fade 3.0]

Decodes every input, crossfades adjacent clips, encodes one MP3 and tags it.
"""

import argparse
import sys
import logging
from pathlib import Path

# Add src/ to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from crossmix.config import Config, ConfigError
from crossmix.pipeline import MergeEngine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Merge audio files with crossfades into one MP3")
    parser.add_argument("inputs", nargs="+", help="Input audio files, in playback order")
    parser.add_argument("-o", "--output", required=True, help="Output MP3 path")
    parser.add_argument("--fade", type=float, default=None, help="Crossfade seconds (default: from config)")
    parser.add_argument("--config", default=None, help="Path to crossmix.toml")
    return parser.parse_args(argv)


def main(argv=None):
    """Main merge entrypoint."""
    args = _parse_args(argv)

    try:
        config = Config.load(args.config)
    except ConfigError as e:
        logger.error(f"Invalid config: {e}")
        return 2

    def on_progress(percent: float, message: str) -> None:
        logger.info(f"[{percent:5.1f}%] {message}")

    try:
        engine = MergeEngine(config)
        ok = engine.merge_files(args.inputs, args.output, fade_seconds=args.fade, on_progress=on_progress)
    except KeyboardInterrupt:
        logger.warning("Merge interrupted by user")
        return 130

    if not ok:
        return 1
    logger.info(f"Mix written: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
