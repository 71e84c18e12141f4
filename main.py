import argparse
import logging
import sys

from core import config as CFG
from core.pipeline import run_wave_tracker

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Detect and track waves in a video.")
    ap.add_argument("input", help="path to the input video file")
    ap.add_argument("-c", "--config", default=None,
                    help=f"settings JSON (default: {CFG.CONFIG_PATH})")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="log per-frame tracking state")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(message)s")
    settings = CFG.load_settings(args.config)
    try:
        run_wave_tracker(args.input, settings)
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
