"""
Collector Scan - Command Line
Scan one card photo and print the recognition result as JSON.

    python scan_card.py photo.jpg [--save-debug] [--no-lookup]
"""
import argparse
import json
import sys

import config
from card_recognition import CardRecognitionEngine
from errors import ScanError
from logger import get_logger

logger = get_logger('cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read the identifier line of a trading card photo")
    parser.add_argument("image", type=str, help="Path to the card photo")
    parser.add_argument("--save-debug", action="store_true",
                        help=f"Write intermediate images to {config.DEBUG_DIR}")
    parser.add_argument("--debug-dir", type=str, default=str(config.DEBUG_DIR))
    parser.add_argument("--no-lookup", action="store_true", help="Skip the Scryfall lookup")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    engine = CardRecognitionEngine(
        save_debug_images=args.save_debug or config.DEBUG_SAVE_IMAGES,
        debug_dir=args.debug_dir
    )

    try:
        result = engine.recognize_card(args.image, lookup=not args.no_lookup)
    except (ScanError, ValueError) as e:
        logger.error(f"Scan failed | image={args.image} | error={e}")
        print(json.dumps({'success': False, 'error': type(e).__name__, 'message': str(e)}, indent=2))
        return 2

    diagnostics = result.pop('diagnostics', None)
    if diagnostics is not None:
        result['steps'] = diagnostics.steps
    print(json.dumps(result, indent=2, default=str))
    return 0 if result['success'] else 1


if __name__ == "__main__":
    sys.exit(main())
