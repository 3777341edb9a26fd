"""
Plot every XRD file in a directory

Example:
    python examples/plot_xrd_directory.py examples/sample_data --order alphabetical
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tools.exceptions import XRDError
from tools.workflow import run_xrd_workflow
from utils.config import load_settings
from utils.logger import log_error


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Merge, offset and plot XRD patterns")
    parser.add_argument("directory", help="Directory with XRD files")
    parser.add_argument("--settings", help="JSON file with settings overrides")
    parser.add_argument("--output", default="output", help="Output root directory")
    parser.add_argument("--order", choices=["as_is", "alphabetical", "reverse"])
    parser.add_argument("--step", type=float, help="Auto offset step")
    parser.add_argument("--window", type=int, help="Moving average window")
    parser.add_argument("--no-zip", action="store_true", help="Skip the zip archive")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    overrides = {'transform': {}, 'plot': {}, 'export': {}}
    if args.order:
        overrides['transform']['order_method'] = args.order
    if args.step is not None:
        overrides['transform']['auto_step'] = args.step
    if args.window is not None:
        overrides['plot']['ma_window'] = args.window
    if args.no_zip:
        overrides['export']['create_zip'] = False

    try:
        settings = load_settings(args.settings, overrides=overrides)
        run_xrd_workflow(args.directory, settings=settings, output_dir=args.output)
    except XRDError as e:
        log_error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
