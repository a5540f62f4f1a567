"""
Command line entry point
========================
Usage:
    exhaust
    exhaust ~/exams --autosave
    exhaust --config ./config.json --log-file ./exhaust.log --log-level DEBUG
"""

import argparse
import logging
import os
import sys

from exhaust import __version__
from exhaust.config import load_config, setup_logging
from exhaust.state import OpenMode, initial_state
from exhaust.tui import ExhaustApp

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="exhaust",
        description="EXHAUST -- browse exam files and answer them in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exam files:
  .json              plain JSON
  .exhaust, .gz      gzip-compressed JSON

Examples:
  exhaust
  exhaust ~/exams --autosave
        """,
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=os.getcwd(),
        help="Directory to start browsing in (default: current directory)",
    )
    parser.add_argument(
        "--autosave",
        action="store_true",
        help="Save after every answer instead of on request",
    )
    parser.add_argument("--config", help="Path to config.json (default: per-user config dir)")
    parser.add_argument("--log-file", help="Where to write the log (default: per-user log dir)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log verbosity",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    directory = os.path.abspath(os.path.expanduser(args.directory))
    if not os.path.isdir(directory):
        print(f"exhaust: not a directory: {directory}", file=sys.stderr)
        sys.exit(2)

    setup_logging(args.log_file, args.log_level)
    config = load_config(args.config)
    mode = OpenMode.AUTO_SAVE if args.autosave else OpenMode.NO_AUTO_SAVE
    state = initial_state(directory, config=config, open_mode=mode)

    logger.info("Starting in %s (%s)", directory, mode.value)
    ExhaustApp(state).run()


if __name__ == "__main__":
    main()
