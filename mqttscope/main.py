"""Command line entry point."""

from __future__ import annotations

import argparse
import sys

from mqttscope.explorer import Explorer
from mqttscope.topics import DEFAULT_HISTORY

VERSION = "1.0"
HISTORY_ERROR = "History option must contain numeric value >= 1"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqttscope",
        description="Explore, publish to and simulate traffic on an MQTT server.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "-h",
        "--history",
        metavar="history",
        help=f"How many messages to keep in the history (Default: {DEFAULT_HISTORY})",
    )
    return parser


def parse_args(argv=None) -> argparse.Namespace:
    """Parse the command line; exits with an error for a bad history value."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.history is None:
        args.history = DEFAULT_HISTORY
        return args
    try:
        history = int(args.history)
    except ValueError:
        history = 0
    if history < 1:
        parser.error(HISTORY_ERROR)
    args.history = history
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    Explorer(args.history).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())