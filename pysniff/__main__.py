"""
PySniff entry point.

Usage:
    python -m pysniff messages.jsonl
    python -m pysniff --filter 'direction == "recv"' messages.jsonl
    GRPC_JSON_SNIFFER_FILE=messages.jsonl python -m pysniff --loglevel DEBUG
"""

import sys
import os
import argparse

ENV_CAPTURE_FILE = "GRPC_JSON_SNIFFER_FILE"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pysniff",
        description="PySniff - Live viewer for gRPC messages captured as JSON lines"
    )
    parser.add_argument(
        "messages",
        nargs="?",
        default=os.environ.get(ENV_CAPTURE_FILE),
        help=f"Capture file to follow (default: ${ENV_CAPTURE_FILE})"
    )
    parser.add_argument(
        "-f", "--filter",
        default="",
        help="Initial filter text"
    )
    parser.add_argument(
        "--syntax",
        choices=["expression", "simple"],
        default="expression",
        help="Filter language: typed expressions or plain 'key: value' matching (default: expression)"
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=250,
        help="Minimum delay between list refreshes in milliseconds (default: 250)"
    )
    parser.add_argument(
        "--timezone",
        choices=["local", "utc"],
        default=None,
        help="Show capture times in local time or UTC (saved as the new default)"
    )
    parser.add_argument(
        "-l", "--loglevel",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set logging level (default: WARNING). DEBUG writes to /tmp/pysniff_debug.log"
    )
    parser.add_argument(
        "--logfile",
        default="/tmp/pysniff_debug.log",
        help="Log file path (default: /tmp/pysniff_debug.log)"
    )
    parser.add_argument(
        "--log-console",
        action="store_true",
        help="Also log to console (stderr)"
    )
    return parser


def make_engine(syntax: str):
    """Create the predicate engine for a --syntax choice."""
    if syntax == "simple":
        from .core.simple_match_engine import SimpleMatchEngine
        return SimpleMatchEngine()
    from .core.expression_engine import ExpressionEngine
    return ExpressionEngine()


def main(argv=None):
    """Main entry point for PySniff."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.messages:
        parser.print_usage(sys.stderr)
        print(f"pysniff: no capture file given and ${ENV_CAPTURE_FILE} is not set", file=sys.stderr)
        return 1
    if not os.path.isfile(args.messages):
        print(f"No such file: {args.messages}", file=sys.stderr)
        return 1
    if args.delay_ms < 0:
        parser.error("--delay-ms must not be negative")

    # Setup logging before importing anything else
    from .logging import setup_logging
    setup_logging(
        level=args.loglevel,
        log_file=args.logfile,
        console=args.log_console
    )

    if args.timezone:
        from .core.settings import set_timezone
        set_timezone(args.timezone)

    # Import here to avoid slow startup for --help
    from .gui.app import run_app

    return run_app(
        capture_path=os.path.abspath(args.messages),
        engine=make_engine(args.syntax),
        delay_ms=args.delay_ms,
        initial_filter=args.filter,
        timezone=args.timezone,
    )


if __name__ == "__main__":
    sys.exit(main())
