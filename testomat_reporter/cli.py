"""Command-line interface for managing a shared Testomat.io run.

Lets a CI job open one run before launching several pytest processes
(for example pytest-xdist workers or sharded jobs) and close it after all
of them finished:

    export TESTOMATIO_RUN=$(testomat-reporter start --title "Nightly")
    pytest -n 4
    testomat-reporter finish "$TESTOMATIO_RUN" --duration 120
"""

import argparse
import logging
import sys
from typing import Optional

from testomat_reporter.client import TestomatApiClient, TestomatError
from testomat_reporter.config import ConfigError, ReporterConfig
from testomat_reporter.session import current_time_ms, default_run_title


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="testomat-reporter",
        description="Create and finish Testomat.io runs shared by several test processes",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log API requests to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Create a run and print its uid")
    start.add_argument(
        "-t", "--title",
        default=None,
        help="Run title (default: TESTOMATIO_TITLE or a timestamped title)",
    )

    finish = subparsers.add_parser("finish", help="Finish a run")
    finish.add_argument("run_uid", metavar="UID", help="Uid printed by 'start'")
    finish.add_argument(
        "-d", "--duration",
        type=float,
        default=0.0,
        help="Run duration in seconds (default: 0)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for API failures, 2 for usage errors
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = ReporterConfig.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if not settings.enabled:
        print("TESTOMATIO is not set; nothing to do", file=sys.stderr)
        return 2

    client = TestomatApiClient(settings.api_key, settings.base_url, timeout=settings.timeout)

    try:
        if args.command == "start":
            return start_run(client, args.title or settings.title)
        return finish_run(client, args.run_uid, args.duration)
    except TestomatError as e:
        print(f"Testomat.io error: {e}", file=sys.stderr)
        return 1


def start_run(client: TestomatApiClient, title: Optional[str]) -> int:
    response = client.create_run(title or default_run_title(current_time_ms()))
    uid = response.get("uid") if response else None
    if not uid:
        print("Testomat.io did not return a run uid", file=sys.stderr)
        return 1
    print(uid)
    return 0


def finish_run(client: TestomatApiClient, run_uid: str, duration: float) -> int:
    if duration < 0:
        print("Duration must not be negative", file=sys.stderr)
        return 2
    client.finish_run(run_uid, duration)
    return 0


if __name__ == "__main__":
    sys.exit(main())
