"""Check the number of logged on users."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Iterable, Sequence
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import psutil

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_users"
PROGRAM_SHORT = "users"


def count_users(sessions: Iterable[Any]) -> int:
    """Count the login sessions that belong to a named user."""
    return sum(1 for session in sessions if getattr(session, "name", ""))


def users_report(numuser: int, thresholds: Thresholds | None) -> tuple[State, str]:
    """Return the state and the output line of the users check."""
    status = get_status(numuser, thresholds)
    plural = "" if numuser == 1 else "s"
    line = (
        f"{PROGRAM_SHORT} {status} - {numuser} user{plural} logged on "
        f"| logged_users={numuser}"
    )
    return status, line


def _session_line(session: Any) -> str:
    pid = getattr(session, "pid", None) or 0
    terminal = (getattr(session, "terminal", None) or "")[:6]
    host = (getattr(session, "host", None) or "")[:9]
    started = time.ctime(getattr(session, "started", 0) or 0)
    return f"{session.name:<8} {pid:>6} {terminal:<6} {host:<9} {started}"


def _sessions() -> list[Any]:
    try:
        return list(psutil.users())
    except (psutil.Error, OSError) as exc:
        raise PluginError(
            f"cannot determine all current login sessions: {exc}"
        ) from None


def _program_version() -> str:
    try:
        return version("nagplug")
    except PackageNotFoundError:
        return "unknown"


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(int(State.UNKNOWN), f"{self.prog}: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog=PROGRAM,
        description=(
            "This plugin displays the number of users that are currently logged on."
        ),
        epilog=f"Example: {PROGRAM} -w 1",
    )
    parser.add_argument("-w", "--warning", metavar="COUNTER", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="COUNTER", help="critical threshold")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="show details for command-line debugging",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the users check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        sessions = _sessions()
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    if args.verbose:
        print("user         PID line   host      date/time")
        for session in sessions:
            if getattr(session, "name", ""):
                print(_session_line(session))
    status, line = users_report(count_users(sessions), thresholds)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())