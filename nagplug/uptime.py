"""Check how long the system has been running."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version

import psutil

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_uptime"
PROGRAM_SHORT = "uptime"

_DAY = 60 * 60 * 24


def sprint_uptime(uptime_secs: float) -> str:
    """Render an uptime as days, hours and minutes."""
    seconds = int(uptime_secs)
    days = seconds // _DAY
    text = f"{days} day{'s' if days != 1 else ''} " if days else ""
    minutes = seconds // 60
    hours = (minutes // 60) % 24
    minutes %= 60
    if hours:
        return text + f"{hours} hour{'s' if hours != 1 else ''} {minutes} min"
    return text + f"{minutes} min"


def read_uptime(monotonic: bool = False) -> float:
    """Return the whole seconds since boot, from the monotonic clock if asked."""
    try:
        if monotonic:
            return float(int(time.clock_gettime(time.CLOCK_MONOTONIC)))
        boottime = getattr(time, "CLOCK_BOOTTIME", None)
        if boottime is not None:
            return float(int(time.clock_gettime(boottime)))
        return float(int(time.time() - psutil.boot_time()))
    except (OSError, AttributeError):
        raise PluginError("cannot get the system uptime") from None


def uptime_report(
    uptime_secs: float,
    thresholds: Thresholds | None,
    warning: str | None = None,
    critical: str | None = None,
) -> tuple[State, str]:
    """Return the state and the output line of the uptime check."""
    uptime_mins = int(uptime_secs) // 60
    status = get_status(uptime_mins, thresholds)
    status_msg = f"{PROGRAM_SHORT} {status}: {sprint_uptime(uptime_secs)}"
    perfdata = f"uptime={uptime_mins};{warning or ''};{critical or ''};0;"
    return status, f"{status_msg} | {perfdata}"


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
        description="This plugin checks how long the system has been running.",
        epilog=(
            f"Examples: {PROGRAM} ; {PROGRAM} --critical 15: --warning 30: ; "
            f"{PROGRAM} --clock-monotonic -c 15: -w 30:"
        ),
    )
    parser.add_argument(
        "-m", "--clock-monotonic", action="store_true",
        help="use the monotonic clock for retrieving the time",
    )
    parser.add_argument("-w", "--warning", metavar="MINUTES", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="MINUTES", help="critical threshold")
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the uptime check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        uptime_secs = read_uptime(args.clock_monotonic)
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    status, line = uptime_report(uptime_secs, thresholds, args.warning, args.critical)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())