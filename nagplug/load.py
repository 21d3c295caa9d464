"""Check the current system load average."""

from __future__ import annotations

import argparse
import os
import re
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version

from nagplug.thresholds import PluginError, State

PROGRAM = "check_load"
PROGRAM_SHORT = "load"
_MINUTES = (1, 5, 15)

_FLOAT = (
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)"
)
_PAIR = re.compile(rf"\s*({_FLOAT}),\s*({_FLOAT})", re.IGNORECASE)


def parse_load_thresholds(text: str) -> tuple[float, float]:
    """Parse ``WARN,CRIT`` load thresholds; warning must be below critical."""
    match = _PAIR.match(text)
    if match is None:
        raise PluginError("command line error: bad thresholds")
    warning, critical = float(match.group(1)), float(match.group(2))
    if not warning < critical:
        raise PluginError("command line error: bad thresholds")
    return warning, critical


def _online_cpus() -> int:
    try:
        return os.sysconf("SC_NPROCESSORS_ONLN")
    except (AttributeError, ValueError, OSError):
        return os.cpu_count() or 1


def normalize_loadavg(
    loadavg: Sequence[float], numcpus: int = 0
) -> tuple[float, ...]:
    """Divide the load averages by the number of CPUs (online ones if 0)."""
    if not numcpus:
        numcpus = _online_cpus()
    if numcpus > 1:
        return tuple(load / numcpus for load in loadavg)
    return tuple(loadavg)


def loadavg_status(
    loadavg: Sequence[float],
    wload: Sequence[float],
    cload: Sequence[float],
    required: Sequence[bool],
) -> State:
    """Return the state of the load averages checked against their thresholds."""
    status = State.OK
    for load, warning, critical, needed in zip(loadavg, wload, cload, required):
        if not needed:
            continue
        if load > critical:
            return State.CRITICAL
        if load > warning:
            status = State.WARNING
    return status


def format_load(
    status: State,
    loadavg: Sequence[float],
    wload: Sequence[float],
    cload: Sequence[float],
) -> str:
    """Build the plugin output line with its performance data."""
    averages = ", ".join(f"{load:.2f}" for load in loadavg)
    perfdata = " ".join(
        f"load{minutes}={load:.3f};{warning:.3f};{critical:.3f};0"
        for minutes, load, warning, critical in zip(_MINUTES, loadavg, wload, cload)
    )
    return f"{PROGRAM_SHORT} {status} - average: {averages} | {perfdata}"


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
        description="This plugin checks the current system load average.",
        epilog=f"Example: {PROGRAM} -r --load1=2,3 --load15=1.5,2.5",
    )
    parser.add_argument(
        "-r", "--percpu", action="store_true",
        help="divide the load averages by the number of CPUs",
    )
    parser.add_argument(
        "-1", "--load1", action="append", default=[], metavar="WLOAD1,CLOAD1",
        help="warning and critical thresholds for load1",
    )
    parser.add_argument(
        "-5", "--load5", action="append", default=[], metavar="WLOAD5,CLOAD5",
        help="warning and critical thresholds for load5",
    )
    parser.add_argument(
        "-L", "--load15", action="append", default=[], metavar="WLOAD15,CLOAD15",
        help="warning and critical thresholds for load15",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the load check and return the plugin exit status."""
    args = _build_parser().parse_args(argv)
    wload = [0.0, 0.0, 0.0]
    cload = [0.0, 0.0, 0.0]
    required = [False, False, False]
    try:
        for index, values in enumerate((args.load1, args.load5, args.load15)):
            for text in values:
                wload[index], cload[index] = parse_load_thresholds(text)
                required[index] = True
        try:
            loadavg: tuple[float, ...] = tuple(os.getloadavg())
        except OSError:
            raise PluginError("the system load average was unobtainable") from None
        if args.percpu:
            loadavg = normalize_loadavg(loadavg, 0)
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    status = loadavg_status(loadavg, wload, cload, required)
    print(format_load(status, loadavg, wload, cload))
    return int(status)


if __name__ == "__main__":
    sys.exit(main())