"""Check the swap usage."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version

from nagplug.procfs import MemInfo, VmStat, read_meminfo, read_vmstat, vmstat_delta
from nagplug.thresholds import (
    KILOBYTES,
    PluginError,
    State,
    Thresholds,
    Unit,
    get_status,
    set_thresholds,
    thresholds_expressed_as_percentages,
)

PROGRAM = "check_swap"
PROGRAM_SHORT = "swap"


def swap_report(
    meminfo: MemInfo,
    thresholds: Thresholds | None,
    unit: Unit = KILOBYTES,
    vmem_delta: VmStat | None = None,
) -> tuple[State, str]:
    """Return the state and the output line of the swap check."""
    total = meminfo.swap_total
    percent = meminfo.swap_used * 100.0 / total if total else 0.0
    status = get_status(percent, thresholds)

    def amount(kilobytes: int) -> str:
        return f"{unit.convert(kilobytes)}{unit.label}"

    status_msg = (
        f"{status}: {percent:.2f}% "
        f"({unit.convert(meminfo.swap_used)} {unit.label}) used"
    )
    perfdata = (
        f"swap_total={amount(total)} swap_used={amount(meminfo.swap_used)} "
        f"swap_free={amount(meminfo.swap_free)} "
        f"swap_cached={amount(meminfo.swap_cached)}"
    )
    if vmem_delta is not None:
        perfdata += (
            f", swap_pageins/s={vmem_delta.pswpin}"
            f" swap_pageouts/s={vmem_delta.pswpout}"
        )
    return status, f"{PROGRAM_SHORT} {status_msg} | {perfdata}"


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
        description="This plugin checks the swap utilization.",
        epilog=f"Example: {PROGRAM} --vmstats -w 30%% -c 50%%",
    )
    parser.add_argument(
        "-s", "--vmstats", action="store_true",
        help="display the virtual memory perfdata",
    )
    parser.add_argument("-w", "--warning", metavar="PERCENT", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="PERCENT", help="critical threshold")
    for flag, long_flag, label in (
        ("-b", "--byte", "B"),
        ("-k", "--kilobyte", "kB"),
        ("-m", "--megabyte", "MB"),
        ("-g", "--gigabyte", "GB"),
    ):
        parser.add_argument(
            flag, long_flag, dest="units", action="append_const", const=label,
            help=f"show output in {label}",
        )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the swap check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    unit = Unit.from_name(args.units[-1]) if args.units else KILOBYTES

    if not thresholds_expressed_as_percentages(args.warning, args.critical):
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        meminfo = read_meminfo()
        delta = None
        if args.vmstats:
            before = read_vmstat()
            time.sleep(1)
            delta = vmstat_delta(before, read_vmstat())
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    status, line = swap_report(meminfo, thresholds, unit, delta)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())