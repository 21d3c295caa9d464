"""Check the system memory usage."""

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
    perfdata_limit_converted,
    set_thresholds,
    thresholds_expressed_as_percentages,
)

PROGRAM = "check_memory"
PROGRAM_SHORT = "memory"


def _limit(value: int | None) -> str:
    return "" if value is None else str(value)


def memory_report(
    meminfo: MemInfo,
    thresholds: Thresholds | None,
    unit: Unit = KILOBYTES,
    monitor_available: bool = False,
    vmem_delta: VmStat | None = None,
) -> tuple[State, str]:
    """Return the state and the output line of the memory check."""
    monitored = meminfo.main_available if monitor_available else meminfo.main_used
    total = meminfo.main_total
    percent = monitored * 100.0 / total if total else 0.0
    status = get_status(percent, thresholds)

    warning_limit = critical_limit = None
    if thresholds is not None:
        warning_limit = perfdata_limit_converted(thresholds.warning, total, unit, True)
        critical_limit = perfdata_limit_converted(thresholds.critical, total, unit, True)

    def amount(kilobytes: int) -> str:
        return f"{unit.convert(kilobytes)}{unit.label}"

    def series(label: str, kilobytes: int, limited: bool) -> str:
        warn = _limit(warning_limit) if limited else ""
        crit = _limit(critical_limit) if limited else ""
        return f"{label}={amount(kilobytes)};{warn};{crit};0;{unit.convert(total)}"

    available = series("mem_available", meminfo.main_available, monitor_available)
    used = series("mem_used", meminfo.main_used, not monitor_available)
    status_msg = (
        f"{status}: {percent:.2f}% ({unit.convert(monitored)} {unit.label}) "
        f"{'available' if monitor_available else 'used'}"
    )
    perfdata = " ".join(
        [
            f"mem_total={amount(total)}",
            used,
            f"mem_free={amount(meminfo.main_free)}",
            f"mem_shared={amount(meminfo.main_shared)}",
            f"mem_buffers={amount(meminfo.main_buffers)}",
            f"mem_cached={amount(meminfo.main_cached)}",
            available,
            f"mem_active={amount(meminfo.active)}",
            f"mem_anonpages={amount(meminfo.anon_pages)}",
            f"mem_committed={amount(meminfo.committed_as)}",
            f"mem_dirty={amount(meminfo.dirty)}",
            f"mem_inactive={amount(meminfo.inactive)}",
        ]
    )
    if vmem_delta is not None:
        perfdata += (
            f" vmem_pageins/s={vmem_delta.pgpgin}"
            f" vmem_pageouts/s={vmem_delta.pgpgout}"
            f" vmem_pgmajfault/s={vmem_delta.pgmajfault}"
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
        description="This plugin checks the system memory utilization.",
        epilog=(
            f"Examples: {PROGRAM} --available -w 20%%: -c 10%%: ; "
            f"{PROGRAM} --vmstats -w 80%% -c 90%%"
        ),
    )
    parser.add_argument(
        "-a", "--available", action="store_true",
        help="display the free/available memory",
    )
    parser.add_argument(
        "-C", "--caches", action="store_true",
        help="does nothing, kept for compatibility",
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
        "-u", "--units", dest="units", action="append", metavar="UNIT",
        help="show output in the selected unit (default: kB): "
        "bytes, B, kB, MB, GB, KiB, MiB, GiB",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the memory check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        unit = KILOBYTES
        for name in args.units or ():
            unit = Unit.from_name(name)

        if not thresholds_expressed_as_percentages(args.warning, args.critical):
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)
        try:
            thresholds = set_thresholds(args.warning, args.critical)
        except ValueError:
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)

        meminfo = read_meminfo()
        delta = None
        if args.vmstats:
            before = read_vmstat()
            time.sleep(1)
            delta = vmstat_delta(before, read_vmstat())
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    status, line = memory_report(meminfo, thresholds, unit, args.available, delta)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())