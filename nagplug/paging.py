"""Check the memory and swap paging."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version

from nagplug.procfs import VmStat, read_vmstat, vmstat_delta
from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_paging"
PROGRAM_SHORT = "paging"


@dataclass(frozen=True)
class PagingData:
    """Per-second paging and swapping counters."""

    dpgpgin: int = 0
    dpgpgout: int = 0
    dpgfault: int = 0
    dpgfree: int = 0
    dpgmajfault: int = 0
    dpgscand: int = 0
    dpgscank: int = 0
    dpgsteal: int = 0
    dpswpin: int = 0
    dpswpout: int = 0
    summary: int = 0


def paging_data(before: VmStat, after: VmStat, swapping_only: bool = False) -> PagingData:
    """Build the paging figures from two vmstat snapshots taken one second apart."""
    delta = vmstat_delta(before, after)
    summary = delta.pswpin + delta.pswpout if swapping_only else delta.pgmajfault
    return PagingData(
        dpgpgin=delta.pgpgin,
        dpgpgout=delta.pgpgout,
        dpgfault=delta.pgfault,
        dpgfree=delta.pgfree,
        dpgmajfault=delta.pgmajfault,
        dpgscand=delta.pgscand,
        dpgscank=delta.pgscank,
        dpgsteal=delta.pgsteal,
        dpswpin=delta.pswpin,
        dpswpout=delta.pswpout,
        summary=summary,
    )


def paging_report(
    paging: PagingData,
    thresholds: Thresholds | None,
    show_swapping: bool = False,
    swapping_only: bool = False,
) -> tuple[State, str]:
    """Return the state and the output line of the paging check."""
    status = get_status(paging.summary, thresholds)
    label = "pswp" if swapping_only else "majfault"
    status_msg = f"{status}: {paging.summary} {label}/s"
    perfdata_paging = ""
    if not swapping_only:
        perfdata_paging = (
            f"vmem_pgpgin/s={paging.dpgpgin} vmem_pgpgout/s={paging.dpgpgout} "
            f"vmem_pgfault/s={paging.dpgfault} "
            f"vmem_pgmajfault/s={paging.dpgmajfault} "
            f"vmem_pgfree/s={paging.dpgfree} vmem_pgsteal/s={paging.dpgsteal} "
            f"vmem_pgscand/s={paging.dpgscand} vmem_pgscank/s={paging.dpgscank} "
        )
    perfdata_swapping = ""
    if show_swapping or swapping_only:
        perfdata_swapping = (
            f"vmem_pswpin/s={paging.dpswpin} vmem_pswpout/s={paging.dpswpout}"
        )
    line = f"{PROGRAM_SHORT} {status_msg} | {perfdata_paging}{perfdata_swapping}"
    return status, line


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
        description="This plugin checks the memory and swap paging.",
        epilog=(
            "PAGES is the sum of 'pswpin' and 'pswpout' per second if "
            "--swapping-only has been specified, or the number of "
            f"'majfault/s' otherwise. Examples: {PROGRAM} --swapping -w 10 -c 25 ; "
            f"{PROGRAM} --swapping-only -w 40 -c 60"
        ),
    )
    parser.add_argument(
        "-p", "--paging", action="store_true",
        help="does nothing, kept for compatibility",
    )
    parser.add_argument(
        "-s", "--swapping", action="store_true",
        help="display also the swap reads and writes",
    )
    parser.add_argument(
        "-S", "--swapping-only", action="store_true",
        help="only display the swap reads and writes",
    )
    parser.add_argument("-w", "--warning", metavar="PAGES", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="PAGES", help="critical threshold")
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the paging check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        before = read_vmstat()
        time.sleep(1)
        after = read_vmstat()
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    paging = paging_data(before, after, args.swapping_only)
    status, line = paging_report(paging, thresholds, args.swapping, args.swapping_only)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())