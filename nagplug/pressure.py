"""Check the Linux Pressure Stall Information (PSI) data."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_pressure"
PROGRAM_SHORT = "pressure"
PROC_PRESSURE = "/proc/pressure"
DELAY_DEFAULT = 1
DELAY_MAX = 3600

_PREFIXES = {"io": "io", "memory": "mem"}
_TITLES = {"io": "IO", "memory": "Memory"}


@dataclass(frozen=True)
class PsiLine:
    """One line of a pressure file: averages in percent, total in microseconds."""

    avg10: float = 0.0
    avg60: float = 0.0
    avg300: float = 0.0
    total: int = 0


@dataclass(frozen=True)
class Pressure:
    """The ``some`` and, when present, ``full`` pressure lines of a resource."""

    some: PsiLine
    full: PsiLine | None = None


def _parse_line(words: list[str]) -> PsiLine:
    values: dict[str, str] = {}
    for word in words:
        key, sep, value = word.partition("=")
        if not sep:
            raise PluginError(f"malformed pressure data: {word!r}")
        values[key] = value
    try:
        return PsiLine(
            avg10=float(values["avg10"]),
            avg60=float(values["avg60"]),
            avg300=float(values["avg300"]),
            total=int(values["total"]),
        )
    except (KeyError, ValueError) as exc:
        raise PluginError(f"malformed pressure data: {exc}") from None


def parse_psi(text: str) -> Pressure:
    """Parse the content of a file in the pressure directory."""
    lines: dict[str, PsiLine] = {}
    for line in text.splitlines():
        words = line.split()
        if not words:
            continue
        if words[0] in ("some", "full"):
            lines[words[0]] = _parse_line(words[1:])
    if "some" not in lines:
        raise PluginError("malformed pressure data: no 'some' line")
    return Pressure(lines["some"], lines.get("full"))


def read_psi(resource: str, root: str | Path = PROC_PRESSURE) -> Pressure:
    """Read the pressure data of ``cpu``, ``io`` or ``memory``."""
    path = Path(root) / resource
    try:
        text = path.read_text()
    except OSError as exc:
        raise PluginError(f"cannot read {path}: {exc.strerror}") from None
    return parse_psi(text)


def starvation(before: Pressure, after: Pressure, delay: int) -> tuple[int, int]:
    """Return the some and full stall time per second between two reads."""
    some = (after.some.total - before.some.total) // delay
    if before.full is None or after.full is None:
        return some, 0
    full = (after.full.total - before.full.total) // delay
    return some, full


def pressure_report(
    resource: str,
    pressure: Pressure,
    some_starvation: int,
    full_starvation: int,
    thresholds: Thresholds | None,
    full: bool = False,
    progname: str = PROGRAM_SHORT,
) -> tuple[State, str]:
    """Return the state and the output line of the pressure check."""
    if resource == "cpu":
        status = get_status(some_starvation, thresholds)
        some = pressure.some
        status_msg = (
            f"{progname} (CPU starvation) {status}: {some_starvation} microsecs/s"
        )
        perfdata = (
            f"cpu_avg10={some.avg10:2.2f}% cpu_avg60={some.avg60:2.2f}% "
            f"cpu_avg300={some.avg300:2.2f}% cpu_starvation/s={some_starvation}"
        )
        return status, f"{status_msg} | {perfdata}"

    if resource not in _PREFIXES:
        raise ValueError(f"unknown pressure resource: {resource!r}")
    prefix = _PREFIXES[resource]
    status = get_status(full_starvation if full else some_starvation, thresholds)
    status_msg = (
        f"{progname} ({_TITLES[resource]} starvation) {status}: "
        f"some:{some_starvation} full:{full_starvation} microsecs/s"
    )
    full_line = pressure.full or PsiLine()
    perfdata = "".join(
        f"{prefix}_{kind}_avg10={line.avg10:2.2f}% "
        f"{prefix}_{kind}_avg60={line.avg60:2.2f}% "
        f"{prefix}_{kind}_avg300={line.avg300:2.2f}% "
        f"{prefix}_{kind}_starvation/s={stall} "
        for kind, line, stall in (
            ("some", pressure.some, some_starvation),
            ("full", full_line, full_starvation),
        )
    )
    return status, f"{status_msg} | {perfdata}"


def _parse_delay(text: str | None) -> int:
    if text is None:
        return DELAY_DEFAULT
    try:
        delay = int(text, 10)
    except ValueError:
        raise PluginError(f"failed to parse argument: '{text}'") from None
    if delay < 1:
        raise PluginError("delay must be positive integer")
    if delay > DELAY_MAX:
        raise PluginError(f"too large delay value (greater than {DELAY_MAX})")
    return delay


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
        description="This plugin checks Linux Pressure Stall Information (PSI) data.",
        epilog=(
            "It requires at least a kernel 4.20, which provides this information "
            f"in the /proc/pressure folder. Examples: {PROGRAM} --cpu ; "
            f"{PROGRAM} --memory --full 2"
        ),
    )
    parser.add_argument(
        "-C", "--cpu", dest="mode", action="store_const", const="cpu",
        help="return the cpu pressure metrics",
    )
    parser.add_argument(
        "-i", "--io", dest="mode", action="store_const", const="io",
        help="return the io (block layer/filesystems) pressure metrics",
    )
    parser.add_argument(
        "-m", "--memory", dest="mode", action="store_const", const="memory",
        help="return the memory pressure metrics",
    )
    parser.add_argument(
        "-f", "--full", action="store_true",
        help='select the data labeled "full" to calculate thresholds '
        "(io and memory only)",
    )
    parser.add_argument(
        "-w", "--warning", metavar="COUNTER",
        help="warning threshold (in microseconds/s)",
    )
    parser.add_argument(
        "-c", "--critical", metavar="COUNTER",
        help="critical threshold (in microseconds/s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="be verbose")
    parser.add_argument(
        "delay", nargs="?",
        help=f"delay in seconds between two reads (default: {DELAY_DEFAULT}sec)",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pressure check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.mode is None or (args.mode == "cpu" and args.full):
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        delay = _parse_delay(args.delay)
        before = read_psi(args.mode)
        time.sleep(delay)
        after = read_psi(args.mode)
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    some, full = starvation(before, after, delay)
    status, line = pressure_report(args.mode, after, some, full, thresholds, args.full)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())