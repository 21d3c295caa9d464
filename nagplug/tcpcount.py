"""Report the number of TCP sockets in each connection state."""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, fields
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_tcpcount"
PROGRAM_SHORT = "tcpcount"
PROC_NET = "/proc/net"


@dataclass(frozen=True)
class TcpStates:
    """Number of TCP sockets in each state."""

    established: int = 0
    syn_sent: int = 0
    syn_recv: int = 0
    fin_wait1: int = 0
    fin_wait2: int = 0
    time_wait: int = 0
    close: int = 0
    close_wait: int = 0
    last_ack: int = 0
    listen: int = 0
    closing: int = 0

    def __add__(self, other: TcpStates) -> TcpStates:
        if not isinstance(other, TcpStates):
            return NotImplemented
        return TcpStates(
            **{
                field.name: getattr(self, field.name) + getattr(other, field.name)
                for field in fields(TcpStates)
            }
        )


# Kernel state numbers, in the order of the TcpStates fields.
_STATE_FIELDS = {
    number: field.name for number, field in enumerate(fields(TcpStates), start=1)
}


def parse_tcp_table(text: str) -> TcpStates:
    """Count the sockets per state in the content of a tcp or tcp6 table."""
    counts: Counter[str] = Counter()
    for line in text.splitlines()[1:]:
        words = line.split()
        if len(words) < 4:
            continue
        try:
            state = int(words[3], 16)
        except ValueError:
            continue
        name = _STATE_FIELDS.get(state)
        if name is not None:
            counts[name] += 1
    return TcpStates(**counts)


def read_tcp_states(
    ipv4: bool = True, ipv6: bool = False, root: str | Path = PROC_NET
) -> TcpStates:
    """Read the TCPv4 and/or TCPv6 tables and add up their states."""
    total = TcpStates()
    for table, selected in (("tcp", ipv4), ("tcp6", ipv6)):
        if not selected:
            continue
        path = Path(root) / table
        try:
            text = path.read_text()
        except OSError as exc:
            raise PluginError(f"cannot read {path}: {exc.strerror}") from None
        total += parse_tcp_table(text)
    return total


def tcp_report(states: TcpStates, thresholds: Thresholds | None) -> tuple[State, str]:
    """Return the state and the output line of the TCP check."""
    status = get_status(states.established, thresholds)
    perfdata = " ".join(
        f"tcp_{field.name}={getattr(states, field.name)}" for field in fields(TcpStates)
    )
    line = (
        f"{PROGRAM_SHORT} {status} - {states.established} tcp established "
        f"| {perfdata}"
    )
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
        description="This plugin displays TCP network and socket informations.",
        epilog=(
            f"Examples: {PROGRAM} --tcp -w 1000 -c 1500 ; "
            f"{PROGRAM} --tcp --tcp6 -w 1500 -c 2000 ; "
            f"{PROGRAM} --tcp6 -w 1500 -c 2000"
        ),
    )
    parser.add_argument(
        "-t", "--tcp", action="store_true",
        help="display the statistics for the TCP protocol (the default)",
    )
    parser.add_argument(
        "-6", "--tcp6", action="store_true",
        help="display the statistics for the TCPv6 protocol",
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
    """Run the TCP check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    ipv4 = args.tcp or not args.tcp6
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        states = read_tcp_states(ipv4, args.tcp6)
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    if args.verbose:
        for field in fields(TcpStates):
            print(f"{field.name}: {getattr(states, field.name)}")
    status, line = tcp_report(states, thresholds)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())