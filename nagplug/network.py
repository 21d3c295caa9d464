"""Report network interface statistics and check them against thresholds."""

from __future__ import annotations

import argparse
import re
import sys
import time
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_network"
SYSFS_NET = "/sys/class/net"
DELAY_DEFAULT = 1
DELAY_MAX = 3600
MAX_PRINTED_INTERFACES = 5

_IFF_UP = 0x1
_IFF_LOOPBACK = 0x8
_IFF_RUNNING = 0x40

_COUNTERS = (
    "rx_bytes",
    "tx_bytes",
    "rx_packets",
    "tx_packets",
    "rx_errors",
    "tx_errors",
    "rx_dropped",
    "tx_dropped",
    "collisions",
    "multicast",
)


class NetworkCheck(Enum):
    """The counter a network plugin checks; the value is the plugin's name."""

    BYTES = "network"
    COLLISIONS = "network collisions"
    DROPPED = "network dropped"
    ERRORS = "network errors"
    MULTICAST = "network multicast"

    def __str__(self) -> str:
        return self.value


_PROGNAME_CHECKS = (
    ("network_collisions", NetworkCheck.COLLISIONS),
    ("network_dropped", NetworkCheck.DROPPED),
    ("network_errors", NetworkCheck.ERRORS),
    ("network_multicast", NetworkCheck.MULTICAST),
)

_EXCLUDING_OPTION = {
    NetworkCheck.COLLISIONS: "no-collisions",
    NetworkCheck.DROPPED: "no-drops",
    NetworkCheck.ERRORS: "no-errors",
    NetworkCheck.MULTICAST: "no-multicast",
}


@dataclass(frozen=True)
class InterfaceStats:
    """Per-second counters of a network interface and its link properties.

    ``speed`` is the physical speed in Mbit/s, 0 when it is not known.
    """

    name: str
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0
    rx_dropped: int = 0
    tx_dropped: int = 0
    collisions: int = 0
    multicast: int = 0
    speed: int = 0
    half_duplex: bool = False
    up: bool = True
    running: bool = True


def threshold_metric(tx: int, rx: int, tx_only: bool, rx_only: bool) -> int:
    """Combine the transmitted and received counters as the options select."""
    return (0 if tx_only else rx) + (0 if rx_only else tx)


def ratio_over_speed(counter: float, speed: int) -> float:
    """Return ``counter`` as a percentage of ``speed`` (bytes per second)."""
    return (100.0 / speed) * counter


def fmt_perfdata_bytes(
    ifname: str, label: str, counter: int, speed: int, perc: bool
) -> str:
    """Format a byte counter as perfdata, as a percentage of speed if asked."""
    if perc and speed > 0:
        return f"{ifname}_{label}/s={ratio_over_speed(counter, speed):.2f}%;;;0;100.0"
    if speed > 0:
        return f"{ifname}_{label}/s={counter};;;0;{speed}"
    return f"{ifname}_{label}/s={counter}"


def check_for_progname(progname: str) -> NetworkCheck:
    """Select the check from a program name such as ``check_network_errors``."""
    name = Path(progname).name
    if not (len(name) > 6 and name.startswith("check_")):
        raise PluginError("bug: the plugin does not have a standard name")
    rest = name[6:]
    for prefix, check in _PROGNAME_CHECKS:
        if rest.startswith(prefix):
            return check
    return NetworkCheck.BYTES


def _check_counter(
    iface: InterfaceStats, check: NetworkCheck, tx_only: bool, rx_only: bool
) -> int:
    if check is NetworkCheck.COLLISIONS:
        return iface.collisions
    if check is NetworkCheck.DROPPED:
        return threshold_metric(iface.tx_dropped, iface.rx_dropped, tx_only, rx_only)
    if check is NetworkCheck.ERRORS:
        return threshold_metric(iface.tx_errors, iface.rx_errors, tx_only, rx_only)
    if check is NetworkCheck.MULTICAST:
        return iface.multicast
    return threshold_metric(iface.tx_bytes, iface.rx_bytes, tx_only, rx_only)


def _perfdata(iface: InterfaceStats, speed: int, opts: frozenset[str]) -> str:
    name = iface.name
    parts = []
    if "no-bytes" not in opts:
        perc = "perc" in opts
        parts.append(
            f"{fmt_perfdata_bytes(name, 'txbyte', iface.tx_bytes, speed, perc)} "
            f"{fmt_perfdata_bytes(name, 'rxbyte', iface.rx_bytes, speed, perc)} "
        )
    if "no-errors" not in opts:
        parts.append(
            f"{name}_txerr/s={iface.tx_errors} {name}_rxerr/s={iface.rx_errors} "
        )
    if "no-drops" not in opts:
        parts.append(
            f"{name}_txdrop/s={iface.tx_dropped} {name}_rxdrop/s={iface.rx_dropped} "
        )
    if "no-packets" not in opts:
        parts.append(
            f"{name}_txpck/s={iface.tx_packets} {name}_rxpck/s={iface.rx_packets} "
        )
    if "no-collisions" not in opts:
        parts.append(f"{name}_coll/s={iface.collisions} ")
    if "no-multicast" not in opts:
        parts.append(f"{name}_mcast/s={iface.multicast} ")
    return "".join(parts)


def network_report(
    interfaces: Iterable[InterfaceStats],
    check: NetworkCheck,
    thresholds: Thresholds | None,
    options: Collection[str] = (),
) -> tuple[State, str]:
    """Return the state and the output line of a network check.

    ``options`` holds long option names: ``no-bytes``, ``no-collisions``,
    ``no-drops``, ``no-errors``, ``no-multicast``, ``no-packets``, ``perc``,
    ``rx-only`` and ``tx-only``.
    """
    opts = frozenset(options)
    perc = "perc" in opts
    tx_only = "tx-only" in opts
    rx_only = "rx-only" in opts
    limited = thresholds is not None and (
        thresholds.warning is not None or thresholds.critical is not None
    )
    interfaces = list(interfaces)
    status = State.OK
    perfdata = []
    for iface in interfaces:
        speed = iface.speed * 1000 * 1000 // 8 if iface.speed > 0 else 0
        if perc and limited and speed <= 0:
            reason = (
                ": physical speed is not available"
                if iface.up and iface.running
                else ": link is not UP/RUNNING"
            )
            raise PluginError(
                f"metrics of {iface.name} cannot be converted into percentages{reason}"
            )
        if iface.half_duplex:
            speed //= 2
        counter: float = _check_counter(iface, check, tx_only, rx_only)
        if check is NetworkCheck.BYTES and perc and speed > 0:
            counter = ratio_over_speed(counter, speed)
        status = max(status, get_status(counter, thresholds))
        perfdata.append(_perfdata(iface, speed, opts))

    if not interfaces:
        status = State.UNKNOWN
    names = ",".join(iface.name for iface in interfaces[:MAX_PRINTED_INTERFACES])
    if len(interfaces) > MAX_PRINTED_INTERFACES:
        names += ",..."
    line = (
        f"{check} {status} - found {len(interfaces)} interface(s): {names} "
        f"| {''.join(perfdata)}"
    )
    return status, line


def _read_int(path: Path, base: int = 10, default: int = 0) -> int:
    try:
        return int(path.read_text().strip(), base)
    except (OSError, ValueError):
        return default


def _snapshot(
    root: Path, pattern: re.Pattern[str] | None, no_loopback: bool, no_wireless: bool
) -> dict[str, tuple[int, dict[str, int], Path]]:
    try:
        entries = sorted(root.iterdir())
    except OSError as exc:
        raise PluginError(f"cannot read {root}: {exc.strerror}") from None
    result = {}
    for entry in entries:
        name = entry.name
        if pattern is not None and not pattern.search(name):
            continue
        flags = _read_int(entry / "flags", 16)
        if no_loopback and flags & _IFF_LOOPBACK:
            continue
        if no_wireless and (entry / "wireless").exists():
            continue
        statistics = entry / "statistics"
        counters = {counter: _read_int(statistics / counter) for counter in _COUNTERS}
        result[name] = (flags, counters, entry)
    return result


def _collect_interfaces(
    root: str | Path = SYSFS_NET,
    ifname_regex: str | None = None,
    no_loopback: bool = False,
    no_wireless: bool = False,
    check_link: bool = False,
    delay: int = DELAY_DEFAULT,
) -> list[InterfaceStats]:
    pattern = None
    if ifname_regex:
        try:
            pattern = re.compile(ifname_regex)
        except re.error:
            raise PluginError(f"invalid regular expression: {ifname_regex}") from None
    base = Path(root)
    first = _snapshot(base, pattern, no_loopback, no_wireless)
    second = first
    if delay > 0:
        time.sleep(delay)
        second = _snapshot(base, pattern, no_loopback, no_wireless)
    divisor = max(delay, 1)

    interfaces = []
    for name, (flags, counters, entry) in second.items():
        if name not in first:
            continue
        previous = first[name][1]
        values = {
            counter: max(0, counters[counter] - previous[counter]) // divisor
            for counter in _COUNTERS
        }
        try:
            duplex = (entry / "duplex").read_text().strip()
        except OSError:
            duplex = ""
        iface = InterfaceStats(
            name=name,
            **values,
            speed=max(0, _read_int(entry / "speed")),
            half_duplex=duplex == "half",
            up=bool(flags & _IFF_UP),
            running=bool(flags & _IFF_RUNNING),
        )
        if check_link and not (iface.up and iface.running):
            raise PluginError(f"link down on interface {name}", State.CRITICAL)
        interfaces.append(iface)
    return interfaces


def _metric_keys(iface: InterfaceStats, opts: frozenset[str]) -> list[str]:
    return [
        part.split("=", 1)[0]
        for part in _perfdata(iface, 0, opts).split()
    ]


def _parse_delay(text: str) -> int:
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


_FLAG_OPTIONS = (
    ("-b", "--no-bytes", "omit the rx/tx bytes counter from perfdata"),
    ("-C", "--no-collisions", "omit the collisions counter from perfdata"),
    ("-d", "--no-drops", "omit the rx/tx drop counters from perfdata"),
    ("-e", "--no-errors", "omit the rx/tx errors counters from perfdata"),
    ("-m", "--no-multicast", "omit the multicast counter from perfdata"),
    ("-p", "--no-packets", "omit the rx/tx packets counter from perfdata"),
    ("-r", "--rx-only", "consider the received traffic only in the thresholds"),
    ("-t", "--tx-only", "consider the transmitted traffic only in the thresholds"),
    ("-%", "--perc", "return percentage metrics if possible"),
)


def _build_parser(prog: str) -> argparse.ArgumentParser:
    parser = _Parser(
        prog=prog,
        description="This plugin displays some network interfaces statistics.",
        epilog=(
            "The option --ifname takes a regular expression. You cannot select "
            f"both --rx-only and --tx-only. Examples: {prog} ; "
            f'{prog} --check-link --ifname "^(enp|eth)" 15 ; '
            f'{prog} --perc --ifname "^(enp|eth)" -w 80%% 15'
        ),
    )
    parser.add_argument(
        "-i", "--ifname", metavar="REGEX",
        help="only display interfaces matching a regular expression",
    )
    parser.add_argument(
        "--ifname-debug", action="store_true",
        help="display the list of metric keys and exit",
    )
    parser.add_argument(
        "-k", "--check-link", action="store_true",
        help="report an error if at least a link is down",
    )
    parser.add_argument(
        "-l", "--no-loopback", action="store_true", help="skip the loopback interface"
    )
    parser.add_argument(
        "-W", "--no-wireless", action="store_true", help="skip the wireless interfaces"
    )
    for flag, long_flag, text in _FLAG_OPTIONS:
        parser.add_argument(flag, long_flag, dest=long_flag[2:], action="store_true",
                            help=text)
    parser.add_argument("-w", "--warning", metavar="COUNTER", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="COUNTER", help="critical threshold")
    parser.add_argument(
        "delay", nargs="?",
        help=f"delay between the two network snapshots (default: {DELAY_DEFAULT}sec)",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the network check and return the plugin exit status."""
    progname = Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else PROGRAM
    if not progname.startswith("check_network"):
        progname = PROGRAM
    parser = _build_parser(progname)
    args = parser.parse_args(argv)
    opts = frozenset(
        long_flag[2:] for _, long_flag, _ in _FLAG_OPTIONS
        if getattr(args, long_flag[2:])
    )

    try:
        delay = 0 if args.ifname_debug else DELAY_DEFAULT
        if args.delay is not None:
            if args.ifname_debug:
                parser.print_usage(sys.stderr)
                return int(State.UNKNOWN)
            delay = _parse_delay(args.delay)
        if "tx-only" in opts and "rx-only" in opts:
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)
        check = check_for_progname(progname)
        if _EXCLUDING_OPTION.get(check) in opts:
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)

        interfaces = _collect_interfaces(
            SYSFS_NET, args.ifname, args.no_loopback, args.no_wireless,
            args.check_link, delay,
        )
        if args.ifname_debug:
            for iface in interfaces:
                print(f"{iface.name}: {' '.join(_metric_keys(iface, opts))}")
            return int(State.UNKNOWN)

        try:
            thresholds = set_thresholds(args.warning, args.critical)
        except ValueError:
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)
        status, line = network_report(interfaces, check, thresholds, opts)
    except PluginError as exc:
        print(f"{progname}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())