"""Monitor the hardware temperature reported by the kernel thermal zones."""

from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Iterable, Sequence
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

PROGRAM = "check_temperature"
PROGRAM_SHORT = "temperature"
SYSFS_THERMAL = "/sys/class/thermal"

ABSOLUTE_ZERO = 273.1

_ZONE_NAME = re.compile(r"thermal_zone(\d+)")


class TempUnit(Enum):
    """A temperature scale; the value is the letter used in perfdata."""

    KELVIN = "K"
    CELSIUS = "C"
    FAHRENHEIT = "F"


@dataclass(frozen=True)
class ThermalZone:
    """A thermal zone; temperatures are in millidegrees Celsius."""

    number: int
    temperature: int
    type: str | None = None
    device: str | None = None
    critical: int | None = None


def real_temperature(millidegrees: int, unit: TempUnit) -> tuple[float, str]:
    """Convert millidegrees Celsius to ``unit``; return the value and its scale."""
    celsius = millidegrees / 1000.0
    if unit is TempUnit.CELSIUS:
        return celsius, "°C"
    if unit is TempUnit.FAHRENHEIT:
        return celsius * 1.8 + 32, "°F"
    return celsius + ABSOLUTE_ZERO, "°K"


def _read(path: Path) -> str | None:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def _read_int(path: Path) -> int | None:
    text = _read(path)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _critical_temperature(zone_dir: Path) -> int | None:
    for trip_type in sorted(zone_dir.glob("trip_point_*_type")):
        if _read(trip_type) == "critical":
            temp = zone_dir / trip_type.name.replace("_type", "_temp")
            return _read_int(temp)
    return None


def _device(zone_dir: Path) -> str | None:
    link = zone_dir / "device"
    if not link.exists():
        return None
    return link.resolve().name


def list_zones(root: str | Path = SYSFS_THERMAL) -> list[ThermalZone]:
    """Return the thermal zones with a readable temperature, ordered by number."""
    base = Path(root)
    try:
        entries = list(base.iterdir())
    except OSError as exc:
        raise PluginError(f"cannot read {base}: {exc.strerror}") from None
    zones = []
    for entry in entries:
        match = _ZONE_NAME.fullmatch(entry.name)
        if match is None:
            continue
        temperature = _read_int(entry / "temp")
        if temperature is None:
            continue
        zones.append(
            ThermalZone(
                number=int(match.group(1)),
                temperature=temperature,
                type=_read(entry / "type"),
                device=_device(entry),
                critical=_critical_temperature(entry),
            )
        )
    return sorted(zones, key=lambda zone: zone.number)


def select_zone(zones: Iterable[ThermalZone], zone_number: int | None) -> ThermalZone:
    """Return the zone numbered ``zone_number``, or the hottest one if None."""
    zones = list(zones)
    if zone_number is None:
        if not zones:
            raise PluginError("no thermal zone found")
        return max(zones, key=lambda zone: zone.temperature)
    for zone in zones:
        if zone.number == zone_number:
            return zone
    raise PluginError(f"thermal zone {zone_number} not found")


def temperature_report(
    zone: ThermalZone,
    unit: TempUnit,
    thresholds: Thresholds | None,
    selected: bool = False,
) -> tuple[State, str]:
    """Return the state and the output line of the temperature check.

    ``selected`` tells whether the zone was chosen on the command line; only
    then is its critical trip point added to the perfdata.
    """
    value, scale = real_temperature(zone.temperature, unit)
    status = get_status(value, thresholds)
    line = (
        f"{PROGRAM_SHORT} {status} - +{value:.1f}{scale} "
        f"(thermal zone: {zone.number} [{zone.device or 'n/a'}], "
        f'type: "{zone.type or "n/a"}") | temp={int(value)}{unit.value}'
    )
    critical = int(zone.critical / 1000) if zone.critical is not None else 0
    if critical > 0 and selected:
        line += f";0;{critical}"
    return status, line


def _print_zones(zones: Iterable[ThermalZone]) -> None:
    for zone in zones:
        print(
            f"thermal_zone{zone.number}: type: {zone.type or 'n/a'}, "
            f"temperature: {zone.temperature / 1000.0:.1f}°C"
        )


def _parse_zone(text: str) -> int:
    if not text.isdigit():
        raise PluginError("the option '-t' requires an integer")
    return int(text)


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
            "This plugin monitors the hardware's temperature. It requires the "
            f"sysfs tree {SYSFS_THERMAL} to be mounted and readable."
        ),
        epilog=(
            "If the option -t is not given, the thermal zone with the highest "
            f"temperature is selected. Examples: {PROGRAM} --list ; "
            f"{PROGRAM} -w 80 -c 90 ; {PROGRAM} -t 0 -w 80 -c 90"
        ),
    )
    parser.add_argument(
        "-f", "--fahrenheit", dest="unit", action="store_const",
        const=TempUnit.FAHRENHEIT, help="use fahrenheit as the temperature unit",
    )
    parser.add_argument(
        "-k", "--kelvin", dest="unit", action="store_const",
        const=TempUnit.KELVIN, help="use kelvin as the temperature unit",
    )
    parser.add_argument(
        "-l", "--list", action="store_true",
        help="list all the thermal sensors reported by the kernel",
    )
    parser.add_argument(
        "-t", "--thermal_zone", metavar="NUM",
        help="only consider a specific thermal zone",
    )
    parser.add_argument("-w", "--warning", metavar="COUNTER", help="warning threshold")
    parser.add_argument("-c", "--critical", metavar="COUNTER", help="critical threshold")
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    parser.set_defaults(unit=TempUnit.CELSIUS)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the temperature check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        if args.list:
            _print_zones(list_zones())
            return int(State.UNKNOWN)
        zone_number = None
        if args.thermal_zone is not None:
            zone_number = _parse_zone(args.thermal_zone)
        try:
            thresholds = set_thresholds(args.warning, args.critical)
        except ValueError:
            parser.print_usage(sys.stderr)
            return int(State.UNKNOWN)
        zone = select_zone(list_zones(), zone_number)
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    status, line = temperature_report(zone, args.unit, thresholds, zone_number is not None)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())