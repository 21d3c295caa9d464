"""Plugin states, Nagios-style threshold ranges and memory unit conversions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum


class State(IntEnum):
    """Exit status of a monitoring plugin."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    def __str__(self) -> str:
        return self.name


class PluginError(Exception):
    """A failure that ends the plugin with the given state."""

    def __init__(self, message: str, status: State = State.UNKNOWN) -> None:
        super().__init__(message)
        self.message = message
        self.status = State(status)


_UNIT_SHIFTS = {
    "B": -10,
    "bytes": -10,
    "kB": 0,
    "KiB": 0,
    "MB": 10,
    "MiB": 10,
    "GB": 20,
    "GiB": 20,
}


@dataclass(frozen=True)
class Unit:
    """An output unit for quantities measured in kilobytes."""

    label: str
    shift: int

    @classmethod
    def from_name(cls, name: str) -> Unit:
        """Build a unit from a name such as ``kB`` or ``MiB``."""
        try:
            shift = _UNIT_SHIFTS[name]
        except KeyError:
            raise PluginError(f"unit type {name} not known") from None
        return cls(name, shift)

    def convert(self, kilobytes: int) -> int:
        """Convert an amount in kilobytes into this unit, rounding down."""
        kilobytes = int(kilobytes)
        if self.shift < 0:
            return kilobytes << -self.shift
        return kilobytes >> self.shift


BYTES = Unit("B", -10)
KILOBYTES = Unit("kB", 0)
MEGABYTES = Unit("MB", 10)
GIGABYTES = Unit("GB", 20)


def _parse_number(text: str) -> tuple[float, bool]:
    percent = text.endswith("%")
    if percent:
        text = text[:-1]
    value = float(text)
    if math.isnan(value):
        raise ValueError(f"not a number: {text!r}")
    return value, percent


@dataclass(frozen=True)
class Range:
    """A threshold range in the ``[@]start:end`` notation."""

    start: float = 0.0
    end: float = math.inf
    alert_on_inside: bool = False
    percent: bool = False

    @classmethod
    def parse(cls, text: str) -> Range:
        """Parse a range; raise ValueError when it cannot be parsed."""
        if not text:
            raise ValueError("empty range")
        inside = text.startswith("@")
        body = text[1:] if inside else text
        percent = False
        if ":" in body:
            start_text, end_text = body.split(":", 1)
            if start_text == "~":
                start = -math.inf
            elif start_text == "":
                start = 0.0
            else:
                start, start_percent = _parse_number(start_text)
                percent = percent or start_percent
            if end_text == "":
                end = math.inf
            else:
                end, end_percent = _parse_number(end_text)
                percent = percent or end_percent
        else:
            start = 0.0
            end, percent = _parse_number(body)
        if start > end:
            raise ValueError(f"range start greater than end: {text!r}")
        return cls(start, end, inside, percent)

    def alerts(self, value: float) -> bool:
        """Tell whether ``value`` falls where this range raises an alert."""
        inside = self.start <= value <= self.end
        return inside if self.alert_on_inside else not inside


@dataclass(frozen=True)
class Thresholds:
    """The warning and critical ranges of a check."""

    warning: Range | None = None
    critical: Range | None = None


def set_thresholds(warning: str | None, critical: str | None) -> Thresholds:
    """Parse the warning and critical options; raise ValueError if unparseable."""
    return Thresholds(
        Range.parse(warning) if warning else None,
        Range.parse(critical) if critical else None,
    )


def get_status(value: float, thresholds: Thresholds | None) -> State:
    """Return the state of ``value`` against the thresholds."""
    if thresholds is None:
        return State.OK
    if thresholds.critical is not None and thresholds.critical.alerts(value):
        return State.CRITICAL
    if thresholds.warning is not None and thresholds.warning.alerts(value):
        return State.WARNING
    return State.OK


def thresholds_expressed_as_percentages(
    warning: str | None, critical: str | None
) -> bool:
    """Tell whether both thresholds are given and both are percentages."""
    return bool(warning) and bool(critical) and "%" in warning and "%" in critical


def perfdata_limit_converted(
    limit: Range | None, base: int, unit: Unit, percent: bool
) -> int | None:
    """Turn a range bound into an absolute perfdata limit in ``unit``.

    The bound used is the end of the range, or its start when the end is
    open. With ``percent`` the bound is taken as a percentage of ``base``
    kilobytes. Return None when no finite bound exists.
    """
    if limit is None:
        return None
    bound = limit.start if math.isinf(limit.end) else limit.end
    if math.isinf(bound):
        return None
    kilobytes = base * bound / 100 if percent else bound
    return unit.convert(int(kilobytes))