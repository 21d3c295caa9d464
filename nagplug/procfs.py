"""Readers for the kernel memory and virtual memory statistics."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from nagplug.thresholds import PluginError

PROC_MEMINFO = "/proc/meminfo"
PROC_VMSTAT = "/proc/vmstat"


@dataclass(frozen=True)
class MemInfo:
    """System memory and swap figures, all in kilobytes."""

    main_total: int = 0
    main_free: int = 0
    main_available: int = 0
    main_buffers: int = 0
    main_cached: int = 0
    main_shared: int = 0
    main_used: int = 0
    active: int = 0
    inactive: int = 0
    anon_pages: int = 0
    committed_as: int = 0
    dirty: int = 0
    swap_total: int = 0
    swap_free: int = 0
    swap_cached: int = 0
    swap_used: int = 0


@dataclass(frozen=True)
class VmStat:
    """Virtual memory event counters."""

    pgpgin: int = 0
    pgpgout: int = 0
    pgfault: int = 0
    pgmajfault: int = 0
    pgfree: int = 0
    pgsteal: int = 0
    pgscand: int = 0
    pgscank: int = 0
    pswpin: int = 0
    pswpout: int = 0


def _read_text(path: str | Path) -> str:
    try:
        return Path(path).read_text()
    except OSError as exc:
        raise PluginError(f"cannot read {path}: {exc.strerror}") from None


def _meminfo_values(text: str) -> dict[str, int]:
    values: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        words = rest.split()
        if not sep or not words:
            continue
        try:
            values[key.strip()] = int(words[0])
        except ValueError:
            continue
    return values


def parse_meminfo(text: str) -> MemInfo:
    """Parse the content of a meminfo file; missing fields count as zero."""
    values = _meminfo_values(text)
    total = values.get("MemTotal", 0)
    free = values.get("MemFree", 0)
    buffers = values.get("Buffers", 0)
    cached = values.get("Cached", 0) + values.get("SReclaimable", 0)
    used = total - free - buffers - cached
    if used < 0:
        used = total - free
    swap_total = values.get("SwapTotal", 0)
    swap_free = values.get("SwapFree", 0)
    return MemInfo(
        main_total=total,
        main_free=free,
        main_available=values.get("MemAvailable", free),
        main_buffers=buffers,
        main_cached=cached,
        main_shared=values.get("Shmem", values.get("MemShared", 0)),
        main_used=used,
        active=values.get("Active", 0),
        inactive=values.get("Inactive", 0),
        anon_pages=values.get("AnonPages", 0),
        committed_as=values.get("Committed_AS", 0),
        dirty=values.get("Dirty", 0),
        swap_total=swap_total,
        swap_free=swap_free,
        swap_cached=values.get("SwapCached", 0),
        swap_used=swap_total - swap_free,
    )


def read_meminfo(path: str | Path = PROC_MEMINFO) -> MemInfo:
    """Read and parse a meminfo file."""
    return parse_meminfo(_read_text(path))


def _family(values: dict[str, int], name: str) -> int:
    if name in values:
        return values[name]
    prefix = name + "_"
    return sum(
        value
        for key, value in values.items()
        if key.startswith(prefix) and not key.endswith("_throttle")
    )


def parse_vmstat(text: str) -> VmStat:
    """Parse the content of a vmstat file; missing counters count as zero."""
    values: dict[str, int] = {}
    for line in text.splitlines():
        words = line.split()
        if len(words) < 2:
            continue
        try:
            values[words[0]] = int(words[1])
        except ValueError:
            continue
    if any(key.startswith(("pgsteal_kswapd", "pgsteal_direct")) for key in values):
        pgsteal = _family(values, "pgsteal_kswapd") + _family(values, "pgsteal_direct")
    else:
        pgsteal = _family(values, "pgsteal")
    return VmStat(
        pgpgin=values.get("pgpgin", 0),
        pgpgout=values.get("pgpgout", 0),
        pgfault=values.get("pgfault", 0),
        pgmajfault=values.get("pgmajfault", 0),
        pgfree=values.get("pgfree", 0),
        pgsteal=pgsteal,
        pgscand=_family(values, "pgscan_direct"),
        pgscank=_family(values, "pgscan_kswapd"),
        pswpin=values.get("pswpin", 0),
        pswpout=values.get("pswpout", 0),
    )


def read_vmstat(path: str | Path = PROC_VMSTAT) -> VmStat:
    """Read and parse a vmstat file."""
    return parse_vmstat(_read_text(path))


def vmstat_delta(before: VmStat, after: VmStat) -> VmStat:
    """Return the change of every counter between two snapshots."""
    return VmStat(
        **{
            field.name: getattr(after, field.name) - getattr(before, field.name)
            for field in fields(VmStat)
        }
    )