"""Check whether SELinux is enabled and enforcing."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from enum import IntEnum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from nagplug.thresholds import State

PROGRAM = "check_selinux"
PROGRAM_SHORT = "selinux"
PROC_MOUNTS = "/proc/mounts"
SELINUXFS_DEFAULT = "/sys/fs/selinux"


class SelinuxMode(IntEnum):
    """The SELinux operating mode."""

    DISABLED = 0
    PERMISSIVE = 1
    ENFORCING = 2


def _find_selinuxfs(mounts: str | Path = PROC_MOUNTS) -> str | None:
    try:
        text = Path(mounts).read_text()
    except OSError:
        text = ""
    for line in text.splitlines():
        words = line.split()
        if len(words) >= 3 and words[2] == "selinuxfs":
            return words[1]
    if Path(SELINUXFS_DEFAULT, "enforce").exists():
        return SELINUXFS_DEFAULT
    return None


def selinux_mode(mountpoint: str | Path | None) -> SelinuxMode:
    """Return the SELinux mode read from the selinuxfs mounted at ``mountpoint``."""
    if mountpoint is None:
        return SelinuxMode.DISABLED
    try:
        value = Path(mountpoint, "enforce").read_text().strip()
    except OSError:
        return SelinuxMode.DISABLED
    if value == "1":
        return SelinuxMode.ENFORCING
    if value == "0":
        return SelinuxMode.PERMISSIVE
    return SelinuxMode.DISABLED


_DESCRIPTIONS = {
    SelinuxMode.DISABLED: "disabled",
    SelinuxMode.PERMISSIVE: "disabled (permissive)",
    SelinuxMode.ENFORCING: "enabled (enforced)",
}


def selinux_report(
    mode: SelinuxMode,
    permissive_status: State = State.WARNING,
    mountpoint: str | None = None,
) -> tuple[State, str]:
    """Return the state and the output line of the SELinux check."""
    if mode is SelinuxMode.ENFORCING:
        status = State.OK
    elif mode is SelinuxMode.PERMISSIVE:
        status = State(permissive_status)
    else:
        status = State.CRITICAL
    where = f" ({mountpoint})" if mountpoint else ""
    enabled = 1 if status is State.OK else 0
    line = (
        f"{PROGRAM_SHORT} {status} - selinux {_DESCRIPTIONS[mode]}{where} "
        f"| selinux_enabled={enabled}"
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
        description="This plugin checks if SELinux is enabled.",
        epilog=(
            "By default, permissive mode raises a warning. Use the option -P to "
            "turn it into a critical error or -p to consider it a valid "
            f"configuration. Examples: {PROGRAM} ; {PROGRAM} --permissive-is-allowed"
        ),
    )
    parser.add_argument(
        "-p", "--permissive-is-allowed", dest="permissive", action="store_const",
        const=State.OK, help="permissive mode does not generate a warning",
    )
    parser.add_argument(
        "-P", "--permissive-is-critical", dest="permissive", action="store_const",
        const=State.CRITICAL, help="permissive mode is to be considered critical",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s (nagplug) v{_program_version()}",
    )
    parser.set_defaults(permissive=State.WARNING)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the SELinux check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    mountpoint = _find_selinuxfs()
    mode = selinux_mode(mountpoint)
    status, line = selinux_report(mode, args.permissive, mountpoint)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())