"""Report the number of running processes per user."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version

import psutil

from nagplug.thresholds import (
    PluginError,
    State,
    Thresholds,
    get_status,
    set_thresholds,
)

PROGRAM = "check_nbprocs"
PROGRAM_SHORT = "nbprocs"

# An unlimited resource limit is shown as the largest unsigned long.
_UNLIMITED = 2**64 - 1


@dataclass
class UserProcesses:
    """The number of processes (or threads) of one user and its nproc limits.

    The limits are None when they could not be read.
    """

    username: str
    count: int = 0
    rlimit_soft: int | None = None
    rlimit_hard: int | None = None


def _limit_value(value: int) -> int:
    return _UNLIMITED if value < 0 else int(value)


def count_processes(
    processes: Iterable[tuple[str, int, tuple[int, int] | None]],
) -> list[UserProcesses]:
    """Add up processes per user.

    Each item is ``(username, count, nproc_limit)``: ``count`` is 1 for a
    process or its number of threads, ``nproc_limit`` a ``(soft, hard)``
    pair or None. The first limit seen for a user is kept. The result is
    sorted by user name.
    """
    users: dict[str, UserProcesses] = {}
    for username, count, limit in processes:
        entry = users.get(username)
        if entry is None:
            entry = users[username] = UserProcesses(username)
        entry.count += count
        if entry.rlimit_soft is None and limit is not None:
            soft, hard = limit
            entry.rlimit_soft = _limit_value(soft)
            entry.rlimit_hard = _limit_value(hard)
    return sorted(users.values(), key=lambda user: user.username)


def nbprocs_report(
    users: Iterable[UserProcesses], thresholds: Thresholds | None
) -> tuple[State, str]:
    """Return the state and the output line of the processes check."""
    users = list(users)
    total = sum(user.count for user in users)
    status = get_status(total, thresholds)
    perfdata = []
    for user in users:
        if user.rlimit_soft is not None and user.rlimit_hard is not None:
            perfdata.append(
                f"nbr_{user.username}={user.count};"
                f"{user.rlimit_soft};{user.rlimit_hard};0 "
            )
        else:
            perfdata.append(f"nbr_{user.username}={user.count} ")
    line = (
        f"{PROGRAM_SHORT} {status} - {total} running processes | "
        f"{''.join(perfdata)}"
    )
    return status, line


def _nproc_limit(proc: psutil.Process) -> tuple[int, int] | None:
    rlimit = getattr(psutil, "RLIMIT_NPROC", None)
    if rlimit is None:
        return None
    try:
        soft, hard = proc.rlimit(rlimit)
    except (psutil.Error, OSError):
        return None
    return soft, hard


def _system_processes(threads: bool):
    try:
        for proc in psutil.process_iter(["username", "num_threads"]):
            info = proc.info
            username = info.get("username")
            if not username:
                try:
                    username = str(proc.uids().real)
                except (psutil.Error, OSError):
                    continue
            count = (info.get("num_threads") or 1) if threads else 1
            yield username, count, _nproc_limit(proc)
    except OSError as exc:
        raise PluginError(f"cannot read the list of processes: {exc}") from None


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
        description="This plugin displays the number of running processes per user.",
        epilog=f"Examples: {PROGRAM} ; {PROGRAM} --threads -w 1500 -c 2000",
    )
    parser.add_argument(
        "-t", "--threads", action="store_true", help="display the number of threads"
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
    """Run the processes check and return the plugin exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        thresholds = set_thresholds(args.warning, args.critical)
    except ValueError:
        parser.print_usage(sys.stderr)
        return int(State.UNKNOWN)

    try:
        users = count_processes(_system_processes(args.threads))
    except PluginError as exc:
        print(f"{PROGRAM}: {exc.message}", file=sys.stderr)
        return int(exc.status)

    if args.verbose:
        for user in users:
            print(f"{user.username}: {user.count}")
    status, line = nbprocs_report(users, thresholds)
    print(line)
    return int(status)


if __name__ == "__main__":
    sys.exit(main())