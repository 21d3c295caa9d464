import pytest

from nagplug.nbprocs import UserProcesses, count_processes, main, nbprocs_report
from nagplug.thresholds import State, set_thresholds


def test_count_processes_groups_by_user():
    processes = [
        ("root", 1, None),
        ("alice", 1, None),
        ("root", 1, None),
    ]
    users = count_processes(processes)
    assert [user.username for user in users] == ["alice", "root"]
    assert sum(user.count for user in users) == len(processes)


def test_count_processes_keeps_first_limit():
    users = count_processes([("bob", 4, (100, 200)), ("bob", 2, (5, 6))])
    assert users == [UserProcesses("bob", 6, 100, 200)]


def test_count_processes_unlimited_limit():
    users = count_processes([("bob", 1, (-1, -1))])
    assert users[0].rlimit_soft == 18446744073709551615
    assert users[0].rlimit_hard == users[0].rlimit_soft


def test_report_without_limits():
    users = count_processes([("alice", 1, None), ("root", 2, None)])
    status, line = nbprocs_report(users, None)
    assert status is State.OK
    assert line == "nbprocs OK - 3 running processes | nbr_alice=1 nbr_root=2 "


def test_report_with_limits():
    users = [UserProcesses("bob", 1, 100, 200)]
    _, line = nbprocs_report(users, None)
    assert line.endswith("| nbr_bob=1;100;200;0 ")


@pytest.mark.parametrize(
    "warning, critical, expected",
    [("5", "10", State.OK), ("2", "10", State.WARNING), ("1", "2", State.CRITICAL)],
)
def test_report_thresholds(warning, critical, expected):
    users = [UserProcesses("alice", 3)]
    status, line = nbprocs_report(users, set_thresholds(warning, critical))
    assert status is expected
    assert f"nbprocs {expected.name} - 3 running processes" in line


def test_main_rejects_bad_threshold():
    assert main(["-w", "abc"]) == int(State.UNKNOWN)