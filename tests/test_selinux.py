import pytest

from nagplug.selinux import SelinuxMode, selinux_mode, selinux_report
from nagplug.thresholds import State


def test_mode_without_mountpoint():
    assert selinux_mode(None) is SelinuxMode.DISABLED


@pytest.mark.parametrize(
    "content, expected",
    [("1\n", SelinuxMode.ENFORCING), ("0\n", SelinuxMode.PERMISSIVE)],
)
def test_mode_from_enforce_file(tmp_path, content, expected):
    (tmp_path / "enforce").write_text(content)
    assert selinux_mode(tmp_path) is expected


def test_mode_missing_enforce_file(tmp_path):
    assert selinux_mode(tmp_path) is SelinuxMode.DISABLED


def test_report_enforcing():
    status, line = selinux_report(SelinuxMode.ENFORCING, State.WARNING, "/sys/fs/selinux")
    assert status is State.OK
    assert line == (
        "selinux OK - selinux enabled (enforced) (/sys/fs/selinux) | selinux_enabled=1"
    )


def test_report_disabled():
    status, line = selinux_report(SelinuxMode.DISABLED)
    assert status is State.CRITICAL
    assert line == "selinux CRITICAL - selinux disabled | selinux_enabled=0"


@pytest.mark.parametrize(
    "permissive_status, enabled",
    [(State.WARNING, 0), (State.CRITICAL, 0), (State.OK, 1)],
)
def test_report_permissive(permissive_status, enabled):
    status, line = selinux_report(SelinuxMode.PERMISSIVE, permissive_status)
    assert status is permissive_status
    assert "selinux disabled (permissive)" in line
    assert line.endswith(f"selinux_enabled={enabled}")