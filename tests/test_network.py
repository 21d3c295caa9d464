import re

import pytest

from nagplug.network import (
    InterfaceStats,
    NetworkCheck,
    _collect_interfaces,
    check_for_progname,
    fmt_perfdata_bytes,
    main,
    network_report,
    ratio_over_speed,
    threshold_metric,
)
from nagplug.thresholds import PluginError, State, set_thresholds


def test_threshold_metric_selects_directions():
    assert threshold_metric(7, 11, True, False) == 11
    assert threshold_metric(7, 11, False, True) == 7
    assert threshold_metric(7, 11, True, True) == 0
    both = threshold_metric(7, 11, False, False)
    assert both == threshold_metric(7, 11, True, False) + threshold_metric(
        7, 11, False, True
    )


def test_ratio_over_speed():
    assert ratio_over_speed(4096, 4096) == pytest.approx(100.0)
    assert ratio_over_speed(0, 4096) == 0


def test_fmt_perfdata_bytes_plain_and_with_speed():
    assert fmt_perfdata_bytes("eth0", "txbyte", 500, 1000, False) == (
        "eth0_txbyte/s=500;;;0;1000"
    )
    assert fmt_perfdata_bytes("eth0", "txbyte", 500, 0, False) == "eth0_txbyte/s=500"
    assert fmt_perfdata_bytes("eth0", "rxbyte", 500, 0, True) == "eth0_rxbyte/s=500"


def test_fmt_perfdata_bytes_percentage():
    assert fmt_perfdata_bytes("eth0", "rxbyte", 1000, 1000, True) == (
        "eth0_rxbyte/s=100.00%;;;0;100.0"
    )


@pytest.mark.parametrize(
    "progname, expected",
    [
        ("check_network", NetworkCheck.BYTES),
        ("check_network_collisions", NetworkCheck.COLLISIONS),
        ("check_network_dropped", NetworkCheck.DROPPED),
        ("check_network_errors", NetworkCheck.ERRORS),
        ("check_network_multicast", NetworkCheck.MULTICAST),
        ("/opt/plugins/check_network_errors", NetworkCheck.ERRORS),
    ],
)
def test_check_for_progname(progname, expected):
    assert check_for_progname(progname) is expected


@pytest.mark.parametrize("progname", ["network", "check_", "nagios_network"])
def test_check_for_progname_rejects_bad_names(progname):
    with pytest.raises(PluginError, match="standard name"):
        check_for_progname(progname)


def test_check_names():
    assert str(check_for_progname("check_network_dropped")) == "network dropped"
    assert str(check_for_progname("check_network")) == "network"


def test_report_without_interfaces_is_unknown():
    status, line = network_report([], NetworkCheck.BYTES, None)
    assert status is State.UNKNOWN
    assert "found 0 interface(s)" in line


def test_report_speed_in_bytes_per_second():
    iface = InterfaceStats("eth0", tx_bytes=10, rx_bytes=20, speed=8)
    status, line = network_report([iface], NetworkCheck.BYTES, None)
    assert status is State.OK
    assert "eth0_txbyte/s=10;;;0;1000000" in line
    assert line.startswith("network OK - found 1 interface(s): eth0 | ")


def test_report_half_duplex_halves_speed():
    def speed_of(half):
        iface = InterfaceStats("eth0", tx_bytes=1, speed=100, half_duplex=half)
        _, line = network_report([iface], NetworkCheck.BYTES, None)
        return int(re.search(r"eth0_txbyte/s=1;;;0;(\d+)", line).group(1))

    assert speed_of(False) == 2 * speed_of(True)


def test_report_truncates_interface_list():
    names = [f"if{n}" for n in range(7)]
    interfaces = [InterfaceStats(name) for name in names]
    _, line = network_report(interfaces, NetworkCheck.BYTES, None)
    header = line.split(" | ")[0]
    assert header.endswith(",".join(names[:5]) + ",...")
    assert "if5" not in header
    assert "found 7 interface(s)" in header


def test_report_percent_without_speed_fails():
    thresholds = set_thresholds("50", "90")
    with pytest.raises(PluginError, match="physical speed is not available"):
        network_report([InterfaceStats("eth0")], NetworkCheck.BYTES, thresholds, {"perc"})
    down = InterfaceStats("eth0", up=False, running=False)
    with pytest.raises(PluginError, match="link is not UP/RUNNING"):
        network_report([down], NetworkCheck.BYTES, thresholds, {"perc"})


def test_report_percent_changes_counter():
    iface = InterfaceStats("eth0", rx_bytes=400000, speed=8)
    thresholds = set_thresholds("50", "90")
    perc_status, perc_line = network_report(
        [iface], NetworkCheck.BYTES, thresholds, {"perc"}
    )
    raw_status, _ = network_report([iface], NetworkCheck.BYTES, thresholds)
    assert perc_status is State.OK
    assert raw_status is State.CRITICAL
    assert ";;;0;100.0" in perc_line


def test_report_takes_worst_status():
    thresholds = set_thresholds("3", "20")
    interfaces = [
        InterfaceStats("eth0", tx_errors=1),
        InterfaceStats("eth1", tx_errors=30),
    ]
    status, _ = network_report(interfaces, NetworkCheck.ERRORS, thresholds)
    assert status is State.CRITICAL


def test_report_rx_and_tx_only():
    thresholds = set_thresholds("5", "50")
    iface = InterfaceStats("eth0", tx_errors=10, rx_errors=0)
    assert network_report([iface], NetworkCheck.ERRORS, thresholds, {"rx-only"})[0] is State.OK
    assert (
        network_report([iface], NetworkCheck.ERRORS, thresholds, {"tx-only"})[0]
        is State.WARNING
    )


def test_report_omits_selected_perfdata():
    iface = InterfaceStats("eth0")
    _, full = network_report([iface], NetworkCheck.BYTES, None)
    _, reduced = network_report(
        [iface], NetworkCheck.BYTES, None, {"no-bytes", "no-multicast"}
    )
    assert "eth0_txbyte/s" in full and "eth0_mcast/s" in full
    assert "eth0_txbyte/s" not in reduced
    assert "eth0_mcast/s" not in reduced
    assert "eth0_coll/s" in reduced


def _fake_iface(root, name, flags, speed="1000", duplex="full"):
    entry = root / name
    (entry / "statistics").mkdir(parents=True)
    (entry / "flags").write_text(flags + "\n")
    (entry / "speed").write_text(speed + "\n")
    (entry / "duplex").write_text(duplex + "\n")
    for counter in ("rx_bytes", "tx_bytes", "collisions"):
        (entry / "statistics" / counter).write_text("42\n")


def test_collect_interfaces_from_sysfs(tmp_path):
    _fake_iface(tmp_path, "eth0", "0x1043", duplex="half")
    _fake_iface(tmp_path, "lo", "0x9")
    interfaces = _collect_interfaces(tmp_path, delay=0)
    assert [iface.name for iface in interfaces] == ["eth0", "lo"]
    eth0 = interfaces[0]
    assert eth0.speed == 1000
    assert eth0.half_duplex is True
    assert eth0.up and eth0.running
    assert eth0.rx_bytes == 0

    assert [i.name for i in _collect_interfaces(tmp_path, no_loopback=True, delay=0)] == [
        "eth0"
    ]
    assert [i.name for i in _collect_interfaces(tmp_path, "^l", delay=0)] == ["lo"]


def test_collect_interfaces_check_link(tmp_path):
    _fake_iface(tmp_path, "eth0", "0x1002")
    with pytest.raises(PluginError) as info:
        _collect_interfaces(tmp_path, check_link=True, delay=0)
    assert info.value.status is State.CRITICAL


def test_collect_interfaces_bad_regex(tmp_path):
    with pytest.raises(PluginError, match="regular expression"):
        _collect_interfaces(tmp_path, "(", delay=0)


def test_main_rejects_rx_and_tx_only():
    assert main(["-r", "-t"]) == int(State.UNKNOWN)


def test_main_rejects_bad_delay(capsys):
    assert main(["0"]) == int(State.UNKNOWN)
    assert "delay must be positive integer" in capsys.readouterr().err


def test_main_rejects_delay_with_debug():
    assert main(["--ifname-debug", "5"]) == int(State.UNKNOWN)