import pytest

from nagplug.tcpcount import (
    TcpStates,
    main,
    parse_tcp_table,
    read_tcp_states,
    tcp_report,
)
from nagplug.thresholds import PluginError, State, set_thresholds

HEADER = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when "
    "retrnsmt   uid  timeout inode\n"
)


def _row(index, state):
    return (
        f"   {index}: 0100007F:0277 00000000:0000 {state} 00000000:00000000 "
        f"00:00000000 00000000     0        0 1000{index} 1 0000000000000000 "
        "100 0 0 10 0\n"
    )


SAMPLE = HEADER + "".join(
    _row(i, state) for i, state in enumerate(["0A", "0A", "01", "01", "01", "06", "0B"])
)


def test_parse_tcp_table_counts_states():
    states = parse_tcp_table(SAMPLE)
    assert states.listen == 2
    assert states.established == 3
    assert states.time_wait == 1
    assert states.closing == 1
    assert states.syn_sent == 0


def test_parse_tcp_table_header_only():
    assert parse_tcp_table(HEADER) == TcpStates()


def test_parse_tcp_table_ignores_bad_lines():
    text = HEADER + "garbage\n" + "   0: a b ZZ c\n" + _row(1, "08")
    assert parse_tcp_table(text) == TcpStates(close_wait=1)


def test_states_add():
    total = TcpStates(established=2, listen=1) + TcpStates(established=3)
    assert total == TcpStates(established=5, listen=1)


def test_read_tcp_states(tmp_path):
    (tmp_path / "tcp").write_text(SAMPLE)
    (tmp_path / "tcp6").write_text(HEADER + _row(0, "01"))
    v4 = read_tcp_states(True, False, tmp_path)
    v6 = read_tcp_states(False, True, tmp_path)
    both = read_tcp_states(True, True, tmp_path)
    assert v4 == parse_tcp_table(SAMPLE)
    assert v6 == TcpStates(established=1)
    assert both == v4 + v6


def test_read_tcp_states_missing_table(tmp_path):
    with pytest.raises(PluginError, match="cannot read"):
        read_tcp_states(True, False, tmp_path)


def test_tcp_report_line():
    states = parse_tcp_table(SAMPLE)
    status, line = tcp_report(states, None)
    assert status is State.OK
    assert line.startswith("tcpcount OK - 3 tcp established | tcp_established=3 ")
    assert line.endswith("tcp_listen=2 tcp_closing=1")
    assert line.count("=") == 11


def test_tcp_report_thresholds():
    states = TcpStates(established=3)
    assert tcp_report(states, set_thresholds("2", "5"))[0] is State.WARNING
    assert tcp_report(states, set_thresholds("1", "2"))[0] is State.CRITICAL
    assert tcp_report(states, set_thresholds("5", "10"))[0] is State.OK


def test_main_rejects_bad_thresholds(capsys):
    assert main(["-w", "abc"]) == int(State.UNKNOWN)
    assert "usage" in capsys.readouterr().err