from unittest.mock import patch

import pytest

from nagplug.load import (
    format_load,
    loadavg_status,
    main,
    normalize_loadavg,
    parse_load_thresholds,
)
from nagplug.thresholds import PluginError, State


@pytest.mark.parametrize(
    "loadavg, wload, cload, required, expected",
    [
        ((2.8, 1.9, 1.3), (3.0, 3.0, 3.0), (4.0, 4.0, 4.0), (True, True, True), State.OK),
        ((2.8, 1.9, 1.3), (3.0, 1.5, 1.5), (4.0, 4.0, 4.0), (True, True, True), State.WARNING),
        ((2.8, 1.9, 1.3), (3.0, 1.5, 1.5), (4.0, 4.0, 4.0), (True, False, False), State.OK),
        ((2.8, 1.9, 1.3), (3.0, 1.5, 1.5), (4.0, 4.0, 4.0), (False, True, False), State.WARNING),
        ((2.8, 1.9, 1.3), (3.0, 1.5, 1.5), (4.0, 4.0, 4.0), (False, False, True), State.OK),
        ((2.8, 1.9, 1.3), (3.0, 1.5, 1.5), (4.0, 4.0, 4.0), (False, True, True), State.WARNING),
        ((2.8, 1.9, 5.5), (1.0, 2.0, 2.0), (3.0, 3.0, 4.0), (True, True, True), State.CRITICAL),
        ((2.8, 1.9, 5.5), (1.0, 2.0, 2.0), (3.0, 3.0, 4.0), (True, False, False), State.WARNING),
        ((2.8, 1.9, 5.5), (1.0, 2.0, 3.0), (3.0, 3.0, 6.0), (False, True, False), State.OK),
        ((2.8, 1.9, 5.5), (1.0, 2.0, 3.0), (3.0, 3.0, 6.0), (False, False, True), State.WARNING),
    ],
)
def test_loadavg_status(loadavg, wload, cload, required, expected):
    assert loadavg_status(loadavg, wload, cload, required) is expected


@pytest.mark.parametrize(
    "text, expected",
    [("2,3", (2.0, 3.0)), ("1.5,2.5", (1.5, 2.5)), (" 1, 2", (1.0, 2.0)), ("1,2xyz", (1.0, 2.0))],
)
def test_parse_load_thresholds(text, expected):
    assert parse_load_thresholds(text) == expected


@pytest.mark.parametrize("text", ["3,2", "2,2", "2", "", "a,b", "2 ,3"])
def test_parse_load_thresholds_bad(text):
    with pytest.raises(PluginError) as info:
        parse_load_thresholds(text)
    assert info.value.message == "command line error: bad thresholds"
    assert info.value.status is State.UNKNOWN


def test_normalize_divides_by_cpus():
    assert normalize_loadavg((4.0, 2.0, 1.0), 4) == (1.0, 0.5, 0.25)


def test_normalize_single_cpu_unchanged():
    assert normalize_loadavg((4.0, 2.0, 1.0), 1) == (4.0, 2.0, 1.0)


def test_format_load():
    line = format_load(
        State.WARNING, (2.5, 1.0, 0.5), (2.0, 0.0, 0.0), (3.0, 0.0, 0.0)
    )
    assert line == (
        "load WARNING - average: 2.50, 1.00, 0.50 | "
        "load1=2.500;2.000;3.000;0 load5=1.000;0.000;0.000;0 "
        "load15=0.500;0.000;0.000;0"
    )


def test_main_warning(capsys):
    with patch("nagplug.load.os.getloadavg", return_value=(2.5, 1.0, 0.5)):
        status = main(["-1", "2,3"])
    assert status == int(State.WARNING)
    assert capsys.readouterr().out == (
        "load WARNING - average: 2.50, 1.00, 0.50 | "
        "load1=2.500;2.000;3.000;0 load5=1.000;0.000;0.000;0 "
        "load15=0.500;0.000;0.000;0\n"
    )


def test_main_critical_on_load15(capsys):
    with patch("nagplug.load.os.getloadavg", return_value=(0.1, 0.2, 9.0)):
        status = main(["--load15=1.5,2.5"])
    assert status == int(State.CRITICAL)
    assert capsys.readouterr().out.startswith("load CRITICAL - average:")


def test_main_bad_thresholds(capsys):
    with patch("nagplug.load.os.getloadavg", return_value=(0.1, 0.2, 0.3)):
        status = main(["-5", "3,2"])
    assert status == int(State.UNKNOWN)
    assert "bad thresholds" in capsys.readouterr().err


def test_main_unobtainable(capsys):
    with patch("nagplug.load.os.getloadavg", side_effect=OSError):
        status = main([])
    assert status == int(State.UNKNOWN)
    assert "unobtainable" in capsys.readouterr().err


def test_main_unknown_option():
    with pytest.raises(SystemExit) as info:
        main(["--bogus"])
    assert info.value.code == int(State.UNKNOWN)