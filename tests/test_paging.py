from nagplug.paging import PagingData, main, paging_data, paging_report
from nagplug.procfs import VmStat
from nagplug.thresholds import State, set_thresholds

AFTER = VmStat(
    pgpgin=11, pgpgout=12, pgfault=13, pgmajfault=14, pgfree=15,
    pgsteal=16, pgscand=17, pgscank=18, pswpin=19, pswpout=20,
)


def test_paging_data_from_zero_equals_after():
    paging = paging_data(VmStat(), AFTER)
    assert paging.dpgpgin == AFTER.pgpgin
    assert paging.dpgpgout == AFTER.pgpgout
    assert paging.dpgfault == AFTER.pgfault
    assert paging.dpgmajfault == AFTER.pgmajfault
    assert paging.dpgfree == AFTER.pgfree
    assert paging.dpgsteal == AFTER.pgsteal
    assert paging.dpgscand == AFTER.pgscand
    assert paging.dpgscank == AFTER.pgscank
    assert paging.dpswpin == AFTER.pswpin
    assert paging.dpswpout == AFTER.pswpout


def test_summary_is_majfault_by_default():
    paging = paging_data(VmStat(), AFTER, swapping_only=False)
    assert paging.summary == paging.dpgmajfault


def test_summary_is_swap_sum_when_swapping_only():
    paging = paging_data(VmStat(), AFTER, swapping_only=True)
    assert paging.summary == paging.dpswpin + paging.dpswpout


def test_identical_snapshots_give_zero():
    paging = paging_data(AFTER, AFTER)
    assert paging == PagingData()


def test_report_states():
    thresholds = set_thresholds("10", "25")
    assert paging_report(PagingData(summary=5), thresholds)[0] == State.OK
    assert paging_report(PagingData(summary=15), thresholds)[0] == State.WARNING
    assert paging_report(PagingData(summary=30), thresholds)[0] == State.CRITICAL


def test_report_default_line():
    paging = paging_data(VmStat(), AFTER)
    status, line = paging_report(paging, None)
    assert status == State.OK
    assert line.startswith(f"paging OK: {AFTER.pgmajfault} majfault/s | ")
    assert f"vmem_pgpgin/s={AFTER.pgpgin}" in line
    assert "vmem_pswpin/s=" not in line


def test_report_with_swapping():
    paging = paging_data(VmStat(), AFTER)
    _, line = paging_report(paging, None, show_swapping=True)
    assert "vmem_pgmajfault/s=" in line
    assert line.endswith(
        f"vmem_pswpin/s={AFTER.pswpin} vmem_pswpout/s={AFTER.pswpout}"
    )


def test_report_swapping_only():
    paging = paging_data(VmStat(), AFTER, swapping_only=True)
    _, line = paging_report(paging, None, swapping_only=True)
    assert f"{paging.summary} pswp/s" in line
    assert "vmem_pgpgin/s" not in line
    assert "vmem_pswpout/s=" in line


def test_main_bad_threshold_is_unknown(capsys):
    assert main(["-w", "abc"]) == int(State.UNKNOWN)
    assert "usage" in capsys.readouterr().err