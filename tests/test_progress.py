import threading

import pytest

from subgroup_miner.exceptions import CancellationError
from subgroup_miner.rule_mining.progress import ExecutionMonitor, ensure_monitor


def test_progress_is_monotonic_and_clamped():
    seen = []
    monitor = ExecutionMonitor(progress_callback=lambda fraction, message: seen.append((fraction, message)))
    monitor.report_progress(0.5, "half")
    monitor.report_progress(0.3, "back")
    monitor.report_progress(1.7, "over")
    assert seen == [(0.5, "half"), (0.5, "back"), (1.0, "over")]
    assert monitor.fraction == 1.0
    assert monitor.message == "over"


def test_sub_progress_maps_onto_parent():
    monitor = ExecutionMonitor()
    monitor.report_progress(0.2)
    child = monitor.sub_progress(0.5)
    child.report_progress(0.5)
    assert monitor.fraction == pytest.approx(0.45)
    assert child.fraction == pytest.approx(0.5)
    grandchild = child.sub_progress(0.5)
    grandchild.report_progress(1.0)
    assert monitor.fraction == pytest.approx(0.7)
    assert monitor.sub_progress(0.0).fraction == 0.0


def test_cancel_through_event():
    event = threading.Event()
    monitor = ExecutionMonitor(cancel_event=event)
    monitor.check_cancelled()
    event.set()
    assert monitor.is_cancelled()
    with pytest.raises(CancellationError):
        monitor.check_cancelled()


def test_cancel_is_shared_with_children():
    monitor = ExecutionMonitor()
    child = monitor.sub_progress(0.5)
    child.cancel()
    assert monitor.is_cancelled()
    with pytest.raises(CancellationError):
        child.sub_progress(0.1).check_cancelled()


def test_callable_cancel_check():
    flags = [False]
    monitor = ExecutionMonitor(cancel_event=lambda: flags[0])
    assert not monitor.is_cancelled()
    flags[0] = True
    assert monitor.is_cancelled()
    with pytest.raises(TypeError):
        monitor.cancel()


def test_verbose_bar_closes():
    monitor = ExecutionMonitor(verbose=True, desc="test")
    monitor.report_progress(0.5, "half")
    monitor.close()
    monitor.close()
    assert monitor.fraction == 0.5


def test_ensure_monitor():
    monitor = ExecutionMonitor()
    assert ensure_monitor(monitor) is monitor
    assert isinstance(ensure_monitor(None), ExecutionMonitor)


def test_reset_restarts_progress_and_keeps_cancel_event():
    seen = []
    event = threading.Event()
    monitor = ExecutionMonitor(progress_callback=lambda fraction, message: seen.append(fraction), cancel_event=event)
    monitor.report_progress(1.0, "done")
    monitor.reset()
    assert monitor.fraction == 0.0
    assert monitor.message == ''
    monitor.sub_progress(0.5).report_progress(0.5)
    assert seen == [1.0, 0.25]
    event.set()
    assert monitor.is_cancelled()


def test_verbose_reset_reopens_bar():
    monitor = ExecutionMonitor(verbose=True, desc="test")
    monitor.report_progress(1.0)
    monitor.reset()
    monitor.report_progress(0.5)
    assert monitor.fraction == 0.5
    monitor.close()
