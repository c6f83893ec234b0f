import threading
from unittest.mock import MagicMock

import pytest

from queue_monitor.polling.scheduler import QueuePollingScheduler


def _gate(reason=None):
    gate = MagicMock()
    gate.closed_reason.return_value = reason
    gate.start_hour, gate.end_hour, gate.timezone = 8, 18, "Europe/Warsaw"
    return gate


def test_closed_gate_skips_tick():
    cycle = MagicMock()
    scheduler = QueuePollingScheduler(cycle, _gate("weekend (Sat-Sun)"))

    assert scheduler.tick() is False
    cycle.run.assert_not_called()
    assert scheduler.get_status()["ticks_skipped"] == 1


def test_open_gate_launches_cycle_without_waiting():
    release = threading.Event()
    finished = threading.Event()
    cycle = MagicMock()

    def run():
        release.wait(5)
        finished.set()
    cycle.run.side_effect = run
    scheduler = QueuePollingScheduler(cycle, _gate(), max_concurrent_cycles=2)

    assert scheduler.tick() is True
    assert not finished.is_set()
    release.set()
    assert finished.wait(5)
    scheduler.stop()


def test_overlapping_cycles_are_capped():
    release = threading.Event()
    cycle = MagicMock()
    cycle.run.side_effect = lambda: release.wait(5)
    scheduler = QueuePollingScheduler(cycle, _gate(), max_concurrent_cycles=2)

    assert scheduler.tick() is True
    assert scheduler.tick() is True
    assert scheduler.tick() is False
    status = scheduler.get_status()
    assert status["ticks_launched"] == 2
    assert status["ticks_skipped"] == 1
    release.set()


def test_slot_is_released_after_failed_cycle():
    done = threading.Event()
    cycle = MagicMock()
    scheduler = QueuePollingScheduler(cycle, _gate(), max_concurrent_cycles=1)

    def fail():
        raise RuntimeError("boom")
    cycle.run.side_effect = fail
    scheduler.tick()
    scheduler._executor.shutdown(wait=True)
    scheduler._executor = None

    cycle.run.side_effect = done.set
    assert scheduler.tick() is True
    assert done.wait(5)


def test_start_and_stop_loop():
    cycle = MagicMock()
    scheduler = QueuePollingScheduler(cycle, _gate(), poll_interval=0.01)

    scheduler.start()
    assert scheduler.get_status()["is_running"] is True
    scheduler.stop()

    assert scheduler.get_status()["is_running"] is False
    assert not scheduler.polling_thread.is_alive()


def test_running_loop_ticks_after_interval():
    ran = threading.Event()
    cycle = MagicMock()
    cycle.run.side_effect = ran.set
    scheduler = QueuePollingScheduler(cycle, _gate(), poll_interval=0.01)

    scheduler.start()
    try:
        assert ran.wait(5)
    finally:
        scheduler.stop()
    assert scheduler.get_status()["ticks_launched"] >= 1


def test_running_loop_checks_gate_on_every_tick():
    checked_twice = threading.Event()
    gate = _gate("outside working hours")

    def closed_reason(*args):
        if gate.closed_reason.call_count >= 2:
            checked_twice.set()
        return "outside working hours"
    gate.closed_reason.side_effect = closed_reason
    cycle = MagicMock()
    scheduler = QueuePollingScheduler(cycle, gate, poll_interval=0.01)

    scheduler.start()
    try:
        assert checked_twice.wait(5)
    finally:
        scheduler.stop()
    cycle.run.assert_not_called()
    assert scheduler.get_status()["ticks_skipped"] >= 2


def test_non_positive_interval_is_rejected():
    with pytest.raises(ValueError):
        QueuePollingScheduler(MagicMock(), _gate(), poll_interval=0)
    with pytest.raises(ValueError):
        QueuePollingScheduler(MagicMock(), _gate(), poll_interval=-1)


def test_zero_concurrency_cap_is_rejected():
    with pytest.raises(ValueError):
        QueuePollingScheduler(MagicMock(), _gate(), max_concurrent_cycles=0)
