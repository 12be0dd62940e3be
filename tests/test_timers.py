"""Tests for the clock and scheduler."""

import threading
from datetime import datetime
from unittest.mock import MagicMock

from mission_control.timers import Clock, Scheduler


def test_clock_tick_refreshes_now() -> None:
    """Test manual ticks and listeners."""
    times = iter([datetime(2026, 3, 15, 12, 0, 0), datetime(2026, 3, 15, 12, 0, 1)])
    clock = Clock(interval=0, now_fn=lambda: next(times))
    seen: list[datetime] = []
    clock.on_tick(MagicMock(side_effect=RuntimeError("boom")))
    clock.on_tick(seen.append)

    assert clock.now == datetime(2026, 3, 15, 12, 0, 0)
    clock.tick()

    assert clock.now == datetime(2026, 3, 15, 12, 0, 1)
    assert seen == [clock.now]


def test_clock_without_interval_does_not_start() -> None:
    """Test that a zero interval means manual ticking only."""
    clock = Clock(interval=0)
    clock.start()
    assert not clock.running


def test_clock_runs_and_stops() -> None:
    """Test the background tick thread."""
    clock = Clock(interval=0.01)
    ticked = threading.Event()
    remove = clock.on_tick(lambda _now: ticked.set())

    clock.start()
    try:
        assert ticked.wait(2)
        assert clock.running
    finally:
        clock.stop()
        remove()

    assert not clock.running


def test_scheduler_runs_call_once() -> None:
    """Test a delayed call."""
    scheduler = Scheduler()
    done = threading.Event()
    calls = MagicMock(side_effect=lambda: done.set())

    scheduler.call_later(0.01, calls)

    assert done.wait(2)
    scheduler.join(2)
    calls.assert_called_once()
    assert scheduler.pending == 0


def test_scheduler_cancel_all() -> None:
    """Test that cancelled calls never run."""
    scheduler = Scheduler()
    fn = MagicMock()
    scheduler.call_later(5, fn)
    scheduler.call_later(5, fn)

    assert scheduler.cancel_all() == 2
    assert scheduler.pending == 0
    fn.assert_not_called()


def test_scheduler_cancel_one() -> None:
    """Test cancelling a single call."""
    scheduler = Scheduler()
    fn = MagicMock()
    timer = scheduler.call_later(5, fn)
    scheduler.call_later(5, fn)

    scheduler.cancel(timer)

    assert scheduler.pending == 1
    scheduler.close()


def test_closed_scheduler_drops_calls() -> None:
    """Test that nothing can be scheduled after close."""
    scheduler = Scheduler()
    scheduler.close()
    assert scheduler.closed
    assert scheduler.call_later(0, MagicMock()) is None
    assert scheduler.pending == 0


def test_scheduler_swallows_callback_errors() -> None:
    """Test that a failing call is logged and forgotten."""
    scheduler = Scheduler()
    scheduler.call_later(0, MagicMock(side_effect=RuntimeError("boom")))
    scheduler.join(2)
    assert scheduler.pending == 0
