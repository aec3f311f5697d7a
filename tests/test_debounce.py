"""Tests for the trailing-edge debouncer."""

import threading

from obsmap._debounce import Debouncer


class TestDebouncer:
    def test_coalesces_burst(self, clock):
        log = []
        d = Debouncer(log.append, 0.1, timer_factory=clock)
        d(1)
        d(2)
        d(3)
        assert log == []
        clock.run_all()
        assert log == [3]

    def test_cancels_previous_timer(self, clock):
        d = Debouncer(lambda: None, 0.1, timer_factory=clock)
        d()
        first = clock.timers[0]
        d()
        assert first.cancelled
        assert not clock.timers[1].cancelled
        assert clock.timers[1].seconds == 0.1

    def test_stale_firing_ignored(self, clock):
        # A timer that fires despite being cancelled (thread race) must not run fn.
        log = []
        d = Debouncer(log.append, 0.1, timer_factory=clock)
        d("old")
        d("new")
        clock.timers[0].callback()
        assert log == []
        clock.timers[1].callback()
        assert log == ["new"]

    def test_pending_flag(self, clock):
        d = Debouncer(lambda: None, 0.1, timer_factory=clock)
        assert not d.pending
        d()
        assert d.pending
        clock.run_all()
        assert not d.pending

    def test_cancel(self, clock):
        log = []
        d = Debouncer(log.append, 0.1, timer_factory=clock)
        d(1)
        d.cancel()
        assert not d.pending
        clock.run_all()
        assert log == []

    def test_rearms_after_firing(self, clock):
        log = []
        d = Debouncer(log.append, 0.1, timer_factory=clock)
        d(1)
        clock.run_all()
        d(2)
        clock.run_all()
        assert log == [1, 2]

    def test_thread_timer_default(self):
        fired = threading.Event()
        d = Debouncer(fired.set, 0.01)
        d()
        d()
        assert fired.wait(timeout=2)
