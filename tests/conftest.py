"""Shared fakes."""

import pytest


class ManualTimer:
    def __init__(self, seconds, callback):
        self.seconds = seconds
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualClock:
    """Timer factory whose timers fire only when told to."""

    def __init__(self):
        self.timers = []

    def __call__(self, seconds, callback):
        timer = ManualTimer(seconds, callback)
        self.timers.append(timer)
        return timer

    def run_all(self):
        timers, self.timers = self.timers, []
        for timer in timers:
            if not timer.cancelled:
                timer.callback()


@pytest.fixture
def clock():
    return ManualClock()
