"""Trailing-edge debounce: coalesce bursts of calls into one deferred call.

One pending timer at a time: every call cancels the previous timer and arms
a new one with the latest arguments. Only the last call in a burst fires.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def thread_timer(seconds: float, callback: Callable[[], None]) -> threading.Timer:
    """Default timer factory: a started daemon threading.Timer."""
    t = threading.Timer(seconds, callback)
    t.daemon = True
    t.start()
    return t


class Debouncer:
    """Callable wrapper that delays ``fn`` until ``seconds`` of quiet.

    Usage:
        sweep = Debouncer(cleanup, 2.0)
        sweep(table)
        sweep(table)  # previous call dropped; cleanup(table) runs once, 2s from now
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        seconds: float,
        *,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._fn = fn
        self._seconds = seconds
        self._timer_factory = timer_factory or thread_timer
        self._lock = threading.RLock()
        self._timer: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            handle: list[TimerHandle | None] = [None]

            def _fire() -> None:
                with self._lock:
                    # A newer call re-armed the debouncer; this firing is stale.
                    if self._timer is not handle[0]:
                        return
                    self._timer = None
                self._fn(*args, **kwargs)

            handle[0] = self._timer_factory(self._seconds, _fire)
            self._timer = handle[0]

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
