"""Textual integration for obsmap. Opt-in, requires textual.

Widgets whose ``render()`` is decorated with ``tracked`` are recorded
against every store key they read, and refreshed when those keys change:

    store = create_store({"count": 0})

    class Counter(Static):
        @tracked
        def render(self):
            return f"Count: {store.state.count}"

    store.state.count += 1  # every mounted Counter refreshes

Pass ``app=`` to run the interest-table sweep on the app's event loop
instead of a timer thread.
"""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable, TypeVar

from textual.app import App
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widget import Widget

from obsmap import store as _store
from obsmap._debounce import TimerFactory
from obsmap._tracking import rendering
from obsmap.observable_map import DefaultState, ObservableMap, ShouldUpdate

R = TypeVar("R")


def tracked(render: Callable[..., R]) -> Callable[..., R]:
    """Decorator: attribute store reads inside a widget method to the widget."""

    @functools.wraps(render)
    def wrapper(self: Widget, *args: Any, **kwargs: Any) -> R:
        with rendering(self):
            return render(self, *args, **kwargs)

    return wrapper


def is_attached(widget: Widget) -> bool:
    """Is the widget still linked to a running app through the DOM?"""
    return bool(getattr(widget, "is_attached", True))


def force_update(widget: Widget) -> bool:
    """Refresh a widget. Returns False for widgets no longer in the DOM."""
    if not is_attached(widget):
        return False
    try:
        widget.refresh()
    except NoMatches:
        return False
    return True


def on_app_thread(app: App, fn: Callable[..., R]) -> Callable[..., R]:
    """Wrap fn so calls from other threads run on the app thread.

    The app thread is the one calling on_app_thread. Off-thread calls go
    through ``app.call_from_thread``, which waits for and returns the result.
    """
    _main = threading.get_ident()

    @functools.wraps(fn)
    def _guarded(*args: Any) -> R:
        if threading.get_ident() != _main:
            return app.call_from_thread(fn, *args)
        return fn(*args)

    return _guarded


def _stop_timer(timer: Timer) -> None:
    timer.stop()


class _AppTimer:
    """Adapts textual's Timer (stop) to the debouncer's handle (cancel)."""

    __slots__ = ("_timer", "_stop")

    def __init__(self, timer: Timer, stop: Callable[[Timer], None]) -> None:
        self._timer = timer
        self._stop = stop

    def cancel(self) -> None:
        self._stop(self._timer)


def app_timer(app: App) -> TimerFactory:
    """Timer factory that schedules callbacks on the app's event loop."""
    set_timer = on_app_thread(app, app.set_timer)
    stop = on_app_thread(app, _stop_timer)

    def _factory(seconds: float, callback: Callable[[], None]) -> _AppTimer:
        return _AppTimer(set_timer(seconds, callback), stop)

    return _factory


def create_store(
    default_state: DefaultState = None,
    should_update: ShouldUpdate | None = None,
    *,
    app: App | None = None,
    **subscription_options: Any,
) -> ObservableMap:
    """Store whose reads from ``tracked`` widgets refresh those widgets on change.

    With ``app``, call from the app thread: refreshes and sweep timers
    triggered by writes from other threads are marshaled back to it.
    """
    refresh: Callable[[Widget], bool] = force_update
    if app is not None:
        subscription_options.setdefault("timer_factory", app_timer(app))
        refresh = on_app_thread(app, force_update)
    subscription_options.setdefault("is_connected", is_attached)
    return _store.create_store(
        default_state,
        should_update,
        force_update=refresh,
        **subscription_options,
    )
