"""Event bus: per-event handler lists with O(1) removal.

Four channels: get, set, reset, dispose. Handler order carries no meaning,
so removal swaps the last handler into the freed slot instead of shifting.
"""

from __future__ import annotations

from typing import Any, Callable

Disposer = Callable[[], None]

EVENTS = ("get", "set", "reset", "dispose")


def remove_from_list(items: list, item: Any) -> bool:
    """Swap-remove ``item`` (matched by identity). Returns False if absent."""
    for index, candidate in enumerate(items):
        if candidate is item:
            items[index] = items[-1]
            items.pop()
            return True
    return False


class EventBus:
    """Callback registry for the four store events."""

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {event: [] for event in EVENTS}

    def _channel(self, event: str) -> list[Callable[..., Any]]:
        try:
            return self._handlers[event]
        except KeyError:
            raise ValueError(
                f"Unknown event {event!r}, expected one of {', '.join(EVENTS)}"
            ) from None

    def on(self, event: str, callback: Callable[..., Any]) -> Disposer:
        """Register callback for event. Returns a function that removes it."""
        channel = self._channel(event)
        channel.append(callback)

        def _unregister() -> None:
            remove_from_list(channel, callback)  # no-op when already removed

        return _unregister

    def remove(self, event: str, callback: Callable[..., Any]) -> bool:
        return remove_from_list(self._channel(event), callback)

    def emit(self, event: str, *args: Any) -> None:
        # Snapshot: handlers may unregister themselves (or others) while running.
        for callback in list(self._channel(event)):
            callback(*args)

    def count(self, event: str) -> int:
        return len(self._channel(event))

    def __repr__(self) -> str:
        counts = ", ".join(f"{event}={len(self._handlers[event])}" for event in EVENTS)
        return f"EventBus({counts})"
