"""Consumer subscription: refresh whoever rendered a key when it changes.

On every store read, the consumer currently rendering (see
``obsmap._tracking``) is recorded against the key through a weak reference.
When the key is set, or the store resets, each recorded consumer that is
still alive gets a forced update. Consumers whose update reports them as
gone are dropped. A debounced sweep prunes dead and disconnected consumers
that were never notified again.

Nothing here keeps a consumer alive: once the UI lets go of a widget, its
entries simply stop resolving.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Any, Callable

from obsmap._debounce import Debouncer, TimerFactory
from obsmap._weak import append_to_map, is_connected as _is_connected

logger = logging.getLogger("obsmap.subscription")

SWEEP_DELAY = 2.0

InterestTable = dict[str, list[weakref.ref]]


class ConsumerSubscription:
    """Capability subscription tracking consumers per key.

    Only the four hooks are public; ``use`` wires them into a store.
    """

    def __init__(
        self,
        get_rendering_ref: Callable[[], Any],
        force_update: Callable[[Any], Any],
        *,
        is_connected: Callable[[Any], bool] = _is_connected,
        sweep_delay: float = SWEEP_DELAY,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._get_rendering_ref = get_rendering_ref
        self._force_update = force_update
        self._is_connected = is_connected
        # key -> weak handles of consumers that read it
        self._interest: InterestTable = {}
        # Timer-thread sweeps and store operations share the table.
        self._lock = threading.RLock()
        self._cleanup = Debouncer(self._sweep, sweep_delay, timer_factory=timer_factory)

    # --- Hooks ---

    def get(self, key: str) -> None:
        consumer = self._get_rendering_ref()
        if consumer is not None:
            with self._lock:
                append_to_map(self._interest, key, consumer)

    def set(self, key: str, new_value: Any = None, old_value: Any = None) -> None:
        with self._lock:
            refs = list(self._interest.get(key, ()))
        self._drop(key, self._notify(refs))
        self._cleanup(self._interest)

    def reset(self) -> None:
        with self._lock:
            snapshot = [(key, list(refs)) for key, refs in self._interest.items()]
        for key, refs in snapshot:
            self._drop(key, self._notify(refs))
        self._cleanup(self._interest)

    def dispose(self) -> None:
        with self._lock:
            self._interest.clear()

    # --- Internals ---

    def _notify(self, refs: list[weakref.ref]) -> list[weakref.ref]:
        """Force-update each live consumer; return the handles to drop.

        Runs without the lock: an update may re-render and read the store,
        or block on another thread that does.
        """
        gone = []
        for ref in refs:
            consumer = ref()
            if consumer is None or not self._force_update(consumer):
                gone.append(ref)
        return gone

    def _drop(self, key: str, gone: list[weakref.ref]) -> None:
        if not gone:
            return
        gone_ids = {id(ref) for ref in gone}
        with self._lock:
            refs = self._interest.get(key)
            if refs is not None:
                # Handles recorded meanwhile stay.
                self._interest[key] = [ref for ref in refs if id(ref) not in gone_ids]

    def _sweep(self, table: InterestTable) -> None:
        with self._lock:
            dropped = 0
            for key in list(table):
                refs = table[key]
                alive = []
                for ref in refs:
                    consumer = ref()
                    if consumer is not None and self._is_connected(consumer):
                        alive.append(ref)
                dropped += len(refs) - len(alive)
                table[key] = alive
        logger.debug("Swept interest table: %d keys, %d handles dropped", len(table), dropped)

    def consumers(self, key: str) -> list[Any]:
        """Live consumers recorded for key. Useful for testing."""
        with self._lock:
            refs = list(self._interest.get(key, ()))
        return [c for c in (ref() for ref in refs) if c is not None]

    def __repr__(self) -> str:
        return f"ConsumerSubscription({len(self._interest)} keys)"


def consumer_subscription(
    get_rendering_ref: Callable[[], Any] | None,
    force_update: Callable[[Any], Any] | None,
    **options: Any,
) -> ConsumerSubscription | dict:
    """Build a consumer subscription, or an empty one if a primitive is missing.

    get_rendering_ref: returns the consumer currently rendering, or None.
    force_update: re-renders a consumer; a falsy result means it is gone.
    options: ``is_connected``, ``sweep_delay``, ``timer_factory``.

    Without both primitives the returned ``{}`` has no hooks, so ``use``
    installs nothing.
    """
    if not callable(get_rendering_ref) or not callable(force_update):
        logger.debug("Consumer tracking unavailable; installing no hooks")
        return {}
    return ConsumerSubscription(get_rendering_ref, force_update, **options)
