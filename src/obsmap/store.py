"""Store: an observable map with consumer tracking installed.

create_store() is the usual entry point: it builds the map and wires a
consumer subscription so that whoever rendered a key is refreshed when it
changes. UI bindings (see ``obsmap.textual``) supply the force-update
primitive; the rendering consumer defaults to ``obsmap._tracking``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from obsmap._tracking import get_rendering_ref as _current_consumer
from obsmap.observable_map import DefaultState, ObservableMap, ShouldUpdate, create_observable_map
from obsmap.subscription import consumer_subscription

logger = logging.getLogger("obsmap.store")


def create_store(
    default_state: DefaultState = None,
    should_update: ShouldUpdate | None = None,
    *,
    get_rendering_ref: Callable[[], Any] | None = _current_consumer,
    force_update: Callable[[Any], Any] | None = None,
    proxy: bool = True,
    **subscription_options: Any,
) -> ObservableMap:
    """Create an observable map and install consumer tracking on it.

    Without a ``force_update`` there is nothing to refresh, so the map is
    returned with no subscription installed.

    Usage:
        store = create_store({"count": 0}, force_update=refresh)

        with rendering(widget):
            store.state.count   # widget recorded against "count"

        store.state.count = 1   # refresh(widget)
    """
    store = create_observable_map(default_state, should_update, proxy=proxy)
    subscription = consumer_subscription(get_rendering_ref, force_update, **subscription_options)
    store.use(subscription)
    logger.debug("Created store with keys %s (tracking=%s)", store.keys(), bool(subscription))
    return store
