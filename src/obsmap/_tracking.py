"""Consumer tracking context: who is reading the store right now.

Uses contextvars to remember which consumer (a widget, a component, any
weak-referenceable object) is currently rendering. Consumer subscriptions
ask for it on every store read and record it against the key being read.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Iterator

# The consumer currently rendering, if any.
# When set, every store read is attributed to it.
current_consumer: contextvars.ContextVar[Any | None] = contextvars.ContextVar(
    "current_consumer", default=None
)


def get_rendering_ref() -> Any | None:
    """Return the consumer currently rendering, or None outside a render."""
    return current_consumer.get()


@contextmanager
def rendering(consumer: Any) -> Iterator[Any]:
    """Attribute every store read inside the block to ``consumer``.

    Usage:
        with rendering(widget):
            label = store.state.label  # widget now refreshes when label changes

    Nested scopes restore the outer consumer on exit.
    """
    token = current_consumer.set(consumer)
    try:
        yield consumer
    finally:
        current_consumer.reset(token)
