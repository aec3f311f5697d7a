"""Weak append-set: remember interested consumers without keeping them alive."""

from __future__ import annotations

import weakref
from typing import Any


def append_to_map(table: dict[str, list[weakref.ref]], key: str, value: Any) -> None:
    """Record a weak handle to ``value`` under ``key``, at most once per object.

    Dead handles already in the list are left for the sweep; they never
    match a live ``value``.
    """
    refs = table.get(key)
    if refs is None:
        table[key] = [weakref.ref(value)]
    elif not any(ref() is value for ref in refs):
        refs.append(weakref.ref(value))


def is_connected(consumer: Any) -> bool:
    """Consumers without an ``is_connected`` flag count as connected.

    Leaking a handle until it dies is preferable to dropping a consumer
    that still needs updates.
    """
    return bool(getattr(consumer, "is_connected", True))
