"""Observable map: a key-value store whose reads and writes can be observed.

Every read fires the ``get`` handlers, every accepted write fires the ``set``
handlers, and reset/dispose re-derive the whole state from the default-state
source. Subscriptions (see ``use``) plug into these four channels.

Two views over the state are available:
- ``StateProxy`` (default) traps attribute and item access, so
  ``store.state.count += 1`` goes through ``get`` and ``set``.
- ``PlainState`` installs one property per known key and re-syncs them on
  reset. Keys never seen by the store have no accessor yet and must go
  through ``store.set``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterator, Protocol, Union

from obsmap._handlers import EVENTS, Disposer, EventBus

ShouldUpdate = Callable[[Any, Any, str], bool]
DefaultState = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]], None]


class Subscription(Protocol):
    """Capability subscription: any subset of the four hooks.

    Plain mappings (``{"get": fn}``) are accepted too.
    """

    def get(self, key: str) -> None: ...

    def set(self, key: str, new_value: Any, old_value: Any) -> None: ...

    def reset(self) -> None: ...

    def dispose(self) -> None: ...


# Marks a key that holds no value; reads still see None.
_MISSING = object()


def _default_should_update(new_value: Any, old_value: Any, key: str) -> bool:
    return new_value is not old_value and new_value != old_value


def _hook(subscription: Any, name: str) -> Callable[..., Any] | None:
    if isinstance(subscription, Mapping):
        hook = subscription.get(name)
    else:
        hook = getattr(subscription, name, None)
    return hook if callable(hook) else None


class ObservableMap:
    """Key-value state with get/set/reset/dispose notifications."""

    def __init__(
        self,
        default_state: DefaultState = None,
        should_update: ShouldUpdate | None = None,
        *,
        proxy: bool = True,
    ) -> None:
        self._default_state = default_state
        self._should_update = should_update or _default_should_update
        self._states: dict[str, Any] = self._resolve_default_state()
        self._events = EventBus()
        # user callback -> (set handler, reset handler, key)
        self._change_listeners: dict[Callable, tuple[Callable, Callable, str]] = {}
        self._proxy = proxy
        self.state: StateProxy | PlainState
        if proxy:
            self.state = StateProxy(self)
        else:
            self.state = PlainState._for_store(self)
            self.state._sync()

    def _resolve_default_state(self) -> dict[str, Any]:
        source = self._default_state
        if callable(source):
            source = source()
        return dict(source) if source is not None else {}

    # --- Reads and writes ---

    def get(self, key: str) -> Any:
        """Fire ``get`` handlers, then return the value (None if never set)."""
        self._events.emit("get", key)
        return self._states.get(key)

    def set(self, key: str, value: Any) -> None:
        """Store value if the comparator accepts it, then fire ``set`` handlers."""
        current = self._states.get(key, _MISSING)
        old_value = None if current is _MISSING else current
        if current is _MISSING and self._should_update is _default_should_update:
            accepted = True  # first write of a key, None included
        else:
            accepted = self._should_update(value, old_value, key)
        if accepted:
            self._states[key] = value
            if not self._proxy:
                self.state._ensure_property(key)
            self._events.emit("set", key, value, old_value)

    def force_update(self, key: str) -> None:
        """Fire ``set`` handlers with the unchanged value, bypassing the comparator."""
        value = self._states.get(key)
        self._events.emit("set", key, value, value)

    def has(self, key: str) -> bool:
        return key in self._states

    def keys(self) -> list[str]:
        return list(self._states)

    # --- Lifecycle ---

    def reset(self) -> None:
        """Re-derive state from the default-state source and fire ``reset`` handlers.

        A factory source is invoked again, so each reset gets whatever fresh
        objects it builds. Nested values it does not rebuild are shared
        across resets.
        """
        self._states = self._resolve_default_state()
        if not self._proxy:
            self.state._sync()
        self._events.emit("reset")

    def dispose(self) -> None:
        """Fire ``dispose`` handlers, then reset. The store stays usable."""
        self._events.emit("dispose")
        self.reset()

    # --- Subscriptions ---

    def on(self, event: str, callback: Callable[..., Any]) -> Disposer:
        """Register a handler for get/set/reset/dispose. Returns its unregister function."""
        return self._events.on(event, callback)

    def on_change(self, key: str, callback: Callable[[Any], Any]) -> Disposer:
        """Call ``callback(value)`` when key is set, and with its default on reset.

        Usage:
            store = create_observable_map({"count": 0})
            stop = store.on_change("count", print)
            store.set("count", 1)  # prints 1
            store.reset()          # prints 0
            stop()
        """

        def _set_handler(changed_key: str, new_value: Any, old_value: Any) -> None:
            if changed_key == key:
                callback(new_value)

        def _reset_handler() -> None:
            callback(self._resolve_default_state().get(key))

        unset = self.on("set", _set_handler)
        unreset = self.on("reset", _reset_handler)
        self._change_listeners[callback] = (_set_handler, _reset_handler, key)

        def _unregister() -> None:
            unset()
            unreset()
            entry = self._change_listeners.get(callback)
            if entry is not None and entry[0] is _set_handler:
                del self._change_listeners[callback]

        return _unregister

    def remove_listener(self, key: str, callback: Callable[[Any], Any]) -> None:
        """Remove an ``on_change`` callback by identity. Unknown callbacks are ignored."""
        entry = self._change_listeners.get(callback)
        if entry is None:
            return
        set_handler, reset_handler, watched_key = entry
        if watched_key != key:
            return
        self._events.remove("set", set_handler)
        self._events.remove("reset", reset_handler)
        del self._change_listeners[callback]

    def use(self, *subscriptions: Subscription | Mapping[str, Any]) -> Disposer:
        """Wire every hook each subscription provides. Returns one function that unwires them all."""
        disposers: list[Disposer] = []
        for subscription in subscriptions:
            for event in EVENTS:
                hook = _hook(subscription, event)
                if hook is not None:
                    disposers.append(self.on(event, hook))

        def _unregister_all() -> None:
            for dispose in disposers:
                dispose()

        return _unregister_all

    def __repr__(self) -> str:
        mode = "proxy" if self._proxy else "plain"
        return f"ObservableMap({self._states!r}, {mode})"


class StateProxy:
    """Live view over an ObservableMap: attribute and item access trap into get/set.

    Iteration, ``len`` and ``keys()`` reflect the current key set; ``in``
    reports which keys hold a value. ``dict(state)`` takes a snapshot.

    ``keys`` and ``_store`` are real attributes: writing them as attributes
    still routes to ``set``, but reading them returns the attribute. Use
    ``state["keys"]`` or ``store.get("keys")`` for keys with those names.
    """

    __slots__ = ("_store",)

    def __init__(self, store: ObservableMap) -> None:
        object.__setattr__(self, "_store", store)

    def __getattr__(self, key: str) -> Any:
        if key.startswith("__"):
            raise AttributeError(key)
        return self._store.get(key)

    def __setattr__(self, key: str, value: Any) -> None:
        self._store.set(key, value)

    def __getitem__(self, key: str) -> Any:
        return self._store.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._store.set(key, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._store.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store.keys())

    def __len__(self) -> int:
        return len(self._store.keys())

    def __dir__(self) -> list[str]:
        return self._store.keys()

    def keys(self) -> list[str]:
        return self._store.keys()

    def __repr__(self) -> str:
        return f"StateProxy({self._store._states!r})"


class PlainState:
    """Accessor-per-key view over an ObservableMap.

    Each store gets its own subclass; known keys become properties on it.
    Accessors are added when a key is first set and re-synced on reset.
    """

    _store: ObservableMap
    _accessors: dict[str, None]

    @classmethod
    def _for_store(cls, store: ObservableMap) -> PlainState:
        state_cls = type("PlainState", (cls,), {"_store": store, "_accessors": {}})
        return state_cls()

    def _ensure_property(self, key: str) -> None:
        cls = type(self)
        if key in cls._accessors:
            return
        cls._accessors[key] = None
        if key in _RESERVED:
            return  # reachable through store.get/set only
        store = cls._store
        setattr(
            cls,
            key,
            property(
                lambda _self, k=key: store.get(k),
                lambda _self, value, k=key: store.set(k, value),
            ),
        )

    def _sync(self) -> None:
        cls = type(self)
        known = set(cls._store.keys())
        for key in list(cls._accessors):
            if key not in known:
                del cls._accessors[key]
                if key not in _RESERVED:
                    delattr(cls, key)
        for key in cls._store.keys():
            self._ensure_property(key)

    def __iter__(self) -> Iterator[str]:
        return iter(list(type(self)._accessors))

    def __len__(self) -> int:
        return len(type(self)._accessors)

    def __contains__(self, key: object) -> bool:
        return key in type(self)._accessors

    def __dir__(self) -> list[str]:
        return list(type(self)._accessors)

    def __repr__(self) -> str:
        return f"PlainState({list(type(self)._accessors)!r})"


# Names an accessor must not shadow.
_RESERVED = frozenset(dir(PlainState)) | {"_store", "_accessors"}


def create_observable_map(
    default_state: DefaultState = None,
    should_update: ShouldUpdate | None = None,
    *,
    proxy: bool = True,
) -> ObservableMap:
    """Create an observable map.

    default_state: initial mapping, or a zero-argument factory re-invoked on
        every reset/dispose. Omitted means an empty store.
    should_update: ``(new, old, key) -> bool`` comparator; defaults to
        "new is a different value from old".
    proxy: trap every access through ``state`` (True) or install one
        property per known key (False).
    """
    return ObservableMap(default_state, should_update, proxy=proxy)
