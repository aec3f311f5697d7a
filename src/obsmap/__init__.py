"""obsmap: observable key-value stores with weak consumer tracking."""

from importlib.metadata import version as _version

__version__ = _version("obsmap")

from obsmap._tracking import get_rendering_ref, rendering
from obsmap.observable_map import ObservableMap, StateProxy, PlainState, Subscription, create_observable_map
from obsmap.subscription import ConsumerSubscription, consumer_subscription
from obsmap.store import create_store
# textual NOT auto-imported, opt-in only

__all__ = [
    "ObservableMap",
    "StateProxy",
    "PlainState",
    "Subscription",
    "create_observable_map",
    "ConsumerSubscription",
    "consumer_subscription",
    "create_store",
    "rendering",
    "get_rendering_ref",
]
