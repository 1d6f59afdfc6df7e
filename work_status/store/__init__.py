"""
The store module holds the Work records persisted on the hub.

- Uses NamedResource as the key for all Work records.
- Reads return copies, status writes are conditional on the resource version.
- Provides listeners and a watch API for edge-triggered reconciliation.

This abstract interface allows for various implementations (in-memory,
API server, etc.).
"""

from .store import Store, StoreEvent
from .in_memory import InMemoryStore

__all__ = [
    "Store",
    "StoreEvent",
    "InMemoryStore",
]
