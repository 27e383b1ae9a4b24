"""Cart persistence port and its local-storage adapter.

The cart store mirrors every state change through this port, which keeps
the durability side effect separate from the aggregate's rules.
"""

import json
from abc import ABC, abstractmethod

from shared.storage import KeyValueStore

CART_STORAGE_KEY = "cart"


class CartPersistence(ABC):
    """Abstract cart persistence interface."""

    @abstractmethod
    def load(self) -> dict | None:
        """Return the last saved ``{items, total, itemCount}`` snapshot, if any."""
        ...

    @abstractmethod
    def save(self, snapshot: dict) -> None:
        """Durably record the given snapshot."""
        ...


class LocalStorageCartPersistence(CartPersistence):
    """Snapshot serialized as JSON under a single local-storage key."""

    def __init__(self, store: KeyValueStore, key: str = CART_STORAGE_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> dict | None:
        raw = self.store.get_item(self.key)
        if not raw:
            return None
        return json.loads(raw)

    def save(self, snapshot: dict) -> None:
        self.store.set_item(self.key, json.dumps(snapshot))
