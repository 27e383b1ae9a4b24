"""Cart store: the single mutation entry point for the shopping cart.

Every change goes through ``CartStore.dispatch``: the command is applied to
the ``ShoppingCart`` aggregate, the resulting snapshot is saved through the
persistence port, and subscribed listeners are notified.
"""

import json
from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError

from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, ClearCart, LoadCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.persistence import CartPersistence, LocalStorageCartPersistence
from shared.storage import get_local_storage

logger = structlog.get_logger(__name__)

Listener = Callable[[ShoppingCart], None]


class CartStore:
    def __init__(self, persistence: CartPersistence, cart: ShoppingCart | None = None) -> None:
        self.persistence = persistence
        self._cart = cart or ShoppingCart.create()
        self._listeners: list[Listener] = []
        self._handlers = {
            AddToCart: self._add_to_cart,
            UpdateCartQuantity: self._update_quantity,
            RemoveFromCart: self._remove_from_cart,
            ClearCart: self._clear_cart,
            LoadCart: self._load_cart,
        }

    @classmethod
    def boot(cls, persistence: CartPersistence) -> "CartStore":
        """Create a store and restore whatever the persistence port holds.

        An unreadable snapshot is logged and the store starts empty.
        """
        store = cls(persistence)
        try:
            snapshot = persistence.load()
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Error loading cart from storage", error=str(exc))
            return store

        if snapshot:
            try:
                store.dispatch(LoadCart(snapshot=json.dumps(snapshot)))
            except (ValidationError, KeyError, TypeError) as exc:
                logger.error("Stored cart snapshot is invalid; starting empty", error=str(exc))
                return cls(persistence)
        return store

    @property
    def cart(self) -> ShoppingCart:
        return self._cart

    def snapshot(self) -> dict:
        return self._cart.to_snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, command):
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported cart command: {type(command).__name__}")

        result = handler(command)
        self.persistence.save(self._cart.to_snapshot())

        for listener in list(self._listeners):
            listener(self._cart)

        return result

    # -------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------
    def _add_to_cart(self, command: AddToCart):
        return self._cart.add_item(
            product_id=command.product_id,
            original_price=command.original_price,
            quantity=command.quantity,
            discount_price=command.discount_price,
            selected_variants=command.selected_variants,
            name=command.name,
            slug=command.slug,
            thumbnail=command.thumbnail,
        )

    def _update_quantity(self, command: UpdateCartQuantity):
        self._cart.update_item_quantity(
            item_id=command.item_id,
            new_quantity=command.new_quantity,
        )

    def _remove_from_cart(self, command: RemoveFromCart):
        self._cart.remove_item(item_id=command.item_id)

    def _clear_cart(self, command: ClearCart):
        logger.info("Clearing cart", cart_id=str(self._cart.id), reason=command.reason)
        self._cart.clear()

    def _load_cart(self, command: LoadCart):
        self._cart.restore(json.loads(command.snapshot))


_current_store: CartStore | None = None


def get_cart_store() -> CartStore:
    """Return the process-wide cart store, restored from local storage on first use."""
    global _current_store
    if _current_store is None:
        _current_store = CartStore.boot(LocalStorageCartPersistence(get_local_storage()))
    return _current_store


def set_cart_store(store: CartStore) -> None:
    global _current_store
    _current_store = store


def reset_cart_store() -> None:
    global _current_store
    _current_store = None
