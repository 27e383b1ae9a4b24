"""Application tests for the cart store: dispatch, persistence and boot."""

import json

import pytest
from ordering.cart.items import AddToCart, ClearCart, LoadCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.persistence import CART_STORAGE_KEY, LocalStorageCartPersistence
from ordering.cart.store import CartStore, get_cart_store, set_cart_store
from protean.exceptions import ValidationError
from shared.storage import MemoryStore, set_storage


def _add(store, product_id="prod-001", price=50.0, quantity=1, **kwargs):
    return store.dispatch(AddToCart(product_id=product_id, original_price=price, quantity=quantity, **kwargs))


def _persisted(local):
    return json.loads(local.get_item(CART_STORAGE_KEY))


class TestDispatch:
    def test_add_to_cart(self, store):
        item_id = _add(store, quantity=2)
        assert store.cart.item_count == 2
        assert store.snapshot()["items"][0]["id"] == item_id

    def test_update_quantity(self, store):
        item_id = _add(store)
        store.dispatch(UpdateCartQuantity(item_id=item_id, new_quantity=3))
        assert store.cart.items[0].quantity == 3

    def test_remove(self, store):
        item_id = _add(store)
        store.dispatch(RemoveFromCart(item_id=item_id))
        assert store.cart.item_count == 0

    def test_clear(self, store):
        _add(store, "prod-001")
        _add(store, "prod-002")
        store.dispatch(ClearCart(reason="requested"))
        assert store.snapshot() == {"items": [], "total": 0.0, "itemCount": 0}

    def test_quantity_below_one_rejected_at_command(self, store):
        with pytest.raises(ValidationError):
            store.dispatch(AddToCart(product_id="prod-001", original_price=50.0, quantity=0))
        assert store.cart.item_count == 0

    def test_unknown_row_rejected(self, store):
        with pytest.raises(ValidationError):
            store.dispatch(RemoveFromCart(item_id="missing"))

    def test_unsupported_command(self, store):
        with pytest.raises(TypeError):
            store.dispatch(object())


class TestPersistence:
    def test_every_change_is_mirrored_to_local_storage(self):
        local = MemoryStore()
        store = CartStore(LocalStorageCartPersistence(local))

        item_id = _add(store, quantity=2)
        assert _persisted(local)["itemCount"] == 2

        store.dispatch(UpdateCartQuantity(item_id=item_id, new_quantity=5))
        assert _persisted(local)["itemCount"] == 5

        store.dispatch(RemoveFromCart(item_id=item_id))
        assert _persisted(local) == {"items": [], "total": 0.0, "itemCount": 0}

    def test_failed_command_does_not_save(self):
        local = MemoryStore()
        store = CartStore(LocalStorageCartPersistence(local))
        with pytest.raises(ValidationError):
            store.dispatch(RemoveFromCart(item_id="missing"))
        assert local.get_item(CART_STORAGE_KEY) is None

    def test_load_cart_command(self, store):
        snapshot = {"items": [{"id": "row-1", "product_id": "prod-001", "original_price": 50.0, "quantity": 2}]}
        store.dispatch(LoadCart(snapshot=json.dumps(snapshot)))
        assert store.cart.total == 100.0


class TestBoot:
    def test_boot_restores_persisted_cart(self):
        local = MemoryStore()
        first = CartStore(LocalStorageCartPersistence(local))
        item_id = _add(first, quantity=2)

        reloaded = CartStore.boot(LocalStorageCartPersistence(local))
        assert reloaded.cart.item_count == 2
        assert str(reloaded.cart.items[0].id) == item_id

    def test_boot_with_empty_storage(self):
        store = CartStore.boot(LocalStorageCartPersistence(MemoryStore()))
        assert store.cart.item_count == 0

    def test_boot_with_corrupt_json_starts_empty(self):
        local = MemoryStore({CART_STORAGE_KEY: "{broken"})
        store = CartStore.boot(LocalStorageCartPersistence(local))
        assert store.cart.item_count == 0

    def test_boot_with_invalid_rows_starts_empty(self):
        local = MemoryStore({CART_STORAGE_KEY: json.dumps({"items": [{"product_id": "prod-001", "quantity": 1}]})})
        store = CartStore.boot(LocalStorageCartPersistence(local))
        assert store.cart.item_count == 0
        assert len(store.cart.items) == 0

    def test_get_cart_store_boots_from_local_storage(self):
        local = MemoryStore(
            {CART_STORAGE_KEY: json.dumps({"items": [{"product_id": "prod-001", "original_price": 10.0, "quantity": 3}]})}
        )
        set_storage(local=local)
        assert get_cart_store().cart.item_count == 3
        assert get_cart_store() is get_cart_store()

    def test_set_cart_store(self, store):
        set_cart_store(store)
        assert get_cart_store() is store


class TestListeners:
    def test_listener_notified_after_save(self):
        local = MemoryStore()
        store = CartStore(LocalStorageCartPersistence(local))
        seen = []
        store.subscribe(lambda cart: seen.append((cart.item_count, _persisted(local)["itemCount"])))

        _add(store, quantity=2)
        assert seen == [(2, 2)]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda cart: seen.append(cart.total))
        _add(store)
        unsubscribe()
        _add(store, "prod-002")
        assert seen == [50.0]
