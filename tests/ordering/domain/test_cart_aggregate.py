"""Tests for ShoppingCart totals, clearing and restoring from a snapshot."""

import random

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.events import CartCleared, CartRestored
from protean.exceptions import ValidationError


def _assert_totals_consistent(cart):
    assert cart.item_count == sum(item.quantity for item in cart.items)
    assert cart.total == pytest.approx(sum(item.subtotal for item in cart.items))
    for item in cart.items:
        assert item.subtotal == pytest.approx(item.quantity * item.unit_price())


class TestCartTotals:
    def test_new_cart_is_empty(self):
        cart = ShoppingCart.create()
        assert cart.item_count == 0
        assert cart.total == 0.0
        assert len(cart.items) == 0

    def test_two_at_fifty_and_one_at_hundred(self):
        cart = ShoppingCart.create()
        cart.add_item("prod-001", 50.0, 2)
        cart.add_item("prod-002", 100.0, 1)
        assert cart.item_count == 3
        assert cart.total == 200.0

    def test_totals_track_every_mutation(self):
        cart = ShoppingCart.create()
        first = cart.add_item("prod-001", 19.99, 3)
        second = cart.add_item("prod-002", 5.5, 1)
        _assert_totals_consistent(cart)

        cart.update_item_quantity(second, 4)
        _assert_totals_consistent(cart)

        cart.remove_item(first)
        _assert_totals_consistent(cart)
        assert cart.item_count == 4
        assert cart.total == 22.0

    def test_totals_hold_for_random_operation_sequences(self):
        rng = random.Random(20240601)
        cart = ShoppingCart.create()
        products = [("prod-a", 10.0), ("prod-b", 24.5), ("prod-c", 99.99)]
        variants = [None, {"colour": {"id": "c1", "name": "Colour", "value": "Red", "price_adjustment": 2.5}}]

        for _ in range(200):
            operation = rng.choice(["add", "update", "remove"])
            if operation == "add" or not cart.items:
                product_id, price = rng.choice(products)
                cart.add_item(product_id, price, rng.randint(1, 5), selected_variants=rng.choice(variants))
            elif operation == "update":
                item = rng.choice(list(cart.items))
                cart.update_item_quantity(str(item.id), rng.randint(1, 9))
            else:
                item = rng.choice(list(cart.items))
                cart.remove_item(str(item.id))
            _assert_totals_consistent(cart)


class TestClearCart:
    def test_clear_removes_all_items(self):
        cart = ShoppingCart.create()
        cart.add_item("prod-001", 50.0, 2)
        cart.add_item("prod-002", 100.0, 1)
        cart._events.clear()

        cart.clear()

        assert len(cart.items) == 0
        assert cart.item_count == 0
        assert cart.total == 0.0
        assert isinstance(cart._events[-1], CartCleared)
        assert cart._events[-1].items_removed_count == 2

    def test_clear_empty_cart(self):
        cart = ShoppingCart.create()
        cart.clear()
        assert cart.item_count == 0


class TestRestoreCart:
    def test_restore_recomputes_totals_from_items(self):
        cart = ShoppingCart.create()
        cart.restore(
            {
                "items": [
                    {"id": "row-1", "product_id": "prod-001", "original_price": 50.0, "quantity": 2, "subtotal": 1.0},
                    {"id": "row-2", "product_id": "prod-002", "original_price": 100.0, "quantity": 1},
                ],
                "total": 9999,
                "itemCount": 42,
            }
        )
        assert cart.item_count == 3
        assert cart.total == 200.0
        assert {str(item.id) for item in cart.items} == {"row-1", "row-2"}

    def test_restore_keeps_variant_selection(self):
        cart = ShoppingCart.create()
        variants = {"size": {"id": "v-l", "name": "Size", "value": "L", "price_adjustment": 5.0}}
        cart.restore(
            {"items": [{"id": "row-1", "product_id": "prod-001", "original_price": 50.0, "selected_variants": variants, "quantity": 1}]}
        )
        assert cart.items[0].variants() == variants
        assert cart.total == 55.0

    def test_restore_replaces_existing_rows(self):
        cart = ShoppingCart.create()
        cart.add_item("prod-009", 10.0, 1)
        cart.restore({"items": [{"product_id": "prod-001", "original_price": 50.0, "quantity": 1}]})
        assert [str(item.product_id) for item in cart.items] == ["prod-001"]

    def test_restore_raises_event(self):
        cart = ShoppingCart.create()
        cart.restore({"items": [{"product_id": "prod-001", "original_price": 50.0, "quantity": 2}]})
        restored = [e for e in cart._events if isinstance(e, CartRestored)]
        assert len(restored) == 1
        assert restored[0].item_count == 2

    def test_restore_rejects_invalid_quantity(self):
        cart = ShoppingCart.create()
        with pytest.raises(ValidationError):
            cart.restore({"items": [{"product_id": "prod-001", "original_price": 50.0, "quantity": 0}]})


class TestSnapshot:
    def test_snapshot_shape(self):
        cart = ShoppingCart.create()
        item_id = cart.add_item("prod-001", 50.0, 2, name="Kente Scarf", slug="kente-scarf")
        snapshot = cart.to_snapshot()

        assert snapshot["total"] == 100.0
        assert snapshot["itemCount"] == 2
        assert snapshot["items"][0]["id"] == item_id
        assert snapshot["items"][0]["name"] == "Kente Scarf"
        assert snapshot["items"][0]["selected_variants"] == {}

    def test_snapshot_restores_to_equal_cart(self):
        original = ShoppingCart.create()
        original.add_item("prod-001", 50.0, 2)
        original.add_item("prod-002", 30.0, 1, discount_price=25.0)

        restored = ShoppingCart.create()
        restored.restore(original.to_snapshot())
        assert restored.to_snapshot() == original.to_snapshot()
