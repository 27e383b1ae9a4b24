"""Application tests for checkout initiation."""

import asyncio
import json

import pytest
from ordering.cart.items import AddToCart
from ordering.checkout.initiation import (
    default_callback_url,
    generate_payment_reference,
    initiate_checkout,
    to_minor_units,
)
from ordering.checkout.payload import CLEAR_CART_KEY, PENDING_CHECKOUT_KEY, PENDING_REFERENCE_KEY
from payments.gateway.fake_adapter import FakeGateway
from protean.exceptions import ValidationError
from shared.storage import MemoryStore

ADDRESS = {"full_name": "Ama Mensah", "phone": "0240000000", "address_line": "12 Oxford Street", "city": "Accra"}
STANDARD = {"id": "standard", "name": "Standard", "price": 15.0}


def _checkout(store, gateway, session, **kwargs):
    params = {
        "email": "ama@example.com",
        "delivery_address": ADDRESS,
        "delivery_option": STANDARD,
    }
    params.update(kwargs)
    return asyncio.run(initiate_checkout(store, gateway, session, **params))


@pytest.fixture()
def filled_store(store):
    store.dispatch(AddToCart(product_id="prod-001", original_price=50.0, quantity=2))
    store.dispatch(AddToCart(product_id="prod-002", original_price=100.0, quantity=1))
    return store


class TestHelpers:
    def test_reference_format(self):
        reference = generate_payment_reference()
        assert reference.startswith("VT-PAY-")
        assert reference == reference.upper()
        assert generate_payment_reference() != reference

    def test_minor_units(self):
        assert to_minor_units(215.0) == 21500
        assert to_minor_units(19.99) == 1999

    def test_default_callback_url(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_SITE_URL", "https://shop.example.com/")
        assert default_callback_url() == "https://shop.example.com/payment/callback"


class TestInitiateCheckout:
    def test_success_opens_transaction(self, filled_store):
        gateway = FakeGateway()
        session = MemoryStore()

        result = _checkout(filled_store, gateway, session, reference="VT-PAY-TEST")

        assert result.success
        assert result.reference == "VT-PAY-TEST"
        assert result.amount == 21500
        assert result.authorization_url.startswith("https://")

        call = gateway.calls[0]
        assert call["method"] == "initialize_transaction"
        assert call["amount"] == 21500
        assert call["metadata"]["user_id"] == "guest"
        assert call["metadata"]["customer_email"] == "ama@example.com"
        assert len(call["metadata"]["checkout_data"]["items"]) == 2

    def test_success_writes_pending_session_keys(self, filled_store):
        session = MemoryStore()
        _checkout(filled_store, FakeGateway(), session, reference="VT-PAY-TEST", user_id="user-001")

        pending = json.loads(session.get_item(PENDING_CHECKOUT_KEY))
        assert pending["reference"] == "VT-PAY-TEST"
        assert pending["checkout_data"]["user_id"] == "user-001"
        assert pending["checkout_data"]["delivery_address"]["email"] == "ama@example.com"
        assert pending["checkout_data"]["payment_reference"] == "VT-PAY-TEST"
        assert session.get_item(PENDING_REFERENCE_KEY) == "VT-PAY-TEST"
        assert session.get_item(CLEAR_CART_KEY) == "true"

    def test_success_leaves_cart_untouched(self, filled_store):
        _checkout(filled_store, FakeGateway(), MemoryStore())
        assert filled_store.cart.item_count == 3

    def test_gateway_failure_writes_nothing(self, filled_store):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Gateway unavailable")
        session = MemoryStore()

        result = _checkout(filled_store, gateway, session)

        assert not result.success
        assert result.message == "Gateway unavailable"
        assert session.data == {}

    def test_empty_cart_is_rejected(self, store):
        gateway = FakeGateway()
        with pytest.raises(ValidationError):
            _checkout(store, gateway, MemoryStore())
        assert gateway.calls == []
