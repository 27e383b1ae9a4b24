import json

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_checkout_data():
    """Factory for a valid checkout payload dict."""

    def _make(**overrides):
        data = {
            "items": [
                {
                    "id": "row-1",
                    "product_id": "prod-001",
                    "name": "Kente Scarf",
                    "original_price": 50.0,
                    "discount_price": None,
                    "selected_variants": {},
                    "quantity": 2,
                    "subtotal": 100.0,
                }
            ],
            "delivery_address": {
                "full_name": "Ama Mensah",
                "phone": "0240000000",
                "address_line": "12 Oxford Street",
                "city": "Accra",
            },
            "delivery_option": {"id": "standard", "name": "Standard", "price": 15.0},
            "payment_method": "paystack",
            "user_id": "user-001",
            "customer_email": "ama@example.com",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture()
def make_pending_session_value():
    """Factory for the ``pending_checkout_data`` session value written at checkout."""

    def _make(reference, data):
        return json.dumps({"reference": reference, "email": data.get("customer_email"), "checkout_data": data})

    return _make


@pytest.fixture()
def store():
    from ordering.cart.persistence import LocalStorageCartPersistence
    from ordering.cart.store import CartStore
    from shared.storage import MemoryStore

    return CartStore(LocalStorageCartPersistence(MemoryStore()))
