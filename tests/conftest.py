import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Pin the environment so adapter factories and logging pick their test profiles.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    for name in ("PAYMENT_GATEWAY_ADAPTER", "ORDER_SERVICE_ADAPTER", "PRICING_SERVICE_ADAPTER"):
        os.environ.setdefault(name, "fake")
    os.environ.pop("STOREFRONT_STORAGE_DIR", None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to reset process-wide adapters and stores after every test"""
    yield

    from ordering.cart.adjustments import reset_adjustments
    from ordering.cart.store import reset_cart_store
    from ordering.checkout.reconciler import reset_reconcilers
    from ordering.order import reset_order_service
    from ordering.pricing import reset_pricing_service
    from payments.gateway import reset_gateway
    from shared.storage import reset_storage

    reset_reconcilers()
    reset_adjustments()
    reset_cart_store()
    reset_storage()
    reset_gateway()
    reset_order_service()
    reset_pricing_service()
