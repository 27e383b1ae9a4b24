"""Order service factory.

Provides get_order_service() / set_order_service() to swap implementations:
- FakeOrderService for development and testing
- HttpOrderService against the companion storefront API
"""

import os

from ordering.order.port import OrderService

_current_service: OrderService | None = None


def get_order_service() -> OrderService:
    """Return the configured order service, selected by ORDER_SERVICE_ADAPTER."""
    global _current_service
    if _current_service is None:
        adapter = os.environ.get("ORDER_SERVICE_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.order.fake_adapter import FakeOrderService

            _current_service = FakeOrderService()
        elif adapter == "http":
            from ordering.order.http_adapter import HttpOrderService

            _current_service = HttpOrderService()
        else:
            raise ValueError(f"Unknown order service adapter: {adapter}")
    return _current_service


def set_order_service(service: OrderService) -> None:
    """Override the active order service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_order_service() -> None:
    global _current_service
    _current_service = None
