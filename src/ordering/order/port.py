"""Order service port (abstract interface).

Orders are created by the storefront backend. The checkout flow hands it the
checkout payload and the acting user id and gets back the created order.
"""

from abc import ABC, abstractmethod


class OrderService(ABC):
    """Abstract order creation interface."""

    @abstractmethod
    async def create_order(self, checkout_data: dict, user_id: str | None) -> dict:
        """Create an order; the returned mapping carries at least ``id`` and ``order_number``."""
        ...
