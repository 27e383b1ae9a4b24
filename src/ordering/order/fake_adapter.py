"""In-memory order service for development and testing."""

import time
from uuid import uuid4

from ordering.order.port import OrderService
from shared.api import StorefrontAPIError


def generate_order_number() -> str:
    return f"VT-{int(time.time() * 1000)}-{uuid4().hex[:9]}".upper()


class FakeOrderService(OrderService):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.orders: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Order service unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def create_order(self, checkout_data: dict, user_id: str | None) -> dict:
        self.calls.append({"method": "create_order", "checkout_data": checkout_data, "user_id": user_id})

        if not self.should_succeed:
            raise StorefrontAPIError(self.failure_reason, status_code=500)

        items = checkout_data.get("items") or []
        subtotal = round(sum(float(item.get("subtotal") or 0) for item in items), 2)
        delivery_fee = float((checkout_data.get("delivery_option") or {}).get("price") or 0)

        order = {
            "id": str(uuid4()),
            "order_number": generate_order_number(),
            "user_id": user_id,
            "status": "pending",
            "payment_status": "paid" if checkout_data.get("payment_reference") else "pending",
            "payment_method": checkout_data.get("payment_method"),
            "payment_reference": checkout_data.get("payment_reference"),
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "total": round(subtotal + delivery_fee, 2),
            "items": items,
            "delivery_address": checkout_data.get("delivery_address"),
            "delivery_option": checkout_data.get("delivery_option"),
        }
        self.orders[order["id"]] = order
        return order
