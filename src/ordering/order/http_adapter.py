"""Order service backed by the companion storefront API."""

from ordering.order.port import OrderService
from shared.api import APIClient


class HttpOrderService(OrderService):
    def __init__(self, client: APIClient | None = None) -> None:
        self.client = client or APIClient()

    async def create_order(self, checkout_data: dict, user_id: str | None) -> dict:
        body = await self.client.post("/api/orders", {"checkout_data": checkout_data, "user_id": user_id})
        # The backend answers either with the order itself or wrapped in {success, data}
        if isinstance(body.get("data"), dict):
            return body["data"]
        return body
