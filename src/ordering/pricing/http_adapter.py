"""Pricing service backed by the companion storefront API."""

from ordering.pricing.port import CouponValidation, PricingService
from shared.api import APIClient, StorefrontAPIError


def _amount(body: dict, key: str, path: str) -> float:
    raw = body.get(key) or 0
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise StorefrontAPIError(f"Invalid {key} in response from {path}: {raw!r}") from exc


class HttpPricingService(PricingService):
    def __init__(self, client: APIClient | None = None) -> None:
        self.client = client or APIClient()

    async def calculate_tax(self, amount: float, scope: str = "all") -> float:
        path = "/api/taxes/calculate"
        body = await self.client.post(path, {"amount": amount, "scope": scope})
        return _amount(body, "amount", path)

    async def calculate_discount(self, amount: float, scope: str = "all") -> float:
        path = "/api/discounts/calculate"
        body = await self.client.post(path, {"amount": amount, "scope": scope})
        return _amount(body, "amount", path)

    async def validate_coupon(self, code: str, cart_amount: float) -> CouponValidation:
        path = "/api/coupons/validate"
        body = await self.client.post(path, {"code": code, "cart_amount": cart_amount})
        data = body.get("data") if isinstance(body.get("data"), dict) else body
        return CouponValidation(
            is_valid=bool(data.get("is_valid")),
            discount_amount=_amount(data, "discount_amount", path),
            error_message=data.get("error_message") or "",
            code=code,
            coupon_type=data.get("type"),
        )
