"""Configurable fake pricing service for development and testing.

Holds tax, discount and coupon definitions in memory and applies the same
rules the storefront database does. ``should_fail`` turns every call into an
API error so callers' fallbacks can be exercised.
"""

from ordering.pricing.port import CouponValidation, PricingService
from ordering.pricing.rules import Coupon, Discount, Tax, normalize_coupon_code
from shared.api import StorefrontAPIError


class FakePricingService(PricingService):
    def __init__(
        self,
        taxes: list[Tax] | None = None,
        discounts: list[Discount] | None = None,
        coupons: list[Coupon] | None = None,
    ) -> None:
        self.taxes: list[Tax] = list(taxes or [])
        self.discounts: list[Discount] = list(discounts or [])
        self.coupons: dict[str, Coupon] = {normalize_coupon_code(c.code): c for c in coupons or []}
        self.should_fail: bool = False
        self.calls: list[dict] = []

    def add_coupon(self, coupon: Coupon) -> None:
        self.coupons[normalize_coupon_code(coupon.code)] = coupon

    def _check_available(self) -> None:
        if self.should_fail:
            raise StorefrontAPIError("Pricing service unavailable", status_code=503)

    async def calculate_tax(self, amount: float, scope: str = "all") -> float:
        self.calls.append({"method": "calculate_tax", "amount": amount, "scope": scope})
        self._check_available()
        return round(sum(tax.amount_for(amount, scope) for tax in self.taxes), 2)

    async def calculate_discount(self, amount: float, scope: str = "all") -> float:
        self.calls.append({"method": "calculate_discount", "amount": amount, "scope": scope})
        self._check_available()
        total = sum(discount.amount_for(amount, scope) for discount in self.discounts)
        return round(min(total, amount), 2)

    async def validate_coupon(self, code: str, cart_amount: float) -> CouponValidation:
        self.calls.append({"method": "validate_coupon", "code": code, "cart_amount": cart_amount})
        self._check_available()
        coupon = self.coupons.get(normalize_coupon_code(code))
        if coupon is None:
            return CouponValidation(is_valid=False, error_message="Invalid coupon", code=code)
        return coupon.validate(cart_amount)
