"""Tax, discount and coupon rules.

These mirror what the storefront database computes server-side and are used
by the fake pricing adapter for development and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from ordering.pricing.port import CouponValidation


def _money(amount) -> float:
    return round(float(amount), 2)


def _applies(applies_to: str, scope: str) -> bool:
    return applies_to == "all" or scope == "all" or applies_to == scope


def _within_window(valid_from: datetime | None, valid_until: datetime | None, now: datetime) -> bool:
    if valid_from is not None and now < valid_from:
        return False
    if valid_until is not None and now > valid_until:
        return False
    return True


def normalize_coupon_code(code: str | None) -> str:
    return (code or "").strip().upper()


@dataclass(frozen=True)
class Tax:
    name: str
    rate: float
    type: str = "percentage"  # percentage, fixed
    is_active: bool = True
    applies_to: str = "all"  # all, products, shipping, total

    def amount_for(self, amount: float, scope: str = "all") -> float:
        if not self.is_active or not _applies(self.applies_to, scope):
            return 0.0
        if self.type == "fixed":
            return _money(self.rate)
        return _money(amount * self.rate / 100)


@dataclass(frozen=True)
class Discount:
    name: str
    type: str  # percentage, fixed_amount, free_shipping
    value: float
    minimum_amount: float = 0.0
    maximum_discount: float | None = None
    is_active: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = None
    used_count: int = 0
    applies_to: str = "all"

    def amount_for(self, amount: float, scope: str = "all", now: datetime | None = None) -> float:
        now = now or datetime.now(UTC)
        if not self.is_active or not _applies(self.applies_to, scope):
            return 0.0
        if not _within_window(self.valid_from, self.valid_until, now):
            return 0.0
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return 0.0
        if amount < self.minimum_amount:
            return 0.0

        if self.type == "percentage":
            discount = amount * self.value / 100
            if self.maximum_discount is not None:
                discount = min(discount, self.maximum_discount)
        elif self.type == "fixed_amount":
            discount = min(self.value, amount)
        else:
            discount = 0.0
        return _money(discount)


@dataclass(frozen=True)
class Coupon:
    code: str
    name: str
    type: str  # percentage, fixed_amount, free_delivery
    value: float
    minimum_amount: float = 0.0
    maximum_discount: float | None = None
    usage_limit: int | None = None
    used_count: int = 0
    is_active: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None

    def validate(self, cart_amount: float, now: datetime | None = None) -> CouponValidation:
        now = now or datetime.now(UTC)

        def invalid(message: str) -> CouponValidation:
            return CouponValidation(is_valid=False, error_message=message, code=self.code, coupon_type=self.type)

        if not self.is_active:
            return invalid("Coupon is not active")
        if self.valid_from is not None and now < self.valid_from:
            return invalid("Coupon is not yet valid")
        if self.valid_until is not None and now > self.valid_until:
            return invalid("Coupon has expired")
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return invalid("Coupon usage limit reached")
        if cart_amount < self.minimum_amount:
            return invalid(f"Minimum order amount of GHS {self.minimum_amount:.2f} required")

        if self.type == "percentage":
            discount = cart_amount * self.value / 100
            if self.maximum_discount is not None:
                discount = min(discount, self.maximum_discount)
        elif self.type == "fixed_amount":
            discount = min(self.value, cart_amount)
        else:
            discount = 0.0

        return CouponValidation(
            is_valid=True,
            discount_amount=_money(discount),
            code=self.code,
            coupon_type=self.type,
        )
