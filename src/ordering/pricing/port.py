"""Pricing service port (abstract interface).

Tax, automatic discounts and coupon validation are owned by the storefront
backend. The cart only asks for amounts; adapters decide how to get them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CouponValidation:
    """Result of validating a coupon code against a cart amount."""

    is_valid: bool
    discount_amount: float = 0.0
    error_message: str = ""
    code: str | None = None
    coupon_type: str | None = None  # percentage, fixed_amount, free_delivery

    def grants_free_delivery(self) -> bool:
        return self.is_valid and self.coupon_type == "free_delivery"


class PricingService(ABC):
    """Abstract pricing interface."""

    @abstractmethod
    async def calculate_tax(self, amount: float, scope: str = "all") -> float:
        """Tax owed on ``amount`` for the given scope."""
        ...

    @abstractmethod
    async def calculate_discount(self, amount: float, scope: str = "all") -> float:
        """Automatic (non-coupon) discount for ``amount``."""
        ...

    @abstractmethod
    async def validate_coupon(self, code: str, cart_amount: float) -> CouponValidation:
        """Check a coupon code against the current cart amount."""
        ...
