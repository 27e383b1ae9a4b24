"""Cart adjustments: tax, automatic discount, coupon and delivery fee.

Adjustments are layered on top of the cart total and are not part of the
aggregate. Tax and discount come from the pricing service and are
recomputed whenever the cart total changes.

Recalculations are fire-and-forget and never cancelled, so each one records
the generation it started in and only publishes its result if no newer
recalculation has started since. An older, slower response is discarded
instead of overwriting a fresher one.
"""

import asyncio

import structlog
from protean.fields import Float, String

from ordering.cart.cart import ShoppingCart, money
from ordering.domain import ordering
from ordering.pricing.port import CouponValidation, PricingService
from ordering.pricing.rules import normalize_coupon_code
from shared.api import StorefrontAPIError

logger = structlog.get_logger(__name__)

FREE_DELIVERY_THRESHOLD = 200.0
STANDARD_DELIVERY_FEE = 15.0
CURRENCY = "GHS"


@ordering.value_object(part_of="ShoppingCart")
class CartPricing:
    """Financial summary shown with the cart: subtotal, adjustments and grand total."""

    subtotal = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    tax_total = Float(default=0.0)
    discount_total = Float(default=0.0)
    coupon_discount = Float(default=0.0)
    grand_total = Float(default=0.0)
    currency = String(max_length=3, default=CURRENCY)


def delivery_fee_for(subtotal: float) -> float:
    return 0.0 if subtotal > FREE_DELIVERY_THRESHOLD else STANDARD_DELIVERY_FEE


def price_cart(
    subtotal: float,
    tax: float = 0.0,
    discount: float = 0.0,
    coupon: CouponValidation | None = None,
) -> CartPricing:
    coupon_discount = coupon.discount_amount if coupon and coupon.is_valid else 0.0
    delivery_fee = 0.0 if coupon and coupon.grants_free_delivery() else delivery_fee_for(subtotal)
    grand_total = subtotal + delivery_fee + tax - (discount + coupon_discount)
    return CartPricing(
        subtotal=money(subtotal),
        delivery_fee=money(delivery_fee),
        tax_total=money(tax),
        discount_total=money(discount),
        coupon_discount=money(coupon_discount),
        grand_total=money(grand_total),
        currency=CURRENCY,
    )


class AdjustmentsRecalculator:
    def __init__(self, pricing_service: PricingService, scope: str = "all") -> None:
        self.pricing_service = pricing_service
        self.scope = scope
        self.tax_amount: float = 0.0
        self.discount_amount: float = 0.0
        self.applied_coupon: CouponValidation | None = None
        self.calculating: bool = False
        self.computed_for: float | None = None
        self._generation = 0
        self._last_scheduled: float | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    async def recalculate(self, subtotal: float) -> bool:
        """Recompute tax and discount for ``subtotal``.

        Returns False when the result was discarded because a newer
        recalculation started while this one was waiting.
        """
        self._generation += 1
        generation = self._generation

        if subtotal <= 0:
            self.tax_amount = 0.0
            self.discount_amount = 0.0
            self.calculating = False
            self.computed_for = subtotal
            return True

        self.calculating = True
        try:
            tax = await self.pricing_service.calculate_tax(subtotal, self.scope)
            discount = await self.pricing_service.calculate_discount(subtotal, self.scope)
        except StorefrontAPIError as exc:
            logger.warning("Error calculating taxes and discounts", subtotal=subtotal, error=exc.message)
            tax, discount = 0.0, 0.0
        finally:
            if generation == self._generation:
                self.calculating = False

        if generation != self._generation:
            logger.debug(
                "Discarding stale adjustments",
                subtotal=subtotal,
                generation=generation,
                latest_generation=self._generation,
            )
            return False

        self.tax_amount = money(tax)
        self.discount_amount = money(discount)
        self.computed_for = subtotal
        return True

    async def ensure_current(self, subtotal: float) -> None:
        if self.computed_for != subtotal:
            await self.recalculate(subtotal)

    def on_cart_changed(self, cart: ShoppingCart) -> asyncio.Task | None:
        """Cart store listener: schedule a recalculation when the total moved."""
        if cart.total == self._last_scheduled:
            return None
        self._last_scheduled = cart.total

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; adjustments will be computed on demand")
            return None

        task = loop.create_task(self.recalculate(cart.total))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    async def apply_coupon(self, code: str, cart_amount: float) -> CouponValidation:
        code = normalize_coupon_code(code)
        if not code:
            return CouponValidation(is_valid=False, error_message="Please enter a coupon code")

        try:
            validation = await self.pricing_service.validate_coupon(code, cart_amount)
        except StorefrontAPIError as exc:
            logger.warning("Failed to validate coupon", code=code, error=exc.message)
            return CouponValidation(is_valid=False, error_message="Failed to validate coupon", code=code)

        if validation.is_valid:
            self.applied_coupon = validation
            logger.info("Coupon applied", code=code, discount_amount=validation.discount_amount)
        return validation

    def remove_coupon(self) -> None:
        self.applied_coupon = None

    def pricing(self, subtotal: float) -> CartPricing:
        return price_cart(subtotal, self.tax_amount, self.discount_amount, self.applied_coupon)


_current_recalculator: AdjustmentsRecalculator | None = None


def get_adjustments() -> AdjustmentsRecalculator:
    """Return the process-wide recalculator, subscribed to the cart store."""
    global _current_recalculator
    if _current_recalculator is None:
        from ordering.cart.store import get_cart_store
        from ordering.pricing import get_pricing_service

        _current_recalculator = AdjustmentsRecalculator(get_pricing_service())
        get_cart_store().subscribe(_current_recalculator.on_cart_changed)
    return _current_recalculator


def reset_adjustments() -> None:
    global _current_recalculator
    _current_recalculator = None
