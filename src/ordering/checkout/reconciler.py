"""Payment callback reconciliation: turn a verified payment into exactly one order.

Flow:
    1. Read the payment reference from the callback query
    2. Verify the transaction with the payment gateway
    3. Recover the checkout payload (gateway metadata, else session storage)
    4. Resolve the acting user and backfill reference, method and guest email
    5. Create the order
    6. Link the transaction to the order (best effort)
    7. Clear the cart and the pending-checkout session keys, then redirect

Steps 2, 3 and 5 are hard failures and end in the Error state with the cart
and session storage untouched. Step 6 only logs. Nothing is retried.

A reconciler runs its body at most once. The latch is set before the first
await, so a second invocation on the same event loop returns the first
invocation's callback without touching any collaborator.
"""

import asyncio
import time
from collections.abc import Callable, Mapping

import structlog

from ordering.cart.items import ClearCart
from ordering.cart.store import CartStore
from ordering.checkout.callback import CallbackStatus, PaymentCallback
from ordering.checkout.payload import (
    PENDING_CHECKOUT_KEYS,
    CheckoutPayload,
    recover_checkout_payload,
    resolve_user_id,
)
from ordering.order.port import OrderService
from payments.gateway.port import PaymentGateway
from shared.api import StorefrontAPIError
from shared.storage import KeyValueStore

logger = structlog.get_logger(__name__)

REDIRECT_DELAY_SECONDS = 2.0
VERIFICATION_ERROR_MESSAGE = "An error occurred during payment verification"

# Finished reconcilers stay registered this long so late duplicate callbacks
# still see the outcome. Pending ones are never dropped.
REGISTRY_GRACE_SECONDS = 300.0


class PaymentCallbackError(Exception):
    """A hard failure that ends reconciliation in the Error state."""


class MissingReferenceError(PaymentCallbackError):
    pass


class VerificationFailedError(PaymentCallbackError):
    pass


class CheckoutDataLostError(PaymentCallbackError):
    """Payment captured, but the order intent could not be recovered."""


class OrderCreationError(PaymentCallbackError):
    pass


class PaymentCallbackReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        orders: OrderService,
        cart_store: CartStore,
        session: KeyValueStore,
        navigator: Callable[[str], None] | None = None,
        redirect_delay: float = REDIRECT_DELAY_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.orders = orders
        self.cart_store = cart_store
        self.session = session
        self.navigator = navigator
        self.redirect_delay = redirect_delay
        self.callback: PaymentCallback | None = None
        self.order: dict | None = None
        self._started = False
        self.finished_at: float | None = None

    @property
    def status(self) -> CallbackStatus:
        if self.callback is None:
            return CallbackStatus.LOADING
        return CallbackStatus(self.callback.status)

    async def reconcile(self, query: Mapping[str, str]) -> PaymentCallback:
        if self._started:
            logger.info("Payment callback already handled; ignoring repeat invocation")
            return self.callback
        self._started = True

        reference = (query.get("reference") or "").strip() or None
        self.callback = PaymentCallback.start(reference)

        try:
            if reference is None:
                raise MissingReferenceError("No payment reference found")
            order = await self._create_order_for(reference)
        except PaymentCallbackError as exc:
            logger.warning(
                "Payment callback failed",
                reference=reference,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self.callback.fail(str(exc))
            self.finished_at = time.monotonic()
            return self.callback

        self.order = order
        order_id = str(order["id"])

        await self._link_transaction(reference, order_id)

        self.cart_store.dispatch(ClearCart(reason="order_created"))
        for key in PENDING_CHECKOUT_KEYS:
            self.session.remove_item(key)

        redirect_to = f"/orders/{order_id}"
        self.callback.succeed(
            order_id=order_id,
            order_number=order.get("order_number"),
            redirect_to=redirect_to,
        )
        logger.info(
            "Order created from payment callback",
            reference=reference,
            order_id=order_id,
            order_number=order.get("order_number"),
        )
        self.finished_at = time.monotonic()
        self._schedule_redirect(redirect_to)
        return self.callback

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    async def _verify(self, reference: str) -> dict:
        try:
            result = await self.gateway.verify_transaction(reference)
        except StorefrontAPIError as exc:
            raise VerificationFailedError(exc.message or VERIFICATION_ERROR_MESSAGE) from exc
        except Exception as exc:
            logger.exception("Error verifying payment", reference=reference)
            raise VerificationFailedError(VERIFICATION_ERROR_MESSAGE) from exc

        logger.info(
            "Payment verification result",
            reference=reference,
            success=result.success,
            status=result.status,
            has_metadata=bool(result.metadata),
        )
        if not result.is_paid():
            raise VerificationFailedError(result.message or "Payment verification failed")
        return result.metadata or {}

    def _recover(self, reference: str, metadata: dict) -> CheckoutPayload:
        payload = recover_checkout_payload(metadata, self.session)
        if payload is None:
            raise CheckoutDataLostError(
                "Payment verified but checkout data is missing or invalid. Please contact support."
            )
        payload.backfill(reference, metadata)
        return payload

    async def _create_order_for(self, reference: str) -> dict:
        metadata = await self._verify(reference)
        payload = self._recover(reference, metadata)
        user_id = resolve_user_id(metadata, payload)

        logger.info(
            "Creating order",
            reference=reference,
            user_id=user_id,
            items_count=len(payload.items),
            payment_method=payload.payment_method,
        )
        try:
            order = await self.orders.create_order(payload.model_dump(), user_id)
            if not order or not order.get("id"):
                raise ValueError("Order creation returned invalid response")
        except Exception as exc:
            logger.exception("Error creating order", reference=reference)
            message = getattr(exc, "message", None) or str(exc) or "Failed to create order"
            raise OrderCreationError(
                f"Payment verified but failed to create order: {message}. Please contact support."
            ) from exc
        return order

    async def _link_transaction(self, reference: str, order_id: str) -> None:
        try:
            await self.gateway.link_order(reference, order_id)
        except StorefrontAPIError as exc:
            logger.error(
                "Error linking transaction to order",
                reference=reference,
                order_id=order_id,
                error=exc.message,
            )
        except Exception:
            logger.exception("Error linking transaction to order", reference=reference, order_id=order_id)

    def _schedule_redirect(self, path: str) -> None:
        if self.navigator is None:
            return
        asyncio.get_running_loop().call_later(self.redirect_delay, self.navigator, path)


_reconcilers: dict[str, PaymentCallbackReconciler] = {}


def prune_reconcilers(now: float | None = None, grace: float = REGISTRY_GRACE_SECONDS) -> int:
    """Drop registered reconcilers that finished more than ``grace`` seconds ago."""
    now = time.monotonic() if now is None else now
    expired = [
        reference
        for reference, reconciler in _reconcilers.items()
        if reconciler.finished_at is not None and now - reconciler.finished_at > grace
    ]
    for reference in expired:
        del _reconcilers[reference]
    return len(expired)


def reconciler_for(reference: str | None) -> PaymentCallbackReconciler:
    """Return the reconciler for a payment reference, creating it on first use.

    Repeated callbacks for the same reference share one reconciler, and so
    one outcome, until the reconciler has been finished for longer than the
    registry grace period.
    """
    from ordering.cart.store import get_cart_store
    from ordering.order import get_order_service
    from payments.gateway import get_gateway
    from shared.storage import get_session_storage

    prune_reconcilers()

    reference = (reference or "").strip()
    if reference and reference in _reconcilers:
        return _reconcilers[reference]

    reconciler = PaymentCallbackReconciler(
        gateway=get_gateway(),
        orders=get_order_service(),
        cart_store=get_cart_store(),
        session=get_session_storage(),
    )
    if reference:
        _reconcilers[reference] = reconciler
    return reconciler


def reset_reconcilers() -> None:
    _reconcilers.clear()
