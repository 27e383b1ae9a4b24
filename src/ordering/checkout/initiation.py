"""Checkout initiation: freeze the cart into a payload and open a gateway transaction.

On success the payload, the payment reference and the clear-cart flag are
written to session storage for the payment callback to pick up. Nothing is
written when the gateway refuses the transaction.
"""

import json
import time
from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError

from ordering.cart.store import CartStore
from ordering.checkout.payload import (
    CLEAR_CART_KEY,
    DEFAULT_PAYMENT_METHOD,
    GUEST_USER,
    PENDING_CHECKOUT_KEY,
    PENDING_REFERENCE_KEY,
    CheckoutPayload,
)
from payments.gateway.port import PaymentGateway
from shared.api import get_site_url
from shared.storage import KeyValueStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    success: bool
    reference: str
    amount: int = 0
    authorization_url: str | None = None
    access_code: str | None = None
    message: str | None = None


def generate_payment_reference() -> str:
    return f"VT-PAY-{int(time.time() * 1000)}-{uuid4().hex[:9]}".upper()


def to_minor_units(amount: float) -> int:
    """GHS to pesewas."""
    return int(round(amount * 100))


def default_callback_url() -> str:
    return f"{get_site_url()}/payment/callback"


async def initiate_checkout(
    cart_store: CartStore,
    gateway: PaymentGateway,
    session: KeyValueStore,
    email: str,
    delivery_address: dict,
    delivery_option: dict,
    payment_method: str = DEFAULT_PAYMENT_METHOD,
    user_id: str | None = None,
    notes: str | None = None,
    reference: str | None = None,
    callback_url: str | None = None,
) -> CheckoutSession:
    snapshot = cart_store.snapshot()
    if not snapshot["items"]:
        raise ValidationError({"cart": ["Cannot check out an empty cart"]})

    reference = reference or generate_payment_reference()
    payload = CheckoutPayload(
        items=snapshot["items"],
        delivery_address={**delivery_address, "email": delivery_address.get("email") or email},
        delivery_option=delivery_option,
        payment_method=payment_method,
        payment_reference=reference,
        user_id=user_id,
        customer_email=email,
        notes=notes,
    )
    amount = to_minor_units(snapshot["total"] + float(delivery_option.get("price") or 0))
    metadata = {
        "checkout_data": payload.model_dump(),
        "user_id": user_id or GUEST_USER,
        "customer_email": email,
    }

    logger.info("Initializing payment", reference=reference, amount=amount, items_count=len(payload.items))
    result = await gateway.initialize_transaction(
        email=email,
        amount=amount,
        reference=reference,
        callback_url=callback_url or default_callback_url(),
        metadata=metadata,
    )

    if not result.success:
        logger.warning("Payment initialization failed", reference=reference, message=result.message)
        return CheckoutSession(
            success=False,
            reference=reference,
            amount=amount,
            message=result.message or "Failed to initialize payment",
        )

    session.set_item(
        PENDING_CHECKOUT_KEY,
        json.dumps({"reference": reference, "email": email, "checkout_data": payload.model_dump()}),
    )
    session.set_item(PENDING_REFERENCE_KEY, reference)
    session.set_item(CLEAR_CART_KEY, "true")

    return CheckoutSession(
        success=True,
        reference=reference,
        amount=amount,
        authorization_url=result.authorization_url,
        access_code=result.access_code,
    )
