"""Checkout payload: the frozen cart + delivery + payment intent.

The payload is written to gateway metadata and session storage at checkout
and read back when the customer returns from the gateway. Both are external
contracts, so the payload is a Pydantic model that tolerates extra keys.
"""

import json
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from shared.storage import KeyValueStore

logger = structlog.get_logger(__name__)

PENDING_CHECKOUT_KEY = "pending_checkout_data"
PENDING_REFERENCE_KEY = "pending_payment_reference"
CLEAR_CART_KEY = "clear_cart_after_payment"
PENDING_CHECKOUT_KEYS = (PENDING_CHECKOUT_KEY, PENDING_REFERENCE_KEY, CLEAR_CART_KEY)

DEFAULT_PAYMENT_METHOD = "paystack"
GUEST_USER = "guest"


class CheckoutPayload(BaseModel):
    items: list[dict[str, Any]]
    delivery_address: dict[str, Any] | None = None
    delivery_option: dict[str, Any] | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    user_id: str | None = None
    customer_email: str | None = None
    notes: str | None = None

    model_config = {"extra": "allow"}

    def backfill(self, reference: str, metadata: dict) -> None:
        """Fill in the payment reference, payment method and guest email when absent."""
        if not self.payment_reference:
            self.payment_reference = reference
        if not self.payment_method:
            self.payment_method = DEFAULT_PAYMENT_METHOD
        if self.delivery_address is not None and not self.delivery_address.get("email"):
            self.delivery_address["email"] = metadata.get("customer_email") or self.customer_email


def resolve_user_id(metadata: dict, payload: CheckoutPayload) -> str | None:
    """Metadata user id unless it marks a guest, then the payload's, else None."""
    user_id = metadata.get("user_id")
    if user_id and user_id != GUEST_USER:
        return str(user_id)
    return payload.user_id or None


def _decode(raw) -> dict | None:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing checkout data", error=str(exc))
            return None
    return raw if isinstance(raw, dict) else None


def recover_checkout_payload(metadata: dict, session: KeyValueStore) -> CheckoutPayload | None:
    """Recover the checkout payload, preferring gateway metadata over session storage.

    Returns None when neither source holds a payload with a non-empty item list.
    """
    data = _decode(metadata.get("checkout_data")) if metadata.get("checkout_data") else None
    source = "metadata"

    if data is None:
        source = "session"
        stored = _decode(session.get_item(PENDING_CHECKOUT_KEY)) if session.get_item(PENDING_CHECKOUT_KEY) else None
        if stored is not None:
            nested = _decode(stored.get("checkout_data")) if stored.get("checkout_data") else None
            data = nested or stored

    if data is None or not isinstance(data.get("items"), list) or not data["items"]:
        logger.error("Invalid checkout data", source=source, has_data=data is not None)
        return None

    try:
        payload = CheckoutPayload.model_validate(data)
    except ValidationError as exc:
        logger.error("Invalid checkout data", source=source, error=str(exc))
        return None

    logger.info("Recovered checkout data", source=source, items_count=len(payload.items))
    return payload
