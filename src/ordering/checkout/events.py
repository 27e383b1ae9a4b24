"""Domain events for the PaymentCallback aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="PaymentCallback")
class PaymentCallbackSucceeded:
    """A verified payment was turned into a created order."""

    __version__ = "v1"

    callback_id = Identifier(required=True)
    reference = String(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    completed_at = DateTime(required=True)


@ordering.event(part_of="PaymentCallback")
class PaymentCallbackFailed:
    """Reconciliation stopped in the error state."""

    __version__ = "v1"

    callback_id = Identifier(required=True)
    reference = String()
    reason = Text(required=True)
    failed_at = DateTime(required=True)
