"""PaymentCallback aggregate: the state of one return from the payment gateway.

Status moves once, from Loading to either Success or Error. Both end states
are terminal.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from ordering.checkout.events import PaymentCallbackFailed, PaymentCallbackSucceeded
from ordering.domain import ordering


class CallbackStatus(Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


_VALID_TRANSITIONS = {
    CallbackStatus.LOADING: {CallbackStatus.SUCCESS, CallbackStatus.ERROR},
    CallbackStatus.SUCCESS: set(),  # Terminal
    CallbackStatus.ERROR: set(),  # Terminal
}


@ordering.aggregate
class PaymentCallback:
    reference = String(max_length=255)
    status = String(choices=CallbackStatus, default=CallbackStatus.LOADING.value)
    message = Text()
    order_id = Identifier()
    order_number = String(max_length=100)
    redirect_to = String(max_length=255)
    started_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def start(cls, reference=None):
        return cls(
            reference=reference,
            status=CallbackStatus.LOADING.value,
            message="Verifying payment...",
            started_at=datetime.now(UTC),
        )

    def _assert_can_transition(self, target_status):
        current = CallbackStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def is_terminal(self) -> bool:
        return CallbackStatus(self.status) != CallbackStatus.LOADING

    def succeed(self, order_id, order_number, redirect_to):
        self._assert_can_transition(CallbackStatus.SUCCESS)

        now = datetime.now(UTC)
        self.status = CallbackStatus.SUCCESS.value
        self.message = "Payment successful! Your order has been created."
        self.order_id = order_id
        self.order_number = order_number
        self.redirect_to = redirect_to
        self.completed_at = now

        self.raise_(
            PaymentCallbackSucceeded(
                callback_id=str(self.id),
                reference=self.reference,
                order_id=str(order_id),
                order_number=order_number,
                completed_at=now,
            )
        )

    def fail(self, message):
        self._assert_can_transition(CallbackStatus.ERROR)

        now = datetime.now(UTC)
        self.status = CallbackStatus.ERROR.value
        self.message = message
        self.completed_at = now

        self.raise_(
            PaymentCallbackFailed(
                callback_id=str(self.id),
                reference=self.reference,
                reason=message,
                failed_at=now,
            )
        )
