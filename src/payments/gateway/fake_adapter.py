"""Configurable fake payment gateway for development and testing.

This adapter simulates the gateway without any external calls. It can be
configured at runtime to succeed or fail, making it useful for:
- Manual API testing of the checkout and payment callback flow
- Automated tests with predictable outcomes
- Development without real gateway credentials
"""

from uuid import uuid4

from payments.gateway.port import InitializationResult, PaymentGateway, VerificationResult
from shared.api import StorefrontAPIError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment was declined"
        self.link_should_fail: bool = False
        self.transactions: dict[str, dict] = {}
        self.links: dict[str, str] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Payment was declined",
        link_should_fail: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.link_should_fail = link_should_fail

    def record_transaction(self, reference: str, status: str = "success", metadata: dict | None = None) -> None:
        """Register a transaction as if the customer had completed the gateway flow."""
        self.transactions[reference] = {
            "status": status,
            "metadata": metadata or {},
        }

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        callback_url: str,
        metadata: dict,
    ) -> InitializationResult:
        self.calls.append(
            {
                "method": "initialize_transaction",
                "email": email,
                "amount": amount,
                "reference": reference,
                "callback_url": callback_url,
                "metadata": metadata,
            }
        )

        if not self.should_succeed:
            return InitializationResult(success=False, reference=reference, message=self.failure_reason)

        access_code = f"fake_access_{uuid4().hex[:12]}"
        self.transactions[reference] = {
            "status": "success",
            "amount": amount,
            "email": email,
            "metadata": metadata,
        }
        return InitializationResult(
            success=True,
            reference=reference,
            authorization_url=f"https://checkout.fake-gateway.test/{access_code}",
            access_code=access_code,
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        self.calls.append({"method": "verify_transaction", "reference": reference})

        transaction = self.transactions.get(reference)
        if transaction is None:
            return VerificationResult(success=False, message="Transaction reference not found")

        if not self.should_succeed or transaction["status"] != "success":
            return VerificationResult(
                success=True,
                status="failed",
                message=self.failure_reason,
                metadata=transaction["metadata"],
            )

        return VerificationResult(
            success=True,
            status="success",
            message="Verification successful",
            metadata=transaction["metadata"],
        )

    async def link_order(self, transaction_reference: str, order_id: str) -> None:
        self.calls.append(
            {
                "method": "link_order",
                "transaction_reference": transaction_reference,
                "order_id": order_id,
            }
        )
        if self.link_should_fail:
            raise StorefrontAPIError("Failed to link transaction to order", status_code=500)
        self.links[transaction_reference] = order_id
