"""Paystack gateway reached through the storefront backend.

The backend holds the Paystack secret key; this adapter only calls its
``/api/payments/*`` endpoints. Initialization and verification failures are
returned as unsuccessful results, the way the gateway reports them.
Linking failures raise ``StorefrontAPIError``.
"""

import structlog

from payments.gateway.port import InitializationResult, PaymentGateway, VerificationResult
from shared.api import APIClient, StorefrontAPIError

logger = structlog.get_logger(__name__)


class PaystackGateway(PaymentGateway):
    def __init__(self, client: APIClient | None = None) -> None:
        self.client = client or APIClient()

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        callback_url: str,
        metadata: dict,
    ) -> InitializationResult:
        try:
            body = await self.client.post(
                "/api/payments/initialize",
                {
                    "email": email,
                    "amount": amount,
                    "reference": reference,
                    "callback_url": callback_url,
                    "metadata": metadata or {},
                },
            )
        except StorefrontAPIError as exc:
            logger.error("Payment initialization error", reference=reference, error=exc.message)
            return InitializationResult(success=False, reference=reference, message=exc.message)

        data = body.get("data")
        if not body.get("success") or not isinstance(data, dict):
            return InitializationResult(
                success=False,
                reference=reference,
                message=body.get("message") or "Failed to initialize payment",
            )

        return InitializationResult(
            success=True,
            reference=reference,
            authorization_url=data.get("authorization_url"),
            access_code=data.get("access_code"),
        )

    async def verify_transaction(self, reference: str) -> VerificationResult:
        try:
            body = await self.client.post("/api/payments/verify", {"reference": reference})
        except StorefrontAPIError as exc:
            logger.error("Payment verification error", reference=reference, error=exc.message)
            return VerificationResult(success=False, message=exc.message or "Failed to verify payment")

        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        return VerificationResult(
            success=bool(body.get("success")),
            status=data.get("status"),
            message=body.get("message"),
            metadata=metadata,
        )

    async def link_order(self, transaction_reference: str, order_id: str) -> None:
        await self.client.post(
            "/api/payments/update-order-link",
            {"transaction_reference": transaction_reference, "order_id": order_id},
        )
