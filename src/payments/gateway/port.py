"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and the Paystack
gateway reached through the storefront backend, without changing any
checkout or reconciliation code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class InitializationResult:
    """Result of opening a transaction with the gateway."""

    success: bool
    reference: str | None = None
    authorization_url: str | None = None
    access_code: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying a transaction reference.

    ``success`` says the verification call itself worked; ``status`` is the
    transaction's own status as reported by the gateway.
    """

    success: bool
    status: str | None = None
    message: str | None = None
    metadata: dict = field(default_factory=dict)

    def is_paid(self) -> bool:
        return self.success and self.status == "success"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        callback_url: str,
        metadata: dict,
    ) -> InitializationResult:
        """Open a transaction. ``amount`` is in minor units (pesewas)."""
        ...

    @abstractmethod
    async def verify_transaction(self, reference: str) -> VerificationResult:
        """Verify a transaction by its reference."""
        ...

    @abstractmethod
    async def link_order(self, transaction_reference: str, order_id: str) -> None:
        """Record which order a transaction paid for."""
        ...
