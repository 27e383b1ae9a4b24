"""Ordering bounded context: Shopping Cart and Checkout.

Handles the client-held shopping cart (state container over a CQRS
aggregate), cart pricing, checkout initiation and the reconciliation of
payment-gateway callbacks into created orders.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
