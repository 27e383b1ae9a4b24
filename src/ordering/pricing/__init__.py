"""Pricing service factory.

Provides get_pricing_service() / set_pricing_service() to swap implementations:
- FakePricingService for development and testing
- HttpPricingService against the companion storefront API
"""

import os

from ordering.pricing.port import PricingService

_current_service: PricingService | None = None


def get_pricing_service() -> PricingService:
    """Return the configured pricing service (singleton).

    Selected by the PRICING_SERVICE_ADAPTER environment variable; defaults to
    the fake adapter.
    """
    global _current_service
    if _current_service is None:
        adapter = os.environ.get("PRICING_SERVICE_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.pricing.fake_adapter import FakePricingService

            _current_service = FakePricingService()
        elif adapter == "http":
            from ordering.pricing.http_adapter import HttpPricingService

            _current_service = HttpPricingService()
        else:
            raise ValueError(f"Unknown pricing service adapter: {adapter}")
    return _current_service


def set_pricing_service(service: PricingService) -> None:
    """Override the active pricing service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_pricing_service() -> None:
    global _current_service
    _current_service = None
