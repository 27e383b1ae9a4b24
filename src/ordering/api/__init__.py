"""Storefront API package: cart and checkout routers."""

from ordering.api.routes import cart_router, checkout_router, validation_error_handler

__all__ = ["cart_router", "checkout_router", "validation_error_handler"]
