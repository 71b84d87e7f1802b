"""Marketplace API package."""

from marketplace.api.errors import install_error_handlers
from marketplace.api.routes import cart_router, checkout_router, merchant_router, order_router, product_router

__all__ = [
    "cart_router",
    "checkout_router",
    "order_router",
    "merchant_router",
    "product_router",
    "install_error_handlers",
]
