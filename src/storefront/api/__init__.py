"""Storefront API package."""

from storefront.api.routes import admin_router, checkout_router, order_router

__all__ = ["checkout_router", "order_router", "admin_router"]
