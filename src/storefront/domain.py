"""Storefront bounded context: Catalogue, Customers and Order Reconciliation.

Converges the asynchronous payment lifecycle (provisional orders written by
the checkout client, gateway webhook notifications, administrative sweeps)
onto a single order record per payment attempt.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging

configure_logging()

storefront = Domain(name="storefront")
