"""Idempotent promotion and failure of orders.

The webhook reconciler and the reconciliation sweep both settle orders
through these functions. Each call re-reads the order immediately before
mutating it and only moves it out of an open status, so processing the same
outcome twice (or from both paths at once) leaves a single settled row.
"""

from enum import Enum

import structlog
from protean.utils.globals import current_domain

from storefront.order.order import Order

logger = structlog.get_logger(__name__)


class Settlement(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    ALREADY_SETTLED = "already_settled"
    MISSING = "missing"


def complete_order(payment_attempt_id: str, source: str, record_sync: bool = False) -> Settlement:
    """Promote the order for `payment_attempt_id` to `completed` if it is still open."""
    repo = current_domain.repository_for(Order)
    order = repo.find_by_payment_attempt(payment_attempt_id)
    if order is None:
        return Settlement.MISSING

    if not order.complete(source=source):
        logger.info(
            "Order already settled, skipping promotion",
            order_id=str(order.id),
            payment_attempt_id=payment_attempt_id,
            status=order.status,
            source=source,
        )
        return Settlement.ALREADY_SETTLED

    if record_sync:
        order.record_sync_attempt()
    repo.add(order)
    logger.info("Order completed", order_id=str(order.id), payment_attempt_id=payment_attempt_id, source=source)
    return Settlement.COMPLETED


def fail_order(payment_attempt_id: str, source: str, record_sync: bool = False) -> Settlement:
    """Mark the order for `payment_attempt_id` as `failed` if it is still open."""
    repo = current_domain.repository_for(Order)
    order = repo.find_by_payment_attempt(payment_attempt_id)
    if order is None:
        return Settlement.MISSING

    if not order.fail(source=source):
        logger.info(
            "Order already settled, ignoring failure",
            order_id=str(order.id),
            payment_attempt_id=payment_attempt_id,
            status=order.status,
            source=source,
        )
        return Settlement.ALREADY_SETTLED

    if record_sync:
        order.record_sync_attempt()
    repo.add(order)
    logger.info("Order failed", order_id=str(order.id), payment_attempt_id=payment_attempt_id, source=source)
    return Settlement.FAILED


def record_sync_attempt(payment_attempt_id: str) -> None:
    repo = current_domain.repository_for(Order)
    order = repo.find_by_payment_attempt(payment_attempt_id)
    if order is None or order.is_terminal:
        return
    order.record_sync_attempt()
    repo.add(order)
