"""Order read path.

Serves the order for a payment attempt to the polling checkout client. When
the row has not landed yet the gateway is asked directly, and a succeeded
payment yields a "processing" signal rather than a fabricated order. This
path never writes.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.customer.user import User
from storefront.gateway import is_mock_payment_attempt
from storefront.gateway.port import AttemptStatus, PaymentAttemptNotFoundError, PaymentGateway
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

# Client polling policy for the processing signal
MAX_POLL_ATTEMPTS = 30
POLL_BASE_DELAY_MS = 1000
POLL_STEP_MS = 50
POLL_MAX_DELAY_MS = 3000


def polling_delay_ms(attempt: int) -> int:
    """Delay before poll number `attempt` (1-based); grows linearly, capped."""
    return min(POLL_BASE_DELAY_MS + attempt * POLL_STEP_MS, POLL_MAX_DELAY_MS)


class LookupStatus(Enum):
    FOUND = "found"
    PROCESSING = "processing"
    PAYMENT_INCOMPLETE = "payment_incomplete"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OrderLookup:
    status: LookupStatus
    order: Order | None = None
    product: Product | None = None
    user: User | None = None
    gateway_status: str | None = None


def get_or_none(aggregate_cls, identifier):
    if not identifier:
        return None
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        return None


def get_order(payment_attempt_id: str, gateway: PaymentGateway) -> OrderLookup:
    order = current_domain.repository_for(Order).find_by_payment_attempt(payment_attempt_id)
    if order is not None:
        return OrderLookup(
            status=LookupStatus.FOUND,
            order=order,
            product=get_or_none(Product, order.product_id),
            user=get_or_none(User, order.user_id),
        )

    if is_mock_payment_attempt(payment_attempt_id):
        return OrderLookup(status=LookupStatus.NOT_FOUND)

    try:
        attempt = gateway.retrieve_payment_attempt(payment_attempt_id)
    except PaymentAttemptNotFoundError:
        return OrderLookup(status=LookupStatus.NOT_FOUND)

    if attempt.status is AttemptStatus.SUCCEEDED:
        logger.info("Order not yet recorded for succeeded payment", payment_attempt_id=payment_attempt_id)
        return OrderLookup(status=LookupStatus.PROCESSING, gateway_status=attempt.status.value)
    if attempt.status in (AttemptStatus.PENDING, AttemptStatus.REQUIRES_ACTION):
        return OrderLookup(status=LookupStatus.PAYMENT_INCOMPLETE, gateway_status=attempt.status.value)
    return OrderLookup(status=LookupStatus.NOT_FOUND, gateway_status=attempt.status.value)
