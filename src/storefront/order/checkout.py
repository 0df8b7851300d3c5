"""Checkout start: create a payment attempt for a product.

Unconfigured gateways (no API key) produce demo payment attempts instead of
calling out; their ids carry the `pi_mock_` prefix so every later path can
recognise them.
"""

from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.gateway import MOCK_PREFIX
from storefront.gateway.payloads import clean_metadata
from storefront.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    payment_attempt_id: str
    client_secret: str
    amount: int
    currency: str
    demo: bool = False


def start_checkout(
    product_id: str,
    quantity: int,
    gateway: PaymentGateway,
    customer: dict | None = None,
) -> CheckoutSession:
    if quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    product = current_domain.repository_for(Product).get(product_id)
    amount = product.amount_for(quantity)

    if not gateway.configured:
        payment_attempt_id = f"{MOCK_PREFIX}{uuid4().hex[:24]}"
        logger.info("Gateway not configured, issuing demo payment attempt", payment_attempt_id=payment_attempt_id)
        return CheckoutSession(
            payment_attempt_id=payment_attempt_id,
            client_secret=f"{payment_attempt_id}_secret_demo",
            amount=amount,
            currency=product.currency,
            demo=True,
        )

    customer = customer or {}
    metadata = clean_metadata(
        {
            "product_id": str(product.id),
            "quantity": quantity,
            "customer_id": customer.get("id"),
            "customer_email": customer.get("email"),
            "customer_name": customer.get("name"),
            "customer_phone": customer.get("phone"),
        }
    )
    attempt = gateway.create_payment_attempt(amount, product.currency, metadata)
    logger.info("Payment attempt created", payment_attempt_id=attempt.id, amount=amount)
    return CheckoutSession(
        payment_attempt_id=attempt.id,
        client_secret=attempt.client_secret or "",
        amount=attempt.amount,
        currency=attempt.currency,
    )
