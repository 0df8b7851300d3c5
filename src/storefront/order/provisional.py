"""Provisional order creation: command and handler.

The checkout client calls this right after it sees the charge succeed, to
close the gap until the gateway's webhook arrives. The write is idempotent
per payment attempt: whichever of this path and the webhook reconciler gets
there first creates the row, and the other one finds it.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from storefront.catalogue.product import Product
from storefront.customer.resolution import resolve_user
from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

# One retry is enough: the second pass always finds the row that won.
_CONFLICT_RETRIES = 1


@storefront.command(part_of="Order")
class CreateProvisionalOrder:
    """Record an in-flight order for a payment attempt the client saw succeed."""

    payment_attempt_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    customer_id = String(max_length=255)
    customer_email = String(max_length=254)
    customer_name = String(max_length=255)
    customer_phone = String(max_length=50)


def order_reference(order: Order, created: bool) -> dict:
    return {
        "order_id": str(order.id),
        "is_provisional": bool(order.is_provisional),
        "created": created,
    }


def customer_details(command) -> dict:
    return {
        "email": command.customer_email,
        "name": command.customer_name,
        "phone": command.customer_phone,
    }


@storefront.command_handler(part_of=Order)
class CreateProvisionalOrderHandler:
    @handle(CreateProvisionalOrder)
    def create_provisional_order(self, command):
        if not command.payment_attempt_id.strip():
            raise ValidationError({"payment_attempt_id": ["Payment attempt id cannot be blank"]})

        product = current_domain.repository_for(Product).get(command.product_id)

        repo = current_domain.repository_for(Order)
        existing = repo.find_by_payment_attempt(command.payment_attempt_id)
        if existing is not None:
            logger.info(
                "Order already exists for payment attempt",
                order_id=str(existing.id),
                payment_attempt_id=command.payment_attempt_id,
                is_provisional=existing.is_provisional,
            )
            return order_reference(existing, created=False)

        user_id = resolve_user(
            command.customer_email,
            external_id=command.customer_id,
            name=command.customer_name,
            phone=command.customer_phone,
        )
        order = Order.place_provisional(
            command.payment_attempt_id,
            product,
            command.quantity,
            user_id=user_id,
            customer=customer_details(command),
        )
        try:
            repo.add(order)
        except (ValidationError, IntegrityError):
            winner = repo.find_by_payment_attempt(command.payment_attempt_id)
            if winner is None:
                raise
            logger.info(
                "Order created concurrently, returning existing record",
                order_id=str(winner.id),
                payment_attempt_id=command.payment_attempt_id,
            )
            return order_reference(winner, created=False)

        logger.info(
            "Provisional order created",
            order_id=str(order.id),
            payment_attempt_id=command.payment_attempt_id,
            amount=order.amount,
        )
        return order_reference(order, created=True)


def process_with_conflict_retry(command) -> dict:
    """Process an order-creating command, re-running it once if its commit loses a uniqueness race.

    A relational store may only report the duplicate when the unit of work
    commits, after the handler's own check. Re-running finds the winning row.
    """
    attempt = 0
    while True:
        try:
            return current_domain.process(command, asynchronous=False)
        except IntegrityError as exc:
            if attempt >= _CONFLICT_RETRIES:
                raise
            attempt += 1
            logger.info("Order write conflicted at commit, retrying", error=str(exc))
