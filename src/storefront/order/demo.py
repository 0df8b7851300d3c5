"""Demo-mode orders: command and handler.

When no payment gateway is configured, checkout hands out `pi_mock_`
payment attempts and the client records the purchase here. Demo charges
always succeed, so the order is written straight into `completed`.
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
from storefront.gateway import MOCK_PREFIX, is_mock_payment_attempt
from storefront.order.order import Order
from storefront.order.provisional import customer_details, order_reference

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CreateDemoOrder:
    """Record a completed order for a demo payment attempt."""

    payment_attempt_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    customer_id = String(max_length=255)
    customer_email = String(max_length=254)
    customer_name = String(max_length=255)
    customer_phone = String(max_length=50)


@storefront.command_handler(part_of=Order)
class CreateDemoOrderHandler:
    @handle(CreateDemoOrder)
    def create_demo_order(self, command):
        if not is_mock_payment_attempt(command.payment_attempt_id):
            raise ValidationError({"payment_attempt_id": [f"Demo orders require a '{MOCK_PREFIX}' payment attempt"]})

        product = current_domain.repository_for(Product).get(command.product_id)

        repo = current_domain.repository_for(Order)
        existing = repo.find_by_payment_attempt(command.payment_attempt_id)
        if existing is not None:
            return order_reference(existing, created=False)

        user_id = resolve_user(
            command.customer_email,
            external_id=command.customer_id,
            name=command.customer_name,
            phone=command.customer_phone,
        )
        order = Order.place_settled(
            command.payment_attempt_id,
            product,
            command.quantity or 1,
            user_id=user_id,
            customer=customer_details(command),
        )
        try:
            repo.add(order)
        except (ValidationError, IntegrityError):
            winner = repo.find_by_payment_attempt(command.payment_attempt_id)
            if winner is None:
                raise
            return order_reference(winner, created=False)

        logger.info("Demo order created", order_id=str(order.id), payment_attempt_id=command.payment_attempt_id)
        return order_reference(order, created=True)
