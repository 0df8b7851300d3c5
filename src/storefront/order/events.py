"""Domain events for the Order aggregate.

Every event carries the payment attempt id, the idempotency key that ties
the provisional write, webhook deliveries and sweeps to one order.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order row was created, either provisionally or already settled."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_attempt_id = String(required=True)
    product_id = Identifier(required=True)
    user_id = Identifier()
    quantity = Integer(required=True)
    amount = Integer(required=True)
    currency = String(required=True)
    status = String(required=True)
    is_provisional = Boolean(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCompleted:
    """Payment for the order was confirmed; the order reached `completed`."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_attempt_id = String(required=True)
    was_provisional = Boolean(required=True)
    source = String(required=True)  # webhook, sweep, demo
    completed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderFailed:
    """Payment for the order failed or was canceled; the order reached `failed`."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_attempt_id = String(required=True)
    source = String(required=True)
    failed_at = DateTime(required=True)
