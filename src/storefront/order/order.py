"""Order aggregate: one row per payment attempt.

State Machine:
    (provisional) PROCESSING → COMPLETED
                  PROCESSING → FAILED
    PENDING is reserved for rows written before the client confirmed payment;
    it follows the same transitions as PROCESSING.

COMPLETED and FAILED are terminal. Late or duplicate notifications never
move an order out of a terminal state, and a terminal order is never
provisional.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront
from storefront.order.events import OrderCompleted, OrderFailed, OrderPlaced


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.FAILED.value})
OPEN_STATUSES = [OrderStatus.PENDING.value, OrderStatus.PROCESSING.value]


@storefront.aggregate
class Order:
    payment_attempt_id = String(required=True, max_length=255, unique=True)
    product_id = Identifier(required=True)
    user_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    amount = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="usd")
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    customer_email = String(max_length=254)
    customer_name = String(max_length=255)
    customer_phone = String(max_length=50)
    is_provisional = Boolean(default=False)
    provisional_created_at = DateTime()
    sync_attempts = Integer(default=0, min_value=0)
    last_sync_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def terminal_orders_are_not_provisional(self):
        if self.status in TERMINAL_STATUSES and self.is_provisional:
            raise ValidationError({"is_provisional": [f"A {self.status} order cannot be provisional"]})

    @invariant.post
    def payment_attempt_id_is_not_blank(self):
        if not (self.payment_attempt_id or "").strip():
            raise ValidationError({"payment_attempt_id": ["Payment attempt id cannot be blank"]})

    # -------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------
    @classmethod
    def _place(
        cls,
        payment_attempt_id,
        product,
        quantity,
        user_id,
        customer,
        status,
        is_provisional,
    ):
        now = datetime.now(UTC)
        customer = customer or {}
        order = cls(
            payment_attempt_id=payment_attempt_id,
            product_id=str(product.id),
            user_id=user_id,
            quantity=quantity,
            amount=product.amount_for(quantity),
            currency=product.currency,
            status=status.value,
            customer_email=customer.get("email"),
            customer_name=customer.get("name"),
            customer_phone=customer.get("phone"),
            is_provisional=is_provisional,
            provisional_created_at=now if is_provisional else None,
            sync_attempts=0,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                payment_attempt_id=payment_attempt_id,
                product_id=str(product.id),
                user_id=user_id,
                quantity=quantity,
                amount=order.amount,
                currency=order.currency,
                status=order.status,
                is_provisional=is_provisional,
                placed_at=now,
            )
        )
        return order

    @classmethod
    def place_provisional(cls, payment_attempt_id, product, quantity, user_id=None, customer=None):
        """Order written by the checkout client right after it saw the charge succeed."""
        return cls._place(
            payment_attempt_id,
            product,
            quantity,
            user_id,
            customer,
            status=OrderStatus.PROCESSING,
            is_provisional=True,
        )

    @classmethod
    def place_settled(cls, payment_attempt_id, product, quantity, user_id=None, customer=None):
        """Order written directly in `completed` state by a confirmed payment."""
        return cls._place(
            payment_attempt_id,
            product,
            quantity,
            user_id,
            customer,
            status=OrderStatus.COMPLETED,
            is_provisional=False,
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def complete(self, source: str) -> bool:
        """Promote the order to `completed`. Returns False if it was already terminal."""
        if self.is_terminal:
            return False

        now = datetime.now(UTC)
        was_provisional = bool(self.is_provisional)
        with atomic_change(self):
            self.status = OrderStatus.COMPLETED.value
            self.is_provisional = False
            self.updated_at = now

        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                payment_attempt_id=self.payment_attempt_id,
                was_provisional=was_provisional,
                source=source,
                completed_at=now,
            )
        )
        return True

    def fail(self, source: str) -> bool:
        """Mark the order `failed`. Returns False if it was already terminal."""
        if self.is_terminal:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.FAILED.value
            self.is_provisional = False
            self.updated_at = now

        self.raise_(
            OrderFailed(
                order_id=str(self.id),
                payment_attempt_id=self.payment_attempt_id,
                source=source,
                failed_at=now,
            )
        )
        return True

    def record_sync_attempt(self) -> None:
        """Bookkeeping for the reconciliation sweep; feeds staleness detection."""
        self.sync_attempts = (self.sync_attempts or 0) + 1
        self.last_sync_at = datetime.now(UTC)
