"""Webhook event reconciliation.

Gateway notifications arrive asynchronously, possibly out of order and
possibly more than once. Each verified event is merged into the Order Store:

- payment succeeded: promote the provisional order, or create the order from
  the payment attempt's metadata when the client never wrote one
- payment failed: mark the open order failed
- anything else: acknowledged and ignored

The caller receives a tagged ReconciliationResult and picks the HTTP status:
processed and ignored events are acknowledged, retryable failures are not, so
the gateway redelivers them. Signature failures raise instead; they are a
security boundary, not a transient fault.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from storefront.catalogue.product import Product
from storefront.customer.resolution import resolve_user
from storefront.gateway.port import EventKind, GatewayEvent, PaymentGateway
from storefront.order.order import Order
from storefront.order.settlement import Settlement, complete_order, fail_order

logger = structlog.get_logger(__name__)

SOURCE = "webhook"


class Outcome(Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    RETRYABLE_FAILURE = "retryable_failure"


@dataclass(frozen=True)
class ReconciliationResult:
    outcome: Outcome
    event_id: str
    event_type: str
    detail: str = ""

    @property
    def acknowledged(self) -> bool:
        return self.outcome is not Outcome.RETRYABLE_FAILURE


def _quantity_from(metadata: dict) -> int:
    try:
        quantity = int(metadata.get("quantity") or 1)
    except (TypeError, ValueError):
        return 1
    return max(quantity, 1)


class EventReconciler:
    """Merges verified gateway events into the Order Store."""

    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway
        self._handlers = {
            EventKind.PAYMENT_SUCCEEDED: self._on_payment_succeeded,
            EventKind.PAYMENT_FAILED: self._on_payment_failed,
            EventKind.OTHER: self._on_other,
        }

    def handle_event(self, payload: bytes, signature: str) -> ReconciliationResult:
        """Verify and reconcile one webhook delivery.

        Raises SignatureVerificationError if the delivery is not authentic.
        """
        event = self.gateway.construct_event(payload, signature)
        log = logger.bind(event_id=event.id, event_type=event.type, payment_attempt_id=event.payment_attempt_id)
        log.info("Webhook event received")

        try:
            result = self._handlers[event.kind](event)
        except Exception as exc:
            log.exception("Webhook event processing failed", error=str(exc))
            return ReconciliationResult(Outcome.RETRYABLE_FAILURE, event.id, event.type, detail=str(exc))

        log.info("Webhook event reconciled", outcome=result.outcome.value, detail=result.detail)
        return result

    # -------------------------------------------------------------------
    # Event kinds
    # -------------------------------------------------------------------
    def _on_payment_succeeded(self, event: GatewayEvent) -> ReconciliationResult:
        if not event.payment_attempt_id:
            return self._result(Outcome.IGNORED, event, "no payment attempt on event")

        settlement = complete_order(event.payment_attempt_id, source=SOURCE)
        if settlement is Settlement.MISSING:
            return self._create_settled_order(event)
        return self._result(Outcome.PROCESSED, event, settlement.value)

    def _on_payment_failed(self, event: GatewayEvent) -> ReconciliationResult:
        if not event.payment_attempt_id:
            return self._result(Outcome.IGNORED, event, "no payment attempt on event")

        settlement = fail_order(event.payment_attempt_id, source=SOURCE)
        if settlement is Settlement.MISSING:
            return self._result(Outcome.IGNORED, event, "no order to mark failed")
        return self._result(Outcome.PROCESSED, event, settlement.value)

    def _on_other(self, event: GatewayEvent) -> ReconciliationResult:
        return self._result(Outcome.IGNORED, event, "event type not handled")

    # -------------------------------------------------------------------
    # Fallback creation
    # -------------------------------------------------------------------
    def _create_settled_order(self, event: GatewayEvent) -> ReconciliationResult:
        """Create the order from payment metadata when no provisional order was written."""
        metadata = event.metadata
        product_id = metadata.get("product_id")
        if not product_id:
            logger.error(
                "Succeeded payment carries no product, needs manual review",
                payment_attempt_id=event.payment_attempt_id,
            )
            return self._result(Outcome.IGNORED, event, "no product in metadata")

        try:
            product = current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            logger.error(
                "Product for succeeded payment not found, needs manual review",
                payment_attempt_id=event.payment_attempt_id,
                product_id=product_id,
            )
            return self._result(Outcome.IGNORED, event, "product not found")

        quantity = _quantity_from(metadata)
        user_id = resolve_user(
            metadata.get("customer_email"),
            external_id=metadata.get("customer_id"),
            name=metadata.get("customer_name"),
            phone=metadata.get("customer_phone"),
        )
        order = Order.place_settled(
            event.payment_attempt_id,
            product,
            quantity,
            user_id=user_id,
            customer={
                "email": metadata.get("customer_email"),
                "name": metadata.get("customer_name"),
                "phone": metadata.get("customer_phone"),
            },
        )
        if event.amount is not None and event.amount != order.amount:
            logger.warning(
                "Charged amount differs from catalogue price",
                payment_attempt_id=event.payment_attempt_id,
                charged=event.amount,
                expected=order.amount,
            )

        repo = current_domain.repository_for(Order)
        try:
            repo.add(order)
        except (ValidationError, IntegrityError):
            # The provisional writer inserted between our lookup and insert.
            settlement = complete_order(event.payment_attempt_id, source=SOURCE)
            if settlement is Settlement.MISSING:
                raise
            return self._result(Outcome.PROCESSED, event, settlement.value)

        logger.info(
            "Order created from payment metadata",
            order_id=str(order.id),
            payment_attempt_id=event.payment_attempt_id,
        )
        return self._result(Outcome.PROCESSED, event, "created")

    @staticmethod
    def _result(outcome: Outcome, event: GatewayEvent, detail: str) -> ReconciliationResult:
        return ReconciliationResult(outcome, event.id, event.type, detail=detail)
