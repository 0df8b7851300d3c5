"""Reconciliation sweep: repair path for orders the webhook never settled.

Scans open orders oldest first and asks the gateway for the authoritative
state of each payment attempt. A failure on one order is recorded and the
sweep moves on; it never aborts the batch. Sweeps may overlap with each
other and with webhook deliveries: settlement is idempotent, so the loser
of any race is a no-op.

Runs on a fixed interval from `server.py` and on demand from the admin API.
"""

import os
from dataclasses import asdict, dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.gateway import is_mock_payment_attempt
from storefront.gateway.port import AttemptStatus, PaymentGateway
from storefront.order.order import Order
from storefront.order.settlement import Settlement, complete_order, fail_order, record_sync_attempt

logger = structlog.get_logger(__name__).bind(component="order_sync")

SOURCE = "sweep"


class SweepConfig:
    """Reconciliation sweep configuration"""

    # How often the scheduled sweep runs (seconds)
    INTERVAL = int(os.getenv("ORDER_SYNC_INTERVAL", "300"))  # 5 minutes

    # Open orders read per page; every page is examined in one sweep
    BATCH_SIZE = int(os.getenv("ORDER_SYNC_BATCH_SIZE", "100"))

    # Sync attempts after which an order is reported as stale
    MAX_ATTEMPTS = int(os.getenv("ORDER_SYNC_MAX_ATTEMPTS", "20"))

    # Enable/disable the scheduled sweep
    ENABLED = os.getenv("ORDER_SYNC_ENABLED", "true").lower() == "true"


config = SweepConfig()


@dataclass
class SweepReport:
    synced: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _settle_from_gateway(order: Order, gateway: PaymentGateway) -> str:
    """Apply the gateway's view of one order. Returns the report bucket it lands in."""
    payment_attempt_id = order.payment_attempt_id

    if is_mock_payment_attempt(payment_attempt_id):
        # Demo charges are never sent to the gateway and always succeed.
        complete_order(payment_attempt_id, source=SOURCE, record_sync=True)
        return "synced"

    try:
        attempt = gateway.retrieve_payment_attempt(payment_attempt_id)
    except Exception:
        record_sync_attempt(payment_attempt_id)
        raise

    if attempt.status is AttemptStatus.SUCCEEDED:
        settlement = complete_order(payment_attempt_id, source=SOURCE, record_sync=True)
    elif attempt.status.is_failure:
        settlement = fail_order(payment_attempt_id, source=SOURCE, record_sync=True)
    else:
        record_sync_attempt(payment_attempt_id)
        logger.info(
            "Payment still pending at gateway",
            payment_attempt_id=payment_attempt_id,
            gateway_status=attempt.status.value,
        )
        return "skipped"

    if settlement is Settlement.MISSING:
        # Deleted between the scan and the update; nothing left to reconcile.
        return "skipped"
    return "synced"


def _open_orders(page_size: int) -> list[Order]:
    """Every open order, oldest first, read page by page before any of them is settled."""
    repo = current_domain.repository_for(Order)
    orders = []
    while True:
        page = repo.awaiting_reconciliation(limit=page_size, offset=len(orders))
        orders.extend(page)
        if len(page) < page_size:
            return orders


def sync_pending_orders(gateway: PaymentGateway, batch_size: int | None = None) -> SweepReport:
    """Reconcile every open order against the gateway."""
    orders = _open_orders(batch_size or config.BATCH_SIZE)
    report = SweepReport()

    logger.info("Order sync started", candidates=len(orders))

    for order in orders:
        if (order.sync_attempts or 0) >= config.MAX_ATTEMPTS:
            logger.warning(
                "Order still unsettled after repeated syncs",
                order_id=str(order.id),
                payment_attempt_id=order.payment_attempt_id,
                sync_attempts=order.sync_attempts,
            )

        try:
            bucket = _settle_from_gateway(order, gateway)
        except Exception as exc:
            report.failed += 1
            logger.error(
                "Order sync failed for order",
                order_id=str(order.id),
                payment_attempt_id=order.payment_attempt_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            continue

        setattr(report, bucket, getattr(report, bucket) + 1)

    logger.info("Order sync finished", **report.to_dict())
    return report


def get_sync_stats() -> list[dict]:
    """Order counts grouped by status and provisional flag."""
    return current_domain.repository_for(Order).sync_stats()
