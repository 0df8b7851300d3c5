"""Application tests for the reconciliation sweep."""

from protean import current_domain

from storefront.order.order import Order, OrderStatus
from storefront.order.provisional import CreateProvisionalOrder
from storefront.order.sweeper import config, get_sync_stats, sync_pending_orders


def _provisional(product, payment_attempt_id):
    command = CreateProvisionalOrder(payment_attempt_id=payment_attempt_id, product_id=str(product.id), quantity=1)
    return current_domain.process(command, asynchronous=False)


def _order(payment_attempt_id):
    return current_domain.repository_for(Order).find_by_payment_attempt(payment_attempt_id)


class TestSyncPendingOrders:
    def test_completes_succeeded_payment(self, gateway, product):
        gateway.add_attempt("pi_001", status="succeeded")
        _provisional(product, "pi_001")

        report = sync_pending_orders(gateway)

        assert report.synced == 1
        order = _order("pi_001")
        assert order.status == OrderStatus.COMPLETED.value
        assert order.is_provisional is False
        assert order.sync_attempts == 1
        assert order.last_sync_at is not None

    def test_fails_canceled_payment(self, gateway, product):
        gateway.add_attempt("pi_001", status="canceled")
        _provisional(product, "pi_001")

        report = sync_pending_orders(gateway)

        assert report.synced == 1
        assert _order("pi_001").status == OrderStatus.FAILED.value

    def test_pending_payment_is_skipped(self, gateway, product):
        gateway.add_attempt("pi_001", status="processing")
        _provisional(product, "pi_001")

        report = sync_pending_orders(gateway)

        assert report.skipped == 1
        order = _order("pi_001")
        assert order.status == OrderStatus.PROCESSING.value
        assert order.sync_attempts == 1

    def test_terminal_orders_are_not_examined(self, gateway, product):
        gateway.add_attempt("pi_001", status="succeeded")
        _provisional(product, "pi_001")
        sync_pending_orders(gateway)
        gateway.calls.clear()

        report = sync_pending_orders(gateway)

        assert report.to_dict() == {"synced": 0, "failed": 0, "skipped": 0}
        assert gateway.calls == []

    def test_one_failure_does_not_abort_the_sweep(self, gateway, product):
        for payment_attempt_id in ("pi_001", "pi_002", "pi_003"):
            gateway.add_attempt(payment_attempt_id, status="succeeded")
            _provisional(product, payment_attempt_id)
        gateway.make_unavailable("pi_002")

        report = sync_pending_orders(gateway)

        assert report.synced == 2
        assert report.failed == 1
        assert _order("pi_001").status == OrderStatus.COMPLETED.value
        assert _order("pi_003").status == OrderStatus.COMPLETED.value
        failed = _order("pi_002")
        assert failed.status == OrderStatus.PROCESSING.value
        assert failed.is_provisional is True
        assert failed.sync_attempts == 1

    def test_attempt_unknown_to_gateway_counts_as_failed(self, gateway, product):
        _provisional(product, "pi_001")

        report = sync_pending_orders(gateway)

        assert report.failed == 1
        assert _order("pi_001").status == OrderStatus.PROCESSING.value

    def test_mock_attempts_complete_without_gateway_call(self, gateway, product):
        _provisional(product, "pi_mock_abc123")

        report = sync_pending_orders(gateway)

        assert report.synced == 1
        assert _order("pi_mock_abc123").status == OrderStatus.COMPLETED.value
        assert gateway.calls == []

    def test_pages_through_every_open_order(self, gateway, product):
        for payment_attempt_id in ("pi_001", "pi_002", "pi_003"):
            gateway.add_attempt(payment_attempt_id, status="processing")
            _provisional(product, payment_attempt_id)

        report = sync_pending_orders(gateway, batch_size=2)

        assert report.skipped == 3

    def test_stuck_orders_do_not_starve_newer_ones(self, gateway, product):
        gateway.add_attempt("pi_001", status="processing")
        gateway.add_attempt("pi_002", status="processing")
        gateway.add_attempt("pi_003", status="succeeded")
        for payment_attempt_id in ("pi_001", "pi_002", "pi_003"):
            _provisional(product, payment_attempt_id)

        report = sync_pending_orders(gateway, batch_size=2)

        assert report.synced == 1
        assert report.skipped == 2
        order = _order("pi_003")
        assert order.status == OrderStatus.COMPLETED.value
        assert order.sync_attempts == 1

    def test_unexpected_gateway_error_still_counts_as_sync_attempt(self, gateway, product, monkeypatch):
        _provisional(product, "pi_001")

        def broken(payment_attempt_id):
            raise RuntimeError("unexpected response")

        monkeypatch.setattr(gateway, "retrieve_payment_attempt", broken)

        report = sync_pending_orders(gateway)

        assert report.failed == 1
        order = _order("pi_001")
        assert order.sync_attempts == 1
        assert order.last_sync_at is not None

    def test_stale_orders_are_still_retried(self, gateway, product, monkeypatch):
        monkeypatch.setattr(config, "MAX_ATTEMPTS", 1)
        gateway.add_attempt("pi_001", status="processing")
        _provisional(product, "pi_001")
        sync_pending_orders(gateway)
        gateway.set_status("pi_001", "succeeded")

        report = sync_pending_orders(gateway)

        assert report.synced == 1
        assert _order("pi_001").sync_attempts == 2


class TestSyncStats:
    def test_counts_by_status_and_provisional_flag(self, gateway, product):
        gateway.add_attempt("pi_001", status="succeeded")
        _provisional(product, "pi_001")
        _provisional(product, "pi_002")
        _provisional(product, "pi_003")
        gateway.add_attempt("pi_002", status="processing")
        gateway.add_attempt("pi_003", status="processing")
        sync_pending_orders(gateway)

        stats = get_sync_stats()

        assert {"status": "completed", "is_provisional": False, "count": 1} in stats
        assert {"status": "processing", "is_provisional": True, "count": 2} in stats
        assert len(stats) == 2

    def test_empty_store(self):
        assert get_sync_stats() == []
