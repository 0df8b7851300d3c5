"""Integration tests for the admin reconciliation endpoints."""

from storefront.order.order import OrderStatus


def _provisional(client, product, payment_attempt_id):
    client.post(
        "/create-provisional-order",
        json={"paymentAttemptId": payment_attempt_id, "productId": str(product.id), "quantity": 1},
    )


class TestSyncOrders:
    def test_reports_counts(self, client, gateway, product):
        gateway.add_attempt("pi_001", status="succeeded")
        gateway.add_attempt("pi_002", status="processing")
        _provisional(client, product, "pi_001")
        _provisional(client, product, "pi_002")

        response = client.post("/admin/sync-orders")

        assert response.status_code == 200
        assert response.json() == {"success": True, "synced": 1, "failed": 0, "skipped": 1}
        assert client.get("/orders/pi_001").json()["order"]["status"] == OrderStatus.COMPLETED.value

    def test_outage_on_one_order_is_counted(self, client, gateway, product):
        gateway.add_attempt("pi_001", status="succeeded")
        gateway.make_unavailable("pi_001")
        _provisional(client, product, "pi_001")

        response = client.post("/admin/sync-orders")

        assert response.status_code == 200
        assert response.json()["failed"] == 1


class TestSyncStats:
    def test_groups_by_status_and_flag(self, client, product):
        _provisional(client, product, "pi_001")

        response = client.get("/admin/sync-stats")

        assert response.status_code == 200
        assert response.json()["stats"] == [{"status": "processing", "isProvisional": True, "count": 1}]


class TestConfigureGateway:
    def test_switches_to_demo_mode(self, client, gateway):
        response = client.post("/admin/gateway/configure", json={"configured": False})

        assert response.status_code == 200
        assert response.json() == {"gateway": "FakeGateway", "configured": False}
        assert gateway.configured is False

    def test_unavailable_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/admin/gateway/configure", json={"configured": False})
        assert response.status_code == 403
