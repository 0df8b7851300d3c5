"""Application tests for starting checkout."""

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.order.checkout import start_checkout


class TestStartCheckout:
    def test_creates_payment_attempt_with_metadata(self, gateway, product):
        session = start_checkout(
            str(product.id),
            2,
            gateway,
            customer={"id": "sub-jane", "email": "jane@example.com"},
        )

        assert session.demo is False
        assert session.amount == 5998
        metadata = gateway.attempts[session.payment_attempt_id]["metadata"]
        assert metadata == {
            "product_id": str(product.id),
            "quantity": "2",
            "customer_id": "sub-jane",
            "customer_email": "jane@example.com",
        }

    def test_unconfigured_gateway_issues_demo_attempt(self, gateway, product):
        gateway.configure(configured=False)

        session = start_checkout(str(product.id), 1, gateway)

        assert session.demo is True
        assert session.payment_attempt_id.startswith("pi_mock_")
        assert session.client_secret.startswith(session.payment_attempt_id)
        assert gateway.calls == []

    def test_unknown_product(self, gateway):
        with pytest.raises(ObjectNotFoundError):
            start_checkout("prod-missing", 1, gateway)

    def test_zero_quantity(self, gateway, product):
        with pytest.raises(ValidationError):
            start_checkout(str(product.id), 0, gateway)
