"""Tests for the Stripe adapter's translation of SDK calls and errors."""

import json

import pytest
import stripe

from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import (
    AttemptStatus,
    EventKind,
    GatewayRejectedError,
    GatewayUnavailableError,
    PaymentAttemptNotFoundError,
    SignatureVerificationError,
)
from storefront.gateway.stripe_adapter import StripeGateway


@pytest.fixture
def stripe_gateway():
    return StripeGateway(api_key="sk_test_123", webhook_secret="whsec_test")


class TestConfiguration:
    def test_configured_with_api_key(self, stripe_gateway):
        assert stripe_gateway.configured is True

    def test_unconfigured_without_api_key(self):
        assert StripeGateway(api_key="", webhook_secret="").configured is False


class TestRetrievePaymentAttempt:
    def test_maps_payment_intent(self, stripe_gateway, monkeypatch):
        def retrieve(payment_attempt_id, api_key=None):
            assert api_key == "sk_test_123"
            return {"id": payment_attempt_id, "status": "succeeded", "amount": 2999, "currency": "usd", "metadata": {}}

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)

        attempt = stripe_gateway.retrieve_payment_attempt("pi_123")
        assert attempt.status is AttemptStatus.SUCCEEDED
        assert attempt.amount == 2999

    def test_missing_intent(self, stripe_gateway, monkeypatch):
        def retrieve(payment_attempt_id, api_key=None):
            raise stripe.InvalidRequestError("No such payment_intent", "intent", code="resource_missing")

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)

        with pytest.raises(PaymentAttemptNotFoundError):
            stripe_gateway.retrieve_payment_attempt("pi_missing")

    def test_connection_error_is_unavailable(self, stripe_gateway, monkeypatch):
        def retrieve(payment_attempt_id, api_key=None):
            raise stripe.APIConnectionError("Network down")

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)

        with pytest.raises(GatewayUnavailableError):
            stripe_gateway.retrieve_payment_attempt("pi_123")

    def test_other_invalid_request_is_rejected(self, stripe_gateway, monkeypatch):
        def retrieve(payment_attempt_id, api_key=None):
            raise stripe.InvalidRequestError("Invalid id", "intent", code="parameter_invalid_string")

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)

        with pytest.raises(GatewayRejectedError):
            stripe_gateway.retrieve_payment_attempt("pi_123")

    @pytest.mark.parametrize("error_cls", [stripe.AuthenticationError, stripe.PermissionError])
    def test_credential_errors_are_rejected(self, stripe_gateway, monkeypatch, error_cls):
        def retrieve(payment_attempt_id, api_key=None):
            raise error_cls("Invalid API key")

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)

        with pytest.raises(GatewayRejectedError):
            stripe_gateway.retrieve_payment_attempt("pi_123")


class TestCreatePaymentAttempt:
    def test_authentication_error_is_rejected(self, stripe_gateway, monkeypatch):
        def create(**kwargs):
            raise stripe.AuthenticationError("Invalid API key")

        monkeypatch.setattr(stripe.PaymentIntent, "create", create)

        with pytest.raises(GatewayRejectedError):
            stripe_gateway.create_payment_attempt(2999, "usd", {})


class TestConstructEvent:
    def _payload(self):
        return json.dumps(
            {
                "id": "evt_001",
                "object": "event",
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_123", "object": "payment_intent", "metadata": {"quantity": "1"}}},
            }
        ).encode()

    def test_verifies_stripe_signature(self, stripe_gateway):
        payload = self._payload()
        signature = FakeGateway(webhook_secret="whsec_test").sign(payload)

        event = stripe_gateway.construct_event(payload, signature)

        assert event.kind is EventKind.PAYMENT_SUCCEEDED
        assert event.payment_attempt_id == "pi_123"

    def test_rejects_wrong_secret(self, stripe_gateway):
        payload = self._payload()
        signature = FakeGateway(webhook_secret="whsec_other").sign(payload)

        with pytest.raises(SignatureVerificationError):
            stripe_gateway.construct_event(payload, signature)

    def test_rejects_when_secret_not_configured(self):
        with pytest.raises(SignatureVerificationError):
            StripeGateway(api_key="sk_test_123", webhook_secret="").construct_event(b"{}", "t=1,v1=abc")
