"""Tests for translating Stripe-shaped payloads into gateway port types."""

from storefront.gateway.payloads import attempt_from_object, attempt_status, clean_metadata, event_from_payload
from storefront.gateway.port import AttemptStatus, EventKind


class TestAttemptStatus:
    def test_succeeded(self):
        assert attempt_status("succeeded") is AttemptStatus.SUCCEEDED

    def test_requires_payment_method_is_not_a_failure(self):
        status = attempt_status("requires_payment_method")
        assert status is AttemptStatus.REQUIRES_ACTION
        assert status.is_failure is False

    def test_processing_is_pending(self):
        assert attempt_status("processing") is AttemptStatus.PENDING

    def test_canceled_is_failure(self):
        assert attempt_status("canceled").is_failure is True

    def test_unknown_status_treated_as_pending(self):
        assert attempt_status("something_new") is AttemptStatus.PENDING


class TestAttemptFromObject:
    def test_maps_fields(self):
        attempt = attempt_from_object(
            {
                "id": "pi_123",
                "status": "succeeded",
                "amount": 2999,
                "currency": "usd",
                "client_secret": "pi_123_secret_abc",
                "metadata": {"product_id": "prod-1"},
            }
        )
        assert attempt.id == "pi_123"
        assert attempt.status is AttemptStatus.SUCCEEDED
        assert attempt.amount == 2999
        assert attempt.metadata == {"product_id": "prod-1"}


class TestEventFromPayload:
    def _payload(self, event_type, obj=None):
        return {
            "id": "evt_001",
            "type": event_type,
            "data": {"object": obj or {"id": "pi_123", "object": "payment_intent", "metadata": {"quantity": "2"}}},
        }

    def test_succeeded_event(self):
        event = event_from_payload(self._payload("payment_intent.succeeded"))
        assert event.kind is EventKind.PAYMENT_SUCCEEDED
        assert event.payment_attempt_id == "pi_123"
        assert event.metadata == {"quantity": "2"}

    def test_failed_event(self):
        event = event_from_payload(self._payload("payment_intent.payment_failed"))
        assert event.kind is EventKind.PAYMENT_FAILED

    def test_other_event_kind(self):
        event = event_from_payload(self._payload("charge.refunded", {"id": "ch_1", "object": "charge"}))
        assert event.kind is EventKind.OTHER
        assert event.payment_attempt_id is None


class TestCleanMetadata:
    def test_drops_empty_and_stringifies(self):
        assert clean_metadata({"quantity": 2, "customer_email": None, "customer_name": ""}) == {"quantity": "2"}
