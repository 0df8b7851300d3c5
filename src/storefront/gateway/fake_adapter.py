"""Configurable fake payment gateway for development and testing.

Keeps payment attempts in memory and signs webhook deliveries the way Stripe
does (`t=<timestamp>,v1=<hex hmac-sha256 of "<timestamp>.<payload>">`), so the
webhook endpoint exercises real signature verification. Tests drive the
asynchronous side with `set_status()` and `build_event()`.
"""

import hashlib
import hmac
import json
import time
from uuid import uuid4

from storefront.gateway.payloads import attempt_from_object, event_from_payload
from storefront.gateway.port import (
    GatewayEvent,
    GatewayUnavailableError,
    PaymentAttempt,
    PaymentAttemptNotFoundError,
    PaymentGateway,
    SignatureVerificationError,
)

DEFAULT_WEBHOOK_SECRET = "whsec_fake"
SIGNATURE_TOLERANCE_SECONDS = 300


class FakeGateway(PaymentGateway):
    """In-memory payment gateway."""

    def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET, configured: bool = True) -> None:
        self.webhook_secret = webhook_secret
        self.is_configured = configured
        self.attempts: dict[str, dict] = {}
        self.unavailable_ids: set[str] = set()
        self.calls: list[dict] = []

    @property
    def configured(self) -> bool:
        return self.is_configured

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def configure(self, configured: bool = True) -> None:
        self.is_configured = configured

    def set_status(self, payment_attempt_id: str, status: str) -> None:
        """Move a payment attempt to a Stripe-style status (`succeeded`, `canceled`, ...)."""
        self.attempts[payment_attempt_id]["status"] = status

    def add_attempt(
        self,
        payment_attempt_id: str,
        status: str = "succeeded",
        amount: int = 0,
        currency: str = "usd",
        metadata: dict | None = None,
    ) -> None:
        """Register a payment attempt created outside `create_payment_attempt`."""
        self.attempts[payment_attempt_id] = {
            "id": payment_attempt_id,
            "object": "payment_intent",
            "status": status,
            "amount": amount,
            "currency": currency,
            "client_secret": f"{payment_attempt_id}_secret_{uuid4().hex[:8]}",
            "metadata": dict(metadata or {}),
        }

    def make_unavailable(self, payment_attempt_id: str) -> None:
        """Make retrievals of this id fail as if the gateway were down."""
        self.unavailable_ids.add(payment_attempt_id)

    def sign(self, payload: bytes, timestamp: int | None = None) -> str:
        timestamp = int(time.time()) if timestamp is None else timestamp
        digest = hmac.new(
            self.webhook_secret.encode(),
            f"{timestamp}.".encode() + payload,
            hashlib.sha256,
        ).hexdigest()
        return f"t={timestamp},v1={digest}"

    def build_event(
        self,
        event_type: str,
        payment_attempt_id: str,
        metadata: dict | None = None,
    ) -> tuple[bytes, str]:
        """Return a signed (payload, signature header) pair for a payment intent event."""
        obj = dict(self.attempts.get(payment_attempt_id) or {"id": payment_attempt_id, "object": "payment_intent"})
        if metadata is not None:
            obj["metadata"] = metadata
        payload = json.dumps(
            {
                "id": f"evt_{uuid4().hex[:16]}",
                "object": "event",
                "type": event_type,
                "data": {"object": obj},
            }
        ).encode()
        return payload, self.sign(payload)

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create_payment_attempt(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentAttempt:
        self.calls.append({"method": "create_payment_attempt", "amount": amount, "currency": currency})

        payment_attempt_id = f"pi_fake_{uuid4().hex[:16]}"
        self.add_attempt(
            payment_attempt_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            metadata=metadata,
        )
        return attempt_from_object(self.attempts[payment_attempt_id])

    def retrieve_payment_attempt(self, payment_attempt_id: str) -> PaymentAttempt:
        self.calls.append({"method": "retrieve_payment_attempt", "payment_attempt_id": payment_attempt_id})

        if payment_attempt_id in self.unavailable_ids:
            raise GatewayUnavailableError(f"Gateway timed out retrieving {payment_attempt_id}")
        if payment_attempt_id not in self.attempts:
            raise PaymentAttemptNotFoundError(payment_attempt_id)
        return attempt_from_object(self.attempts[payment_attempt_id])

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        parts = dict(item.split("=", 1) for item in (signature or "").split(",") if "=" in item)
        timestamp, received = parts.get("t"), parts.get("v1")
        if not timestamp or not received or not timestamp.isdigit():
            raise SignatureVerificationError("Malformed signature header")

        if abs(time.time() - int(timestamp)) > SIGNATURE_TOLERANCE_SECONDS:
            raise SignatureVerificationError("Signature timestamp outside tolerance")

        expected = self.sign(payload, int(timestamp)).split("v1=", 1)[1]
        if not hmac.compare_digest(expected, received):
            raise SignatureVerificationError("Signature mismatch")

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise SignatureVerificationError("Payload is not valid JSON") from exc
        return event_from_payload(data)
