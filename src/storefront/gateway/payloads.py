"""Translation of Stripe-shaped payloads into gateway port types.

Both adapters speak the PaymentIntent vocabulary: the fake gateway emits the
same event envelope Stripe does so webhook handling is exercised end to end.
"""

from storefront.gateway.port import AttemptStatus, EventKind, GatewayEvent, PaymentAttempt

_ATTEMPT_STATUSES = {
    "succeeded": AttemptStatus.SUCCEEDED,
    "processing": AttemptStatus.PENDING,
    "requires_capture": AttemptStatus.PENDING,
    "requires_confirmation": AttemptStatus.PENDING,
    "requires_action": AttemptStatus.REQUIRES_ACTION,
    "requires_payment_method": AttemptStatus.REQUIRES_ACTION,
    "canceled": AttemptStatus.CANCELED,
    "failed": AttemptStatus.FAILED,
}

_EVENT_KINDS = {
    "payment_intent.succeeded": EventKind.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": EventKind.PAYMENT_FAILED,
}

# Keys written into payment attempt metadata at creation time and read back
# when a webhook has to create the order itself.
METADATA_KEYS = (
    "product_id",
    "quantity",
    "customer_id",
    "customer_email",
    "customer_name",
    "customer_phone",
)


def attempt_status(raw_status: str | None) -> AttemptStatus:
    # Unknown statuses are treated as still in flight.
    return _ATTEMPT_STATUSES.get(raw_status or "", AttemptStatus.PENDING)


def attempt_from_object(obj: dict) -> PaymentAttempt:
    return PaymentAttempt(
        id=obj["id"],
        status=attempt_status(obj.get("status")),
        amount=int(obj.get("amount") or 0),
        currency=obj.get("currency") or "usd",
        client_secret=obj.get("client_secret"),
        metadata=dict(obj.get("metadata") or {}),
    )


def event_from_payload(payload: dict) -> GatewayEvent:
    event_type = payload.get("type", "unknown")
    obj = (payload.get("data") or {}).get("object") or {}

    payment_attempt_id = None
    if obj.get("object", "payment_intent") == "payment_intent":
        payment_attempt_id = obj.get("id")

    return GatewayEvent(
        id=payload.get("id", ""),
        kind=_EVENT_KINDS.get(event_type, EventKind.OTHER),
        type=event_type,
        payment_attempt_id=payment_attempt_id,
        amount=obj.get("amount"),
        currency=obj.get("currency"),
        metadata=dict(obj.get("metadata") or {}),
    )


def clean_metadata(metadata: dict) -> dict[str, str]:
    """Drop empty values and stringify the rest; gateways only store strings."""
    return {key: str(value) for key, value in metadata.items() if value not in (None, "")}
