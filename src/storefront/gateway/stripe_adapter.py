"""Stripe payment gateway adapter.

Payment attempts are Stripe PaymentIntents. The API key is passed per call
rather than assigned to the module-global `stripe.api_key`, so several
adapters (tests, multiple accounts) can coexist in one process.
"""

import json

import stripe
import structlog

from storefront.gateway.payloads import attempt_from_object, event_from_payload
from storefront.gateway.port import (
    GatewayEvent,
    GatewayRejectedError,
    GatewayUnavailableError,
    PaymentAttempt,
    PaymentAttemptNotFoundError,
    PaymentGateway,
    SignatureVerificationError,
)

logger = structlog.get_logger(__name__)


def _as_dict(obj) -> dict:
    # StripeObject is a dict subclass only in older SDK releases; its str() is JSON in all of them.
    return obj if isinstance(obj, dict) else json.loads(str(obj))


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def create_payment_attempt(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentAttempt:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self.api_key,
            )
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as exc:
            logger.error("Stripe unavailable creating payment intent", error=str(exc))
            raise GatewayUnavailableError(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error("Stripe rejected payment intent creation", error=str(exc), error_type=type(exc).__name__)
            raise GatewayRejectedError(str(exc)) from exc
        return attempt_from_object(_as_dict(intent))

    def retrieve_payment_attempt(self, payment_attempt_id: str) -> PaymentAttempt:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_attempt_id, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == "resource_missing":
                raise PaymentAttemptNotFoundError(payment_attempt_id) from exc
            raise GatewayRejectedError(str(exc)) from exc
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as exc:
            logger.error(
                "Stripe unavailable retrieving payment intent",
                payment_attempt_id=payment_attempt_id,
                error=str(exc),
            )
            raise GatewayUnavailableError(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error(
                "Stripe rejected payment intent retrieval",
                payment_attempt_id=payment_attempt_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise GatewayRejectedError(str(exc)) from exc
        return attempt_from_object(_as_dict(intent))

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        if not self.webhook_secret:
            raise SignatureVerificationError("Webhook secret is not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationError(str(exc)) from exc
        except ValueError as exc:
            raise SignatureVerificationError("Payload is not valid JSON") from exc
        return event_from_payload(json.loads(payload))
