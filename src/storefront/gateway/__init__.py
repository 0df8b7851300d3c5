"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (PAYMENT_GATEWAY=fake, the default)
- StripeGateway for production (PAYMENT_GATEWAY=stripe)

A StripeGateway without STRIPE_SECRET_KEY reports itself unconfigured and
checkout falls back to demo payment attempts prefixed with MOCK_PREFIX.
Those identifiers are never sent to a gateway.
"""

import os

from storefront.gateway.port import PaymentGateway

MOCK_PREFIX = "pi_mock_"

_current_gateway: PaymentGateway | None = None


def is_mock_payment_attempt(payment_attempt_id: str | None) -> bool:
    return bool(payment_attempt_id) and payment_attempt_id.startswith(MOCK_PREFIX)


def _build_gateway() -> PaymentGateway:
    adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
    if adapter == "fake":
        from storefront.gateway.fake_adapter import DEFAULT_WEBHOOK_SECRET, FakeGateway

        return FakeGateway(webhook_secret=os.environ.get("FAKE_GATEWAY_WEBHOOK_SECRET", DEFAULT_WEBHOOK_SECRET))
    if adapter == "stripe":
        from storefront.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=os.environ.get("STRIPE_SECRET_KEY", ""),
            webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET", ""),
        )
    raise ValueError(f"Unknown payment gateway adapter: {adapter}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the environment-configured gateway."""
    global _current_gateway
    _current_gateway = None
