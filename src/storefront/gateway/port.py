"""Payment gateway port (abstract interface).

The storefront consumes three capabilities of the gateway: create a payment
attempt, retrieve a payment attempt by id, and turn a signed webhook delivery
into a verified event. Adapters translate their provider's vocabulary into
the types below so the reconciliation code never sees provider payloads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class AttemptStatus(Enum):
    """Gateway-side state of a payment attempt, collapsed to what reconciliation needs."""

    SUCCEEDED = "succeeded"
    PENDING = "pending"
    REQUIRES_ACTION = "requires_action"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_failure(self) -> bool:
        return self in (AttemptStatus.FAILED, AttemptStatus.CANCELED)


class EventKind(Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    OTHER = "other"


@dataclass(frozen=True)
class PaymentAttempt:
    """A gateway payment attempt as seen by the storefront."""

    id: str
    status: AttemptStatus
    amount: int
    currency: str
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayEvent:
    """A verified asynchronous notification from the gateway."""

    id: str
    kind: EventKind
    type: str
    payment_attempt_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    metadata: dict = field(default_factory=dict)


class GatewayError(Exception):
    """Base class for gateway failures."""


class GatewayUnavailableError(GatewayError):
    """The gateway could not be reached or answered with a server error. Retryable."""


class GatewayRejectedError(GatewayError):
    """The gateway refused the request: bad credentials, missing permissions or invalid parameters."""


class PaymentAttemptNotFoundError(GatewayError):
    """The gateway has no payment attempt with the given id."""

    def __init__(self, payment_attempt_id: str):
        self.payment_attempt_id = payment_attempt_id
        super().__init__(f"Payment attempt not found: {payment_attempt_id}")


class SignatureVerificationError(GatewayError):
    """A webhook delivery failed authenticity checks. Never retried."""


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @property
    def configured(self) -> bool:
        """Whether real charges can be created. Unconfigured gateways run the demo flow."""
        return True

    @abstractmethod
    def create_payment_attempt(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentAttempt:
        """Create a payment attempt for `amount` minor units."""
        ...

    @abstractmethod
    def retrieve_payment_attempt(self, payment_attempt_id: str) -> PaymentAttempt:
        """Fetch the authoritative state of a payment attempt."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        """Verify a webhook delivery and parse it.

        Raises SignatureVerificationError when the signature does not match.
        """
        ...
