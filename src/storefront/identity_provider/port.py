"""Identity provider port.

The storefront turns a bearer token into the signed-in customer's subject
and email, and forwards profile edits; sign-in itself happens at the
provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    subject: str
    email: str | None = None


@dataclass(frozen=True)
class Profile:
    subject: str
    first_name: str | None = None
    last_name: str | None = None

    @property
    def full_name(self) -> str | None:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or None


class AuthenticationError(Exception):
    """Missing, malformed or rejected bearer token."""


class IdentityProvider(ABC):
    @abstractmethod
    def verify_token(self, token: str) -> Principal:
        """Return the principal for a bearer token, or raise AuthenticationError."""
        ...

    @abstractmethod
    def update_profile(self, subject: str, first_name: str | None, last_name: str | None) -> Profile:
        """Store the customer's name at the provider and return the updated profile."""
        ...
