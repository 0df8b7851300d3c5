"""User aggregate: local identity projection keyed by email."""

from datetime import UTC, datetime

from protean.fields import DateTime, String

from storefront.domain import storefront


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


@storefront.aggregate
class User:
    """A purchaser known to the storefront.

    Users are never registered explicitly; they come into existence the first
    time an order carries their email. `external_id` is the identity
    provider's subject when the purchase was made by a signed-in customer.
    """

    email: String(required=True, max_length=254, unique=True)
    external_id: String(max_length=255)
    name: String(max_length=255)
    phone: String(max_length=50)
    created_at: DateTime(default=lambda: datetime.now(UTC))

    @classmethod
    def from_contact(cls, email, external_id=None, name=None, phone=None):
        return cls(
            email=normalize_email(email),
            external_id=external_id,
            name=name,
            phone=phone,
        )

    def to_dict_summary(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
        }


@storefront.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str) -> User | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first

    def find_by_external_id(self, external_id: str) -> User | None:
        return self._dao.query.filter(external_id=external_id).all().first
