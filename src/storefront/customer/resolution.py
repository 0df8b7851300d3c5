"""Find-or-create of local users from checkout contact details.

Two requests carrying the same new email can race past the initial lookup.
The loser's insert trips the unique constraint on `User.email`; it then
re-reads and returns the winner's id, so callers never see the conflict.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from storefront.customer.user import User, normalize_email

logger = structlog.get_logger(__name__)


def resolve_user(
    email: str | None,
    external_id: str | None = None,
    name: str | None = None,
    phone: str | None = None,
) -> str | None:
    """Return the id of the user owning `email`, creating the user if needed.

    Returns None for guest checkouts that carry no email.
    """
    email = normalize_email(email)
    if email is None:
        return None

    repo = current_domain.repository_for(User)
    existing = repo.find_by_email(email)
    if existing is not None:
        return str(existing.id)

    user = User.from_contact(email, external_id=external_id, name=name, phone=phone)
    try:
        repo.add(user)
    except (ValidationError, IntegrityError) as exc:
        winner = repo.find_by_email(email)
        if winner is None:
            raise
        logger.info(
            "User created concurrently, using existing record",
            user_id=str(winner.id),
            error=str(exc),
        )
        return str(winner.id)

    logger.info("User created", user_id=str(user.id))
    return str(user.id)
