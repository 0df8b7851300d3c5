"""Profile edits for signed-in customers.

The identity provider owns the profile; the local User projection only
mirrors the display name so order views stay consistent with it.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.customer.user import User
from storefront.identity_provider.port import IdentityProvider, Principal, Profile

logger = structlog.get_logger(__name__)


def update_profile(
    principal: Principal,
    provider: IdentityProvider,
    first_name: str | None,
    last_name: str | None,
) -> Profile:
    first_name = (first_name or "").strip() or None
    last_name = (last_name or "").strip() or None
    if first_name is None and last_name is None:
        raise ValidationError({"first_name": ["First or last name is required"]})

    profile = provider.update_profile(principal.subject, first_name, last_name)

    repo = current_domain.repository_for(User)
    user = repo.find_by_email(principal.email) if principal.email else None
    if user is None:
        user = repo.find_by_external_id(principal.subject)
    if user is not None:
        user.name = profile.full_name
        if not user.external_id:
            user.external_id = principal.subject
        repo.add(user)

    logger.info("Profile updated", subject=principal.subject, local_user=user is not None)
    return profile
