"""Static-token identity provider for development and testing."""

import os

from storefront.identity_provider.port import AuthenticationError, IdentityProvider, Principal, Profile


def _tokens_from_env(raw: str) -> dict[str, Principal]:
    """Parse `token:subject:email` triples separated by commas."""
    tokens = {}
    for entry in filter(None, (item.strip() for item in raw.split(","))):
        token, _, rest = entry.partition(":")
        subject, _, email = rest.partition(":")
        if token and subject:
            tokens[token] = Principal(subject=subject, email=email or None)
    return tokens


class FakeIdentityProvider(IdentityProvider):
    def __init__(self, tokens: dict[str, Principal] | None = None) -> None:
        self.tokens = dict(tokens) if tokens is not None else _tokens_from_env(os.environ.get("FAKE_IDENTITY_TOKENS", ""))
        self.profiles: dict[str, Profile] = {}

    def register(self, token: str, subject: str, email: str | None = None) -> None:
        self.tokens[token] = Principal(subject=subject, email=email)

    def verify_token(self, token: str) -> Principal:
        principal = self.tokens.get(token)
        if principal is None:
            raise AuthenticationError("Invalid or expired token")
        return principal

    def update_profile(self, subject: str, first_name: str | None, last_name: str | None) -> Profile:
        profile = Profile(subject=subject, first_name=first_name, last_name=last_name)
        self.profiles[subject] = profile
        return profile
