"""Identity provider abstraction: pluggable bearer-token verification."""

import os

from storefront.identity_provider.port import IdentityProvider

_provider_instance: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """Return the configured identity provider (singleton).

    Uses FakeIdentityProvider by default. Configure via the IDENTITY_PROVIDER
    environment variable.
    """
    global _provider_instance
    if _provider_instance is None:
        adapter = os.environ.get("IDENTITY_PROVIDER", "fake")
        if adapter == "fake":
            from storefront.identity_provider.fake_adapter import FakeIdentityProvider

            _provider_instance = FakeIdentityProvider()
        else:
            raise ValueError(f"Unknown identity provider: {adapter}")
    return _provider_instance


def set_identity_provider(provider: IdentityProvider) -> None:
    global _provider_instance
    _provider_instance = provider


def reset_identity_provider() -> None:
    """Reset the identity provider singleton (useful for testing)."""
    global _provider_instance
    _provider_instance = None
