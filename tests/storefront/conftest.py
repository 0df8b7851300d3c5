import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    from storefront.gateway import reset_gateway
    from storefront.identity_provider import reset_identity_provider

    with storefront_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

        reset_gateway()
        reset_identity_provider()


@pytest.fixture
def gateway():
    """A fresh FakeGateway installed as the active gateway."""
    from storefront.gateway import set_gateway
    from storefront.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture
def identity():
    from storefront.identity_provider import set_identity_provider
    from storefront.identity_provider.fake_adapter import FakeIdentityProvider

    provider = FakeIdentityProvider(tokens={})
    set_identity_provider(provider)
    return provider


@pytest.fixture
def product():
    from storefront.catalogue.product import Product

    widget = Product(name="Premium Widget", description="A widget", price=2999, currency="usd")
    current_domain.repository_for(Product).add(widget)
    return widget
