"""Sample catalogue used by demos and local development."""

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product

logger = structlog.get_logger(__name__)

SAMPLE_PRODUCTS = [
    {
        "name": "Premium Widget",
        "description": "A high-quality widget perfect for your needs",
        "price": 2999,
        "currency": "usd",
    },
    {
        "name": "Deluxe Gadget",
        "description": "The ultimate gadget with advanced features",
        "price": 4999,
        "currency": "usd",
    },
    {
        "name": "Basic Tool",
        "description": "Essential tool for everyday use",
        "price": 1499,
        "currency": "usd",
    },
]


def seed_products(products: list[dict] | None = None) -> list[str]:
    """Insert sample products, skipping names that already exist."""
    repo = current_domain.repository_for(Product)
    created = []
    for data in products or SAMPLE_PRODUCTS:
        existing = repo._dao.query.filter(name=data["name"]).all().first
        if existing is not None:
            logger.info("Product already seeded", product_name=data["name"])
            continue

        product = Product(**data)
        repo.add(product)
        created.append(str(product.id))
        logger.info("Product seeded", product_id=str(product.id), product_name=product.name)
    return created
