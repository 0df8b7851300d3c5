"""Product aggregate: read-only reference data for checkout.

Prices are stored in minor currency units (cents). Orders reference a
Product by identifier and copy its price at the time of purchase; nothing in
the reconciliation flow mutates a Product.
"""

import os
from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String, Text

from storefront.domain import storefront


@storefront.aggregate
class Product:
    name: String(required=True, max_length=255)
    description: Text()
    price: Integer(required=True, min_value=0)
    currency: String(max_length=3, default=lambda: os.environ.get("DEFAULT_CURRENCY", "usd"))
    stripe_product_id: String(max_length=255)
    stripe_price_id: String(max_length=255)
    created_at: DateTime(default=lambda: datetime.now(UTC))

    def amount_for(self, quantity: int) -> int:
        """Total charge for `quantity` units, in minor units."""
        return self.price * quantity

    def to_dict_summary(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
        }
