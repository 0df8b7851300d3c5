"""Tests for the Product aggregate."""

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.product import Product


class TestProduct:
    def test_amount_for_quantity(self):
        product = Product(name="Deluxe Gadget", price=4999)
        assert product.amount_for(2) == 9998

    def test_currency_defaults_to_usd(self):
        assert Product(name="Basic Tool", price=1499).currency == "usd"

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product(name="Broken", price=-1)

    def test_summary_excludes_gateway_ids(self):
        product = Product(name="Basic Tool", price=1499, stripe_price_id="price_123")
        summary = product.to_dict_summary()
        assert summary["price"] == 1499
        assert "stripe_price_id" not in summary
