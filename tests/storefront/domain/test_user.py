"""Tests for the User aggregate and email normalization."""

import pytest
from protean.exceptions import ValidationError

from storefront.customer.user import User, normalize_email


class TestNormalizeEmail:
    def test_lowercases_and_strips(self):
        assert normalize_email("  Jane@Example.COM ") == "jane@example.com"

    def test_none_stays_none(self):
        assert normalize_email(None) is None

    def test_blank_becomes_none(self):
        assert normalize_email("   ") is None


class TestUserFromContact:
    def test_from_contact_normalizes_email(self):
        user = User.from_contact("Jane@Example.com", name="Jane")
        assert user.email == "jane@example.com"
        assert user.name == "Jane"

    def test_from_contact_keeps_external_id(self):
        user = User.from_contact("jane@example.com", external_id="sub-123")
        assert user.external_id == "sub-123"

    def test_email_required(self):
        with pytest.raises(ValidationError):
            User.from_contact(None)

    def test_summary(self):
        user = User.from_contact("jane@example.com", name="Jane")
        assert user.to_dict_summary() == {"id": str(user.id), "email": "jane@example.com", "name": "Jane"}
