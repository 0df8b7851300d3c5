"""Order history for signed-in customers."""

import math

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.customer.user import User
from storefront.identity_provider.port import Principal
from storefront.order.lookup import get_or_none
from storefront.order.order import Order

MAX_PAGE_SIZE = 100


def _user_for(principal: Principal) -> User | None:
    repo = current_domain.repository_for(User)
    if principal.email:
        user = repo.find_by_email(principal.email)
        if user is not None:
            return user
    return repo.find_by_external_id(principal.subject)


def list_user_orders(principal: Principal, status: str | None = None, page: int = 1, limit: int = 10) -> dict:
    """A page of the signed-in customer's orders, newest first."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    user = _user_for(principal)
    if user is None:
        orders, total = [], 0
    else:
        results = current_domain.repository_for(Order).for_user(str(user.id), status=status, page=page, limit=limit)
        orders, total = results.items, results.total

    total_pages = math.ceil(total / limit) if total else 0
    return {
        "orders": [(order, get_or_none(Product, order.product_id)) for order in orders],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
    }
