"""Order Store queries.

The unique constraint on `payment_attempt_id` is what makes concurrent
writers safe; everything here is a plain read.
"""

from storefront.domain import storefront
from storefront.order.order import OPEN_STATUSES, Order, OrderStatus


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_payment_attempt(self, payment_attempt_id: str) -> Order | None:
        return self._dao.query.filter(payment_attempt_id=payment_attempt_id).all().first

    def awaiting_reconciliation(self, limit: int = 100, offset: int = 0) -> list[Order]:
        """A page of provisional or otherwise unsettled orders, oldest first.

        Terminal orders are never provisional, so filtering on open statuses
        covers both conditions.
        """
        query = self._dao.query.filter(status__in=OPEN_STATUSES).order_by("created_at")
        return query.offset(offset).limit(limit).all().items

    def for_user(self, user_id: str, status: str | None = None, page: int = 1, limit: int = 10):
        """A page of a user's orders, newest first. Returns the ResultSet for pagination."""
        query = self._dao.query.filter(user_id=user_id)
        if status:
            query = query.filter(status=status)
        return query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()

    def sync_stats(self) -> list[dict]:
        """Order counts grouped by (status, is_provisional), skipping empty groups."""
        stats = []
        for status in OrderStatus:
            for is_provisional in (True, False):
                count = self._dao.query.filter(status=status.value, is_provisional=is_provisional).all().total
                if count:
                    stats.append({"status": status.value, "is_provisional": is_provisional, "count": count})
        return stats
