"""Custom repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order queries used by the lifecycle service and statistics.

    Results are newest first unless stated otherwise.
    """

    def all_orders(self) -> list[Order]:
        return self._dao.query.order_by("-created_at").all().items

    def by_status(self, status: str) -> list[Order]:
        return self._dao.query.filter(status=status).order_by("-created_at").all().items

    def for_customer(self, phone: str) -> list[Order]:
        return [order for order in self.all_orders() if order.customer and order.customer.phone == phone]

    def oldest_first(self, status: str) -> list[Order]:
        return self._dao.query.filter(status=status).order_by("created_at").all().items
