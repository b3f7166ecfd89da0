"""Order statistics read model."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from ordering.order.order import Order, OrderStatus


@dataclass(frozen=True)
class OrderStats:
    total_orders: int = 0
    orders_by_status: dict[str, int] = field(default_factory=dict)
    orders_by_package: dict[str, int] = field(default_factory=dict)
    total_revenue: int = 0
    average_order_value: float = 0.0
    orders_today: int = 0
    orders_this_month: int = 0


def _local(moment: datetime, tz: ZoneInfo) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(tz)


def compute_stats(orders: list[Order], tz: ZoneInfo, now: datetime | None = None) -> OrderStats:
    """Aggregate counts and revenue.

    Revenue only counts completed orders. The average is taken over every
    order regardless of status. "Today" and "this month" use the local
    calendar of ``tz``.
    """
    if not orders:
        return OrderStats(orders_by_status={status.value: 0 for status in OrderStatus})

    local_now = _local(now or datetime.now(UTC), tz)
    by_status = Counter({status.value: 0 for status in OrderStatus})
    by_package: Counter = Counter()
    revenue = 0
    grand_total = 0
    today = 0
    this_month = 0

    for order in orders:
        by_status[order.status] += 1
        by_package[order.package.key] += 1
        grand_total += order.total_amount
        if order.status == OrderStatus.COMPLETED.value:
            revenue += order.total_amount

        if order.created_at is None:
            continue
        created = _local(order.created_at, tz)
        if (created.year, created.month) == (local_now.year, local_now.month):
            this_month += 1
            if created.day == local_now.day:
                today += 1

    return OrderStats(
        total_orders=len(orders),
        orders_by_status=dict(by_status),
        orders_by_package=dict(by_package),
        total_revenue=revenue,
        average_order_value=round(grand_total / len(orders), 2),
        orders_today=today,
        orders_this_month=this_month,
    )
