"""Plain-text rendering of catalogue and order data for chat replies."""

from itertools import groupby

from catalogue.port import HostingPackage
from notifications.templates.formatting import format_money
from ordering.order.statistics import OrderStats


def format_catalogue(store_name: str, packages: list[HostingPackage], currency: str) -> str:
    lines = [f"*{store_name}*", ""]
    for family, group in groupby(sorted(packages, key=lambda p: (p.family.value, p.key)), key=lambda p: p.family):
        lines.append(f"== {family.value} ==")
        for package in group:
            lines.append(f"{package.key} | {package.name}")
            lines.append(f"   {package.ram} RAM, {package.cpu} CPU, {package.storage} disk")
            lines.append(f"   {format_money(package.price, currency)} / month")
        lines.append("")
    lines.append("Order with: .order <package> <months>")
    lines.append("Example: .order A1 1")
    return "\n".join(lines)


def format_package_price(package: HostingPackage, currency: str) -> str:
    lines = [
        f"*{package.name}*",
        f"RAM: {package.ram}",
        f"CPU: {package.cpu}",
        f"Storage: {package.storage}",
        f"Bandwidth: {package.bandwidth}",
        "",
    ]
    for months in (1, 3, 6, 12):
        lines.append(f"{months} month(s): {format_money(package.price * months, currency)}")
    lines.append("")
    lines.append(f"Order with: .order {package.key} <months>")
    return "\n".join(lines)


def format_order_summary(order) -> str:
    return (
        f"{order.id} | {order.package.key} x{order.duration} | "
        f"{format_money(order.total_amount, order.currency)} | {order.status.upper()}"
    )


def format_order_detail(order, include_admin: bool = False) -> str:
    lines = [
        f"Order {order.id}",
        f"Status: {order.status.upper()}",
        f"Package: {order.package.name}",
        f"Specs: {order.package.ram} RAM, {order.package.cpu} CPU, {order.package.storage} disk",
        f"Duration: {order.duration} month(s)",
        f"Total: {format_money(order.total_amount, order.currency)}",
        f"Created: {order.created_at:%Y-%m-%d %H:%M}" if order.created_at else "Created: -",
    ]
    if order.notes:
        lines.append(f"Notes: {order.notes}")
    if include_admin:
        name = order.customer.display_name or "-"
        lines.insert(1, f"Customer: {name} ({order.customer.phone})")
        if order.server_id:
            lines.append(f"Server ID: {order.server_id}")
        if order.admin_notes:
            lines.append(f"Admin notes: {order.admin_notes}")
        lines.append("")
        lines.append("History:")
        for entry in order.history:
            note = f" - {entry.note}" if entry.note else ""
            lines.append(f"  {entry.recorded_at:%Y-%m-%d %H:%M} {entry.status} by {entry.actor}{note}")
    return "\n".join(lines)


def format_stats(stats: OrderStats, currency: str) -> str:
    lines = [
        "Order statistics",
        f"Total orders: {stats.total_orders}",
        f"Today: {stats.orders_today}",
        f"This month: {stats.orders_this_month}",
        f"Revenue (completed): {format_money(stats.total_revenue, currency)}",
        f"Average order: {format_money(round(stats.average_order_value), currency)}",
        "",
        "By status:",
    ]
    lines.extend(f"  {status}: {count}" for status, count in stats.orders_by_status.items())
    if stats.orders_by_package:
        lines.append("By package:")
        lines.extend(f"  {key}: {count}" for key, count in sorted(stats.orders_by_package.items()))
    return "\n".join(lines)
