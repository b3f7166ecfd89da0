"""Shared formatting helpers for chat message templates."""


def format_money(amount: int, currency: str = "IDR") -> str:
    """``Rp 15.000`` for rupiah, ``USD 15,000`` for anything else."""
    if currency == "IDR":
        return "Rp " + f"{amount:,}".replace(",", ".")
    return f"{currency} {amount:,}"


def order_context(order, currency: str | None = None) -> dict:
    """Flatten an order into the placeholders templates may use."""
    currency = currency or order.currency or "IDR"
    return {
        "order_id": order.id,
        "customer_name": order.customer.display_name or order.customer.phone,
        "customer_phone": order.customer.phone,
        "package": order.package.key,
        "package_name": order.package.name,
        "status": order.status,
        "total": format_money(order.total_amount, currency),
        "duration": order.duration,
        "server_id": order.server_id or "-",
    }
