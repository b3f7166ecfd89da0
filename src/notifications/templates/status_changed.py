"""Order status changed — customer update and admin summary."""

_CUSTOMER_LINES = {
    "confirmed": "Your payment has been confirmed. We are preparing your server.",
    "processing": "Your server is being set up.",
    "completed": "Your order is complete. Enjoy your server!",
    "cancelled": "Your order has been cancelled.",
    "refunded": "Your payment has been refunded.",
}


class StatusChangedTemplate:
    message_kind = "status_changed"

    @staticmethod
    def render(context: dict) -> str:
        line = _CUSTOMER_LINES.get(context["status"], f"Your order is now {context['status']}.")
        text = f"Order {context['order_id']} update\n\n{line}"
        if context.get("note"):
            text += f"\nNote: {context['note']}"
        return text


class StatusChangedAdminTemplate:
    message_kind = "status_changed_admin"

    @staticmethod
    def render(context: dict) -> str:
        return (
            f"Order {context['order_id']} is now {context['status'].upper()}\n"
            f"Customer: {context['customer_name']} ({context['customer_phone']})\n"
            f"Package: {context['package_name']} - {context['total']}"
        )
