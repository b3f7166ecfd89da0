"""Order created — acknowledgement to the customer and a heads-up to admins."""


class OrderCreatedTemplate:
    message_kind = "order_created"

    @staticmethod
    def render(context: dict) -> str:
        return (
            "Order received!\n\n"
            f"Order ID: {context['order_id']}\n"
            f"Package: {context['package_name']}\n"
            f"Duration: {context['duration']} month(s)\n"
            f"Total: {context['total']}\n\n"
            "Please complete the payment and send the proof to an admin. "
            f"Check progress any time with .order-status {context['order_id']}"
        )


class OrderCreatedAdminTemplate:
    message_kind = "order_created_admin"

    @staticmethod
    def render(context: dict) -> str:
        return (
            "New order\n\n"
            f"Order ID: {context['order_id']}\n"
            f"Customer: {context['customer_name']} ({context['customer_phone']})\n"
            f"Package: {context['package_name']} x {context['duration']} month(s)\n"
            f"Total: {context['total']}\n\n"
            f"Confirm payment with .order-confirm {context['order_id']}"
        )
