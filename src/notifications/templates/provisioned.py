"""Server provisioned — one-time credentials for the customer."""


class ProvisionedTemplate:
    message_kind = "provisioned"

    @staticmethod
    def render(context: dict) -> str:
        return (
            "Your server is ready!\n\n"
            f"Order ID: {context['order_id']}\n"
            f"Server: {context['server_name']}\n"
            f"Panel: {context['panel_url']}\n"
            f"Username: {context['username']}\n"
            f"Password: {context['password']}\n\n"
            "Please change your password after the first login. "
            "This message will not be sent again."
        )


class ProvisionedAdminTemplate:
    message_kind = "provisioned_admin"

    @staticmethod
    def render(context: dict) -> str:
        return (
            f"Order {context['order_id']} provisioned automatically\n"
            f"Server ID: {context['server_id']}\n"
            f"Panel user: {context['username']}"
        )
