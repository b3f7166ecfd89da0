"""Provisioning failed — reassurance for the customer, remediation for admins."""

_CUSTOMER_LINES = {
    "timeout": "The hosting panel is slow to respond. We are retrying.",
    "network": "We could not reach the hosting panel. We are retrying.",
    "rate_limit": "The hosting panel is busy. We are retrying shortly.",
}
_SUPPORT_LINE = "Setting up your server needs manual attention. Please contact support."


class ProvisioningFailedTemplate:
    message_kind = "provisioning_failed"

    @staticmethod
    def render(context: dict) -> str:
        line = _CUSTOMER_LINES.get(context.get("reason") or "", _SUPPORT_LINE)
        return f"Order {context['order_id']}\n\n{line}\nYour payment is safe and the order stays confirmed."


class ProvisioningFailedAdminTemplate:
    message_kind = "provisioning_failed_admin"

    @staticmethod
    def render(context: dict) -> str:
        text = (
            f"Provisioning FAILED for order {context['order_id']}\n"
            f"Reason: {context.get('reason') or 'unknown'}\n"
            f"Error: {context.get('error') or '-'}\n"
        )
        if context.get("compensation_error"):
            text += f"Orphaned panel account, clean up manually: {context['compensation_error']}\n"
        text += f"\nRetry with .provision-retry {context['order_id']}"
        return text
