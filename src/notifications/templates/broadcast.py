"""Bulk announcement rendering with per-order placeholders."""

import re

from notifications.templates.formatting import order_context

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_broadcast(template: str, order, currency: str | None = None) -> str:
    """Substitute ``{order_id}``, ``{customer_name}``, ``{package}``,
    ``{status}``, ``{total}`` and ``{duration}``. Unknown placeholders and
    stray braces are left as written.
    """
    context = order_context(order, currency)
    return _PLACEHOLDER.sub(lambda match: str(context.get(match.group(1), match.group(0))), template)
