"""Template registry — maps message kinds to template classes.

Each template renders plain chat text from a context dict built with
``notifications.templates.formatting.order_context``.
"""

from notifications.templates.order_created import OrderCreatedAdminTemplate, OrderCreatedTemplate
from notifications.templates.provisioned import ProvisionedAdminTemplate, ProvisionedTemplate
from notifications.templates.provisioning_failed import (
    ProvisioningFailedAdminTemplate,
    ProvisioningFailedTemplate,
)
from notifications.templates.status_changed import StatusChangedAdminTemplate, StatusChangedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    template.message_kind: template
    for template in (
        OrderCreatedTemplate,
        OrderCreatedAdminTemplate,
        StatusChangedTemplate,
        StatusChangedAdminTemplate,
        ProvisionedTemplate,
        ProvisionedAdminTemplate,
        ProvisioningFailedTemplate,
        ProvisioningFailedAdminTemplate,
    )
}


def get_template(message_kind: str):
    """Look up a template class by message kind."""
    template_cls = TEMPLATE_REGISTRY.get(message_kind)
    if template_cls is None:
        raise ValueError(f"No template registered for message kind: {message_kind}")
    return template_cls
