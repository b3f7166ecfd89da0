"""Server assignment and provisioning outcome — commands and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import SYSTEM_ACTOR, Order


@ordering.command(part_of="Order")
class AssignServer:
    """Record the panel server identifier on an order.

    ``override`` replaces an existing value and is reserved for admins.
    """

    order_id = Identifier(required=True)
    server_id = String(required=True, max_length=100)
    assigned_by = String(required=True, max_length=100)
    override = Boolean(default=False)


@ordering.command(part_of="Order")
class MarkProvisioned:
    """Complete a confirmed order after its server was created."""

    order_id = Identifier(required=True)
    server_id = String(required=True, max_length=100)
    panel_username = String(max_length=100)
    actor = String(max_length=100, default=SYSTEM_ACTOR)


@ordering.command_handler(part_of=Order)
class OrderServerHandler:
    @handle(AssignServer)
    def assign_server(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.assign_server(
            command.server_id,
            assigned_by=command.assigned_by,
            override=command.override,
        )
        if changed:
            repo.add(order)
            logger.info(
                "Server assigned",
                order_id=order.id,
                server_id=command.server_id,
                assigned_by=command.assigned_by,
            )
        return changed

    @handle(MarkProvisioned)
    def mark_provisioned(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_provisioned(
            command.server_id,
            actor=command.actor or SYSTEM_ACTOR,
            panel_username=command.panel_username,
        )
        repo.add(order)
        logger.info("Order provisioned", order_id=order.id, server_id=command.server_id)
