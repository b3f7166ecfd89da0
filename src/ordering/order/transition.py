"""Order status transitions — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order, OrderStatus


@ordering.command(part_of="Order")
class TransitionOrder:
    """Move an order to another status along the legal-transition table."""

    order_id = Identifier(required=True)
    target_status = String(required=True, max_length=20, choices=OrderStatus)
    actor = String(required=True, max_length=100)
    note = Text()


@ordering.command_handler(part_of=Order)
class TransitionOrderHandler:
    @handle(TransitionOrder)
    def transition_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.transition_to(OrderStatus(command.target_status), actor=command.actor, note=command.note)
        repo.add(order)
        logger.info(
            "Order status changed",
            order_id=order.id,
            previous_status=previous,
            new_status=order.status,
            actor=command.actor,
        )
        return order.status
