"""Order deletion — command and handler.

Only cancelled orders may be deleted. The status history rows go with
the order.
"""

from protean import handle
from protean.exceptions import InvalidOperationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order, OrderStatus, OrderStatusHistory


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    deleted_by = String(required=True, max_length=100)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.status != OrderStatus.CANCELLED.value:
            raise InvalidOperationError(f"Only cancelled orders can be deleted (order is {order.status})")

        history_dao = current_domain.repository_for(OrderStatusHistory)._dao
        for entry in order.history:
            history_dao.delete(entry)
        repo._dao.delete(order)
        logger.info("Order deleted", order_id=order.id, deleted_by=command.deleted_by)
