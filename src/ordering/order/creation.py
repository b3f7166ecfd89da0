"""Order creation — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Customer, Order, PackageSnapshot, generate_order_id

_MAX_ID_ATTEMPTS = 5


@ordering.command(part_of="Order")
class CreateOrder:
    """Place a pending order for a catalogue package.

    The package fields are a snapshot taken by the caller from the
    catalogue; the handler never looks prices up itself.
    """

    order_id = Identifier()  # Generated when omitted
    customer_phone = String(required=True, max_length=32)
    customer_name = String(max_length=100)
    chat_address = String(required=True, max_length=255)
    package_key = String(required=True, max_length=20)
    package_name = String(required=True, max_length=100)
    unit_price = Integer(required=True, min_value=0)
    ram = String(max_length=20)
    cpu = String(max_length=20)
    storage = String(max_length=30)
    bandwidth = String(max_length=30)
    duration = Integer(required=True)
    currency = String(max_length=3, default="IDR")
    notes = Text()


def _unused_order_id(repo) -> str:
    for _ in range(_MAX_ID_ATTEMPTS):
        candidate = generate_order_id()
        if repo.get_or_none(candidate) is None:
            return candidate
    raise RuntimeError("Could not generate a unique order ID")


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        repo = current_domain.repository_for(Order)
        order_id = command.order_id or _unused_order_id(repo)

        order = Order.create(
            order_id=order_id,
            customer=Customer(
                phone=command.customer_phone,
                display_name=command.customer_name,
                chat_address=command.chat_address,
            ),
            package=PackageSnapshot(
                key=command.package_key,
                name=command.package_name,
                unit_price=command.unit_price,
                ram=command.ram,
                cpu=command.cpu,
                storage=command.storage,
                bandwidth=command.bandwidth,
            ),
            duration=command.duration,
            currency=command.currency,
            notes=command.notes,
        )
        repo.add(order)
        logger.info(
            "Order created",
            order_id=order.id,
            package=command.package_key,
            duration=command.duration,
            total=order.total_amount,
        )
        return str(order.id)
