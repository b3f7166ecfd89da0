import pytest
from notifications.dispatcher import NotificationDispatcher
from ordering.domain import ordering
from ordering.order.order import Customer, Order, PackageSnapshot

ADMINS = ("6281100000001", "6281100000002")


@pytest.fixture
def dispatcher(channel, executor, sleeper):
    return NotificationDispatcher(channel, executor, admin_addresses=ADMINS, bulk_delay=1.0, sleep=sleeper)


@pytest.fixture
def make_order():
    """Factory for unsaved orders, optionally walked through ``statuses``."""

    def _make(order_id="ORD-NOTIFY01", phone="6281234567890", name="Budi", key="A1", duration=3, statuses=()):
        with ordering.domain_context():
            order = Order.create(
                order_id=order_id,
                customer=Customer(phone=phone, display_name=name, chat_address=f"{phone}@s.whatsapp.net"),
                package=PackageSnapshot(key=key, name=f"{key} - NodeJS Kroco", unit_price=5000),
                duration=duration,
            )
            for status in statuses:
                order.transition_to(status, actor="admin")
        return order

    return _make
