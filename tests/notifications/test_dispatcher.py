"""Tests for NotificationDispatcher — recipients, failures and bulk sends."""

import pytest
from notifications.dispatcher import NotificationDispatcher
from notifications.errors import NotificationDeliveryError
from ordering.order.order import OrderStatus
from provisioning.credentials import ProvisioningCredentials
from provisioning.orchestrator import ProvisioningResult

pytestmark = pytest.mark.anyio

CUSTOMER_CHAT = "6281234567890@s.whatsapp.net"
ADMINS = ("6281100000001", "6281100000002")


class TestSend:
    async def test_send_delivers(self, dispatcher, channel):
        await dispatcher.send("628", "hello")
        assert channel.messages_to("628") == ["hello"]

    async def test_transient_failure_is_retried(self, dispatcher, channel):
        channel.configure(fail_times=2)
        await dispatcher.send("628", "hello")
        assert len(channel.attempts) == 3
        assert channel.messages_to("628") == ["hello"]

    async def test_exhausted_retries_raise_delivery_error(self, dispatcher, channel):
        channel.configure(should_succeed=False)
        with pytest.raises(NotificationDeliveryError) as exc:
            await dispatcher.send("628", "hello", "order_created")
        assert exc.value.recipient == "628"
        assert exc.value.message_kind == "order_created"
        assert exc.value.cause.attempts == 3

    async def test_auth_failure_not_retried(self, dispatcher, channel):
        channel.configure(should_succeed=False, failure_reason="Unauthorized", failure_status=401)
        with pytest.raises(NotificationDeliveryError):
            await dispatcher.send("628", "hello")
        assert len(channel.attempts) == 1


class TestOrderNotifications:
    async def test_order_created_reaches_customer_and_admins(self, dispatcher, channel, make_order):
        report = await dispatcher.on_order_created(make_order())

        assert report.sent == 3
        assert report.all_delivered
        assert "Order received" in channel.messages_to(CUSTOMER_CHAT)[0]
        for admin in ADMINS:
            assert "New order" in channel.messages_to(admin)[0]

    async def test_order_created_admins_only(self, dispatcher, channel, make_order):
        report = await dispatcher.on_order_created(make_order(), notify_customer=False)
        assert report.sent == 2
        assert channel.messages_to(CUSTOMER_CHAT) == []

    async def test_one_failing_recipient_does_not_stop_the_others(self, dispatcher, channel, make_order):
        channel.configure(failing_addresses={ADMINS[0]})

        report = await dispatcher.on_order_created(make_order())

        assert report.sent == 2
        assert report.failed == 1
        assert report.errors[0].recipient == ADMINS[0]
        assert channel.messages_to(ADMINS[1])

    @pytest.mark.parametrize(
        "path, admins_hear",
        [
            ((OrderStatus.CONFIRMED,), False),
            ((OrderStatus.CONFIRMED, OrderStatus.PROCESSING), False),
            ((OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.COMPLETED), True),
            ((OrderStatus.CANCELLED,), True),
            ((OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.REFUNDED), True),
        ],
    )
    async def test_status_change_admin_alerts(self, dispatcher, channel, make_order, path, admins_hear):
        order = make_order(statuses=path)

        await dispatcher.on_status_changed(order, note="by admin")

        assert len(channel.messages_to(CUSTOMER_CHAT)) == 1
        assert bool(channel.messages_to(ADMINS[0])) is admins_hear

    async def test_provisioned_sends_credentials_once(self, dispatcher, channel, make_order):
        order = make_order(statuses=[OrderStatus.CONFIRMED])
        credentials = ProvisioningCredentials(
            panel_url="https://panel.example.test",
            username="user_34567890_000123",
            email="6281234567890@customer.local",
            password="pa55word!",
            server_id="42",
            server_name="A1-ORD-NOTIFY01",
        )

        await dispatcher.on_provisioned(order, credentials)

        customer_messages = channel.messages_to(CUSTOMER_CHAT)
        assert len(customer_messages) == 1
        assert "Password: pa55word!" in customer_messages[0]
        assert all("pa55word!" not in text for text in channel.messages_to(ADMINS[0]))

    async def test_provisioning_failed(self, dispatcher, channel, make_order):
        order = make_order(statuses=[OrderStatus.CONFIRMED])
        result = ProvisioningResult(success=False, order=order, error="panel down", reason="network")

        report = await dispatcher.on_provisioning_failed(order, result)

        assert report.sent == 3
        assert "could not reach" in channel.messages_to(CUSTOMER_CHAT)[0]
        assert "Reason: network" in channel.messages_to(ADMINS[0])[0]

    async def test_notify_admins(self, dispatcher, channel):
        report = await dispatcher.notify_admins("Panel is down")
        assert report.sent == 2

    async def test_no_admins_configured(self, channel, executor, make_order):
        dispatcher = NotificationDispatcher(channel, executor)
        report = await dispatcher.on_order_created(make_order())
        assert report.sent == 1


class TestBulkSend:
    async def test_bulk_send_waits_between_messages(self, dispatcher, channel, sleeper, make_order):
        orders = [make_order(f"ORD-BULK000{i}", phone=f"62812000000{i}") for i in range(2, 5)]

        report = await dispatcher.bulk_send(orders, "Hello {customer_name}, {order_id}")

        assert (report.total, report.sent, report.failed) == (3, 3, 0)
        assert sleeper.delays == [1.0, 1.0]
        assert channel.messages_to("628120000002@s.whatsapp.net") == ["Hello Budi, ORD-BULK0002"]

    async def test_bulk_send_reports_failures(self, dispatcher, channel, make_order):
        orders = [make_order("ORD-BULK0002", phone="628120000002"), make_order("ORD-BULK0003", phone="628120000003")]
        channel.configure(failing_addresses={"628120000003@s.whatsapp.net"})

        report = await dispatcher.bulk_send(orders, "Maintenance tonight", delay=0)

        assert report.sent == 1
        assert report.failed == 1
        assert report.failures[0]["order_id"] == "ORD-BULK0003"
        assert report.failures[0]["recipient"] == "628120000003@s.whatsapp.net"

    async def test_empty_bulk_send(self, dispatcher):
        report = await dispatcher.bulk_send([], "anything")
        assert report.total == 0
