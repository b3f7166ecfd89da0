"""Notification dispatcher — formats and sends chat messages for order events.

Callers invoke these methods explicitly after a lifecycle operation
returns. Every recipient is sent to independently through the retrying
executor; a failed delivery is logged and counted and never propagates
back into the order transition that triggered it.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

import structlog

from notifications.channel.messaging_port import MessagingChannel
from notifications.errors import NotificationDeliveryError
from notifications.templates import get_template
from notifications.templates.broadcast import render_broadcast
from notifications.templates.formatting import order_context
from shared.resilience.errors import ExternalCallError
from shared.resilience.executor import MESSAGE_SEND, RetryingExecutor, RetryPolicy

logger = structlog.get_logger(__name__)

# Status changes that admins hear about as well as the customer
ADMIN_ALERT_STATUSES = frozenset({"completed", "cancelled", "refunded"})


@dataclass
class DeliveryReport:
    sent: int = 0
    failed: int = 0
    errors: list[NotificationDeliveryError] = field(default_factory=list)

    @property
    def all_delivered(self) -> bool:
        return self.failed == 0

    def merge(self, other: "DeliveryReport") -> None:
        self.sent += other.sent
        self.failed += other.failed
        self.errors.extend(other.errors)


@dataclass
class BulkSendReport:
    total: int = 0
    sent: int = 0
    failed: int = 0
    failures: list[dict] = field(default_factory=list)


class NotificationDispatcher:
    def __init__(
        self,
        channel: MessagingChannel,
        executor: RetryingExecutor,
        admin_addresses: Iterable[str] = (),
        currency: str = "IDR",
        bulk_delay: float = 1.0,
        policy: RetryPolicy = MESSAGE_SEND,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.channel = channel
        self.executor = executor
        self.admin_addresses = list(admin_addresses)
        self.currency = currency
        self.bulk_delay = bulk_delay
        self.policy = policy
        self._sleep = sleep

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    async def send(self, address: str, text: str, message_kind: str = "message") -> None:
        """Send one message, raising NotificationDeliveryError once retries run out."""
        try:
            await self.executor.run(
                lambda: self.channel.send_text(address, text),
                name=f"send.{message_kind}",
                policy=self.policy,
            )
        except ExternalCallError as exc:
            error = NotificationDeliveryError(address, message_kind, exc)
            logger.error(
                "Notification delivery failed",
                recipient=address,
                message_kind=message_kind,
                reason=exc.reason.value,
                attempts=exc.attempts,
            )
            raise error from exc

    async def _deliver(self, report: DeliveryReport, address: str, text: str, message_kind: str) -> None:
        try:
            await self.send(address, text, message_kind)
        except NotificationDeliveryError as error:
            report.failed += 1
            report.errors.append(error)
        else:
            report.sent += 1

    async def _to_customer_and_admins(
        self, order, message_kind: str, context: dict, include_admins: bool = True, notify_customer: bool = True
    ) -> DeliveryReport:
        report = DeliveryReport()
        if notify_customer:
            customer_text = get_template(message_kind).render(context)
            await self._deliver(report, order.customer.chat_address, customer_text, message_kind)

        if include_admins and self.admin_addresses:
            admin_kind = f"{message_kind}_admin"
            report.merge(await self.notify_admins(get_template(admin_kind).render(context), admin_kind))
        return report

    async def notify_admins(self, text: str, message_kind: str = "admin_alert") -> DeliveryReport:
        report = DeliveryReport()
        for address in self.admin_addresses:
            await self._deliver(report, address, text, message_kind)
        return report

    # -------------------------------------------------------------------
    # Order events
    # -------------------------------------------------------------------
    async def on_order_created(self, order, notify_customer: bool = True) -> DeliveryReport:
        return await self._to_customer_and_admins(
            order, "order_created", order_context(order, self.currency), notify_customer=notify_customer
        )

    async def on_status_changed(self, order, note: str | None = None) -> DeliveryReport:
        context = order_context(order, self.currency)
        context["note"] = note
        return await self._to_customer_and_admins(
            order, "status_changed", context, include_admins=order.status in ADMIN_ALERT_STATUSES
        )

    async def on_provisioned(self, order, credentials) -> DeliveryReport:
        context = order_context(order, self.currency)
        context.update(
            panel_url=credentials.panel_url,
            username=credentials.username,
            password=credentials.password,
            server_id=credentials.server_id,
            server_name=credentials.server_name,
        )
        return await self._to_customer_and_admins(order, "provisioned", context)

    async def on_provisioning_failed(self, order, result) -> DeliveryReport:
        context = order_context(order, self.currency)
        context.update(
            reason=result.reason,
            error=result.error,
            compensation_error=result.compensation_error,
        )
        return await self._to_customer_and_admins(order, "provisioning_failed", context)

    # -------------------------------------------------------------------
    # Bulk send
    # -------------------------------------------------------------------
    async def bulk_send(self, orders: list, template: str, delay: float | None = None) -> BulkSendReport:
        """Send ``template`` to each order's customer with placeholders filled in.

        Waits ``delay`` seconds between messages to stay under the channel's
        outbound rate limit.
        """
        delay = self.bulk_delay if delay is None else delay
        report = BulkSendReport(total=len(orders))

        for index, order in enumerate(orders):
            if index and delay > 0:
                await self._sleep(delay)
            text = render_broadcast(template, order, self.currency)
            try:
                await self.send(order.customer.chat_address, text, "broadcast")
            except NotificationDeliveryError as error:
                report.failed += 1
                report.failures.append(
                    {"order_id": order.id, "recipient": error.recipient, "error": str(error.cause)}
                )
            else:
                report.sent += 1

        logger.info("Bulk send finished", total=report.total, sent=report.sent, failed=report.failed)
        return report
