"""Storefront bot — turns inbound chat text into lifecycle calls and replies.

``handle_message`` is the whole inbound path: admission check, command
parse, the lifecycle operation, explicit notifications, and finally the
reply text for the sender. It returns None when nothing should be sent
back (plain chat, duplicates, unknown commands).
"""

import math
import re

import structlog
from protean.domain import Domain
from protean.exceptions import (
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ValidationError,
)

from admission.controller import AdmissionController
from catalogue.port import CataloguePort
from notifications.dispatcher import NotificationDispatcher
from notifications.templates import get_template
from notifications.templates.formatting import order_context
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import OrderStatus
from provisioning.orchestrator import ProvisioningOrchestrator, ProvisioningResult
from shared.logging import add_context, clear_context
from storefront.formatting import (
    format_catalogue,
    format_order_detail,
    format_order_summary,
    format_package_price,
    format_stats,
)
from storefront.parser import ParsedCommand, parse_command

logger = structlog.get_logger(__name__)

ORDER_LIST_LIMIT = 10

HELP_TEXT = """Available commands
.katalog - list hosting packages
.harga [package] - prices for a package
.order <package> <months> - place an order (1-12 months)
.order-status <order-id> - check an order
.my-orders - your recent orders
.help - this message"""

ADMIN_HELP_TEXT = """Admin commands
.orders / .pending-orders
.order-detail <id>
.order-confirm <id> / .order-process <id> / .order-complete <id>
.order-cancel <id> [reason] / .order-refund <id>
.order-stats / .order-search <query>
.provision-retry <id> / .provision-status / .provision-test
.unblock <sender>
.broadcast <status> <message>"""


def normalize_sender(sender: str) -> str:
    """Chat addresses look like ``62812...@s.whatsapp.net``; keep the digits."""
    local = (sender or "").split("@", 1)[0]
    return re.sub(r"\D", "", local) or local


class StorefrontBot:
    def __init__(
        self,
        domain: Domain,
        admission: AdmissionController,
        lifecycle: OrderLifecycle,
        catalogue: CataloguePort,
        orchestrator: ProvisioningOrchestrator,
        dispatcher: NotificationDispatcher,
        admins: set[str] | frozenset[str] = frozenset(),
        store_name: str = "Hosting Store",
        currency: str = "IDR",
    ):
        self.domain = domain
        self.admission = admission
        self.lifecycle = lifecycle
        self.catalogue = catalogue
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher
        self.admins = {normalize_sender(admin) for admin in admins}
        self.store_name = store_name
        self.currency = currency

        self._customer_commands = {
            "katalog": self._katalog,
            "harga": self._harga,
            "order": self._order,
            "order-status": self._order_status,
            "my-orders": self._my_orders,
            "help": self._help,
        }
        self._admin_commands = {
            "orders": self._orders,
            "pending-orders": self._pending_orders,
            "order-detail": self._order_detail,
            "order-confirm": self._order_confirm,
            "order-process": self._order_process,
            "order-complete": self._order_complete,
            "order-cancel": self._order_cancel,
            "order-refund": self._order_refund,
            "order-stats": self._order_stats,
            "order-search": self._order_search,
            "provision-retry": self._provision_retry,
            "provision-status": self._provision_status,
            "provision-test": self._provision_test,
            "unblock": self._unblock,
            "broadcast": self._broadcast,
        }

    def is_admin(self, sender: str) -> bool:
        return normalize_sender(sender) in self.admins

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    async def handle_message(
        self,
        sender: str,
        text: str,
        chat_address: str | None = None,
        display_name: str | None = None,
    ) -> str | None:
        phone = normalize_sender(sender)
        decision = self.admission.admit(phone, text)
        if decision.is_duplicate:
            return None
        if decision.is_blocked:
            wait = math.ceil(self.admission.status(phone).block_time_remaining)
            return f"Too many requests. Please wait {wait} seconds before trying again."

        command = parse_command(text)
        if command is None:
            return None

        handler = self._customer_commands.get(command.name)
        if handler is None and self.is_admin(phone):
            handler = self._admin_commands.get(command.name)
        if handler is None:
            return None

        context = {"phone": phone, "chat_address": chat_address or sender, "display_name": display_name}
        add_context(sender=phone, command=command.name)
        try:
            with self.domain.domain_context():
                return await handler(command, context)
        except ValidationError as exc:
            logger.info("Command rejected", messages=exc.messages)
            return "Invalid input: " + "; ".join(
                f"{field}: {', '.join(map(str, errors))}" for field, errors in exc.messages.items()
            )
        except ObjectNotFoundError as exc:
            return f"Not found: {exc.args[0] if exc.args else 'unknown item'}"
        except (InvalidStateError, InvalidOperationError) as exc:
            logger.info("Command refused", error=str(exc.args[0] if exc.args else exc))
            return f"Cannot do that: {exc.args[0] if exc.args else exc}"
        finally:
            clear_context()

    # -------------------------------------------------------------------
    # Customer commands
    # -------------------------------------------------------------------
    async def _katalog(self, command: ParsedCommand, context: dict) -> str:
        return format_catalogue(self.store_name, self.catalogue.list_packages(), self.currency)

    async def _harga(self, command: ParsedCommand, context: dict) -> str:
        key = command.arg(0)
        if key is None:
            return await self._katalog(command, context)
        package = self.catalogue.get_package(key)
        if package is None or not package.active:
            return f"Package {key.upper()} not found. See .katalog for the list."
        return format_package_price(package, self.currency)

    async def _order(self, command: ParsedCommand, context: dict) -> str:
        usage = "Usage: .order <package> <months>\nExample: .order A1 1"
        if len(command.args) < 2:
            return usage
        try:
            duration = int(command.args[1])
        except ValueError:
            return usage

        order = self.lifecycle.create_order(
            customer_phone=context["phone"],
            package_key=command.args[0],
            duration=duration,
            customer_name=context["display_name"],
            chat_address=context["chat_address"],
            notes=command.rest(2) or None,
        )
        await self.dispatcher.on_order_created(order, notify_customer=False)
        return get_template("order_created").render(order_context(order, self.currency))

    async def _order_status(self, command: ParsedCommand, context: dict) -> str:
        order_id = command.arg(0)
        if order_id is None:
            return "Usage: .order-status <order-id>"
        order = self.lifecycle.find_order(order_id)
        is_admin = context["phone"] in self.admins
        if order is None or (order.customer.phone != context["phone"] and not is_admin):
            return f"Order {order_id.upper()} not found."
        return format_order_detail(order, include_admin=is_admin)

    async def _my_orders(self, command: ParsedCommand, context: dict) -> str:
        orders = self.lifecycle.get_orders_by_customer(context["phone"])
        if not orders:
            return "You have no orders yet. Place one with .order <package> <months>"
        lines = ["Your orders"]
        lines.extend(format_order_summary(order) for order in orders[:ORDER_LIST_LIMIT])
        return "\n".join(lines)

    async def _help(self, command: ParsedCommand, context: dict) -> str:
        if context["phone"] in self.admins:
            return f"{HELP_TEXT}\n\n{ADMIN_HELP_TEXT}"
        return HELP_TEXT

    # -------------------------------------------------------------------
    # Admin commands
    # -------------------------------------------------------------------
    @staticmethod
    def _summaries(title: str, orders: list) -> str:
        if not orders:
            return f"{title}: none"
        return "\n".join([f"{title} ({len(orders)})", *(format_order_summary(order) for order in orders)])

    async def _orders(self, command: ParsedCommand, context: dict) -> str:
        return self._summaries("Latest orders", self.lifecycle.list_orders(limit=ORDER_LIST_LIMIT))

    async def _pending_orders(self, command: ParsedCommand, context: dict) -> str:
        return self._summaries("Pending orders", self.lifecycle.get_pending_orders())

    async def _order_detail(self, command: ParsedCommand, context: dict) -> str:
        if command.arg(0) is None:
            return "Usage: .order-detail <order-id>"
        return format_order_detail(self.lifecycle.get_order(command.arg(0)), include_admin=True)

    async def _order_confirm(self, command: ParsedCommand, context: dict) -> str:
        if command.arg(0) is None:
            return "Usage: .order-confirm <order-id>"
        order = self.lifecycle.confirm(command.arg(0), actor=context["phone"], note=command.rest(1) or None)
        await self.dispatcher.on_status_changed(order)

        reply = f"Order {order.id} confirmed."
        if self.orchestrator.is_auto_provisioning_enabled():
            result = await self.orchestrator.provision(order.id, actor=context["phone"])
            reply += "\n" + await self._report_provisioning(result)
        return reply

    async def _transition(self, command: ParsedCommand, context: dict, target: OrderStatus) -> str:
        if command.arg(0) is None:
            return f"Usage: .{command.name} <order-id> [note]"
        note = command.rest(1) or None
        order = self.lifecycle.transition(command.arg(0), target, actor=context["phone"], note=note)
        await self.dispatcher.on_status_changed(order, note=note)
        return f"Order {order.id} is now {order.status.upper()}."

    async def _order_process(self, command: ParsedCommand, context: dict) -> str:
        return await self._transition(command, context, OrderStatus.PROCESSING)

    async def _order_complete(self, command: ParsedCommand, context: dict) -> str:
        return await self._transition(command, context, OrderStatus.COMPLETED)

    async def _order_refund(self, command: ParsedCommand, context: dict) -> str:
        return await self._transition(command, context, OrderStatus.REFUNDED)

    async def _order_cancel(self, command: ParsedCommand, context: dict) -> str:
        if command.arg(0) is None:
            return "Usage: .order-cancel <order-id> [reason]"
        reason = command.rest(1) or None
        order = self.lifecycle.cancel_order(command.arg(0), actor=context["phone"], reason=reason)
        await self.dispatcher.on_status_changed(order, note=reason)
        return f"Order {order.id} cancelled."

    async def _order_stats(self, command: ParsedCommand, context: dict) -> str:
        return format_stats(self.lifecycle.get_order_stats(), self.currency)

    async def _order_search(self, command: ParsedCommand, context: dict) -> str:
        if not command.raw_args:
            return "Usage: .order-search <query>"
        return self._summaries(f"Results for '{command.raw_args}'", self.lifecycle.search(command.raw_args))

    async def _provision_retry(self, command: ParsedCommand, context: dict) -> str:
        if command.arg(0) is None:
            return "Usage: .provision-retry <order-id>"
        result = await self.orchestrator.retry_provisioning(command.arg(0), actor=context["phone"])
        return await self._report_provisioning(result)

    async def _provision_status(self, command: ParsedCommand, context: dict) -> str:
        status = await self.orchestrator.get_auto_provisioning_status()
        lines = [
            "Auto-provisioning",
            f"Enabled: {'yes' if status['enabled'] else 'no'}",
            f"Panel reachable: {'yes' if status['healthy'] else 'no'}",
        ]
        if status["panel_url"]:
            lines.append(f"Panel: {status['panel_url']}")
        return "\n".join(lines)

    async def _provision_test(self, command: ParsedCommand, context: dict) -> str:
        if await self.orchestrator.test_auto_provisioning_connection():
            return "Panel connection OK."
        return "Panel connection FAILED. Check the panel URL and API keys."

    async def _unblock(self, command: ParsedCommand, context: dict) -> str:
        if command.arg(0) is None:
            return "Usage: .unblock <sender>"
        target = normalize_sender(command.arg(0))
        if self.admission.unblock(target):
            return f"{target} unblocked."
        return f"{target} was not blocked."

    async def _broadcast(self, command: ParsedCommand, context: dict) -> str:
        status, message = command.arg(0), command.rest(1)
        if status is None or not message:
            return "Usage: .broadcast <status> <message>\nPlaceholders: {order_id} {customer_name} {package} {status} {total} {duration}"
        try:
            orders = self.lifecycle.get_orders_by_status(status.lower())
        except ValueError:
            return f"Unknown status {status}. Use one of: {', '.join(s.value for s in OrderStatus)}"
        report = await self.dispatcher.bulk_send(orders, message)
        return f"Broadcast to {report.total} order(s): {report.sent} sent, {report.failed} failed."

    # -------------------------------------------------------------------
    # Provisioning outcome
    # -------------------------------------------------------------------
    async def _report_provisioning(self, result: ProvisioningResult) -> str:
        order = result.order
        if result.success:
            if result.credentials is not None:
                await self.dispatcher.on_provisioned(order, result.credentials)
            else:
                await self.dispatcher.on_status_changed(order)
            return f"Provisioned server {result.server_id}. Order {order.id} is COMPLETED."

        await self.dispatcher.on_provisioning_failed(order, result)
        return (
            f"Provisioning failed [{result.reason}]: {result.error}\n"
            f"Order {order.id} stays CONFIRMED. Retry with .provision-retry {order.id}"
        )
