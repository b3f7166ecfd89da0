"""OrderLifecycle — the single entry point for reading and mutating orders.

The chat command layer, the HTTP API and the provisioning orchestrator
all go through this service. Every mutation is a domain command processed
synchronously; the service re-reads the order afterwards and returns it so
callers can decide which notifications to send.

Must be called inside an active ``ordering`` domain context.
"""

from zoneinfo import ZoneInfo

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from catalogue.port import CataloguePort
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import CreateOrder
from ordering.order.deletion import DeleteOrder
from ordering.order.notes import RecordPaymentProof, UpdateOrderNotes
from ordering.order.order import (
    MAX_DURATION,
    MIN_DURATION,
    SYSTEM_ACTOR,
    Order,
    OrderStatus,
    normalize_order_id,
)
from ordering.order.server import AssignServer, MarkProvisioned
from ordering.order.statistics import OrderStats, compute_stats
from ordering.order.transition import TransitionOrder

DEFAULT_PAGE_SIZE = 50


class OrderLifecycle:
    def __init__(self, catalogue: CataloguePort, currency: str = "IDR", timezone: str = "Asia/Jakarta"):
        self.catalogue = catalogue
        self.currency = currency
        self.tz = ZoneInfo(timezone)

    @property
    def _repo(self):
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_order(
        self,
        customer_phone: str,
        package_key: str,
        duration: int,
        customer_name: str | None = None,
        chat_address: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """Validate the request, snapshot the package and create a pending order.

        Raises ObjectNotFoundError for an unknown package and ValidationError
        for an inactive package or an out-of-range duration.
        """
        if not customer_phone:
            raise ValidationError({"customer_phone": ["Customer phone is required"]})
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise ValidationError({"duration": ["Duration must be a whole number of months"]})
        if not MIN_DURATION <= duration <= MAX_DURATION:
            raise ValidationError(
                {"duration": [f"Duration must be between {MIN_DURATION} and {MAX_DURATION} months"]}
            )

        package = self.catalogue.get_package(package_key)
        if package is None:
            raise ObjectNotFoundError(f"Package {package_key} not found")
        if not package.active:
            raise ValidationError({"package_key": [f"Package {package.key} is not available"]})

        order_id = current_domain.process(
            CreateOrder(
                customer_phone=customer_phone,
                customer_name=customer_name,
                chat_address=chat_address or customer_phone,
                package_key=package.key,
                package_name=package.name,
                unit_price=package.price,
                ram=package.ram,
                cpu=package.cpu,
                storage=package.storage,
                bandwidth=package.bandwidth,
                duration=duration,
                currency=self.currency,
                notes=notes,
            ),
            asynchronous=False,
        )
        return self.get_order(order_id)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def transition(self, order_id: str, new_status: OrderStatus | str, actor: str, note: str | None = None) -> Order:
        order_id = normalize_order_id(order_id)
        target = OrderStatus(new_status)
        self.get_order(order_id)
        current_domain.process(
            TransitionOrder(order_id=order_id, target_status=target.value, actor=actor, note=note),
            asynchronous=False,
        )
        return self.get_order(order_id)

    def confirm(self, order_id: str, actor: str, note: str | None = None) -> Order:
        return self.transition(order_id, OrderStatus.CONFIRMED, actor, note or "Payment confirmed")

    def start_processing(self, order_id: str, actor: str, note: str | None = None) -> Order:
        return self.transition(order_id, OrderStatus.PROCESSING, actor, note)

    def complete(self, order_id: str, actor: str, note: str | None = None) -> Order:
        return self.transition(order_id, OrderStatus.COMPLETED, actor, note)

    def refund(self, order_id: str, actor: str, note: str | None = None) -> Order:
        return self.transition(order_id, OrderStatus.REFUNDED, actor, note)

    def cancel_order(self, order_id: str, actor: str, reason: str | None = None) -> Order:
        order = self.get_order(order_id)
        current_domain.process(
            CancelOrder(order_id=order.id, reason=reason, cancelled_by=actor),
            asynchronous=False,
        )
        return self.get_order(order.id)

    # -------------------------------------------------------------------
    # Other mutations
    # -------------------------------------------------------------------
    def set_server_id(self, order_id: str, server_id: str, actor: str = SYSTEM_ACTOR, override: bool = False) -> Order:
        order = self.get_order(order_id)
        current_domain.process(
            AssignServer(order_id=order.id, server_id=server_id, assigned_by=actor, override=override),
            asynchronous=False,
        )
        return self.get_order(order.id)

    def mark_provisioned(
        self, order_id: str, server_id: str, panel_username: str | None = None, actor: str = SYSTEM_ACTOR
    ) -> Order:
        order = self.get_order(order_id)
        current_domain.process(
            MarkProvisioned(order_id=order.id, server_id=server_id, panel_username=panel_username, actor=actor),
            asynchronous=False,
        )
        return self.get_order(order.id)

    def add_note(self, order_id: str, note: str | None, admin: bool = False) -> Order:
        order = self.get_order(order_id)
        current_domain.process(UpdateOrderNotes(order_id=order.id, note=note, admin=admin), asynchronous=False)
        return self.get_order(order.id)

    def set_payment_proof(self, order_id: str, reference: str) -> Order:
        order = self.get_order(order_id)
        current_domain.process(RecordPaymentProof(order_id=order.id, reference=reference), asynchronous=False)
        return self.get_order(order.id)

    def delete_order(self, order_id: str, actor: str) -> None:
        order = self.get_order(order_id)
        current_domain.process(DeleteOrder(order_id=order.id, deleted_by=actor), asynchronous=False)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        order = self.find_order(order_id)
        if order is None:
            raise ObjectNotFoundError(f"Order {normalize_order_id(order_id)} not found")
        return order

    def find_order(self, order_id: str) -> Order | None:
        normalized = normalize_order_id(order_id)
        if not normalized:
            return None
        return self._repo.get_or_none(normalized)

    def list_orders(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[Order]:
        orders = self._repo.all_orders()
        return orders[max(offset, 0) : max(offset, 0) + max(limit, 0)]

    def count_orders(self) -> int:
        return len(self._repo.all_orders())

    def get_orders_by_status(self, status: OrderStatus | str) -> list[Order]:
        return self._repo.by_status(OrderStatus(status).value)

    def get_orders_by_customer(self, customer_phone: str) -> list[Order]:
        return self._repo.for_customer(customer_phone)

    def get_pending_orders(self) -> list[Order]:
        """Pending orders, oldest first, so the queue reads in arrival order."""
        return self._repo.oldest_first(OrderStatus.PENDING.value)

    def search(self, query: str) -> list[Order]:
        """Case-insensitive substring match over phone, package, status and ID."""
        needle = (query or "").strip().lower()
        if not needle:
            return []

        def haystack(order: Order) -> str:
            return " ".join(
                value or ""
                for value in (
                    order.id,
                    order.customer.phone,
                    order.customer.display_name,
                    order.package.key,
                    order.package.name,
                    order.status,
                )
            ).lower()

        return [order for order in self._repo.all_orders() if needle in haystack(order)]

    def get_order_stats(self) -> OrderStats:
        return compute_stats(self._repo.all_orders(), self.tz)
