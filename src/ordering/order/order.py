"""Order aggregate (CQRS) — the core of the ordering domain.

An Order is a customer's purchase of a hosting package for a number of
months. Price and specifications are copied from the catalogue when the
order is created and never recomputed afterwards.

Every status change appends one OrderStatusHistory row in the same write
as the status field itself; the status field is a cache of the ledger tail.

State Machine:
    PENDING → CONFIRMED → PROCESSING → COMPLETED → REFUNDED
    {PENDING, CONFIRMED, PROCESSING} → CANCELLED
"""

import secrets
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import InvalidOperationError, InvalidStateError, ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderCreated,
    OrderNotesUpdated,
    OrderServerAssigned,
    OrderStatusChanged,
    PaymentProofRecorded,
)


# ---------------------------------------------------------------------------
# Enums and state machine
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},  # Explicit refund path
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})

MIN_DURATION = 1
MAX_DURATION = 12
SYSTEM_ACTOR = "system"

_ID_PREFIX = "ORD-"
_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_ID_LENGTH = 8


def generate_order_id() -> str:
    """Short, human-shareable order ID without ambiguous characters."""
    return _ID_PREFIX + "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def normalize_order_id(value: str) -> str:
    """Order IDs are case-insensitive; the canonical form is upper case."""
    return (value or "").strip().upper()


def allowed_transitions(status: OrderStatus) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS.get(status, set()))


class IllegalTransitionError(InvalidStateError):
    """The requested status change is not in the legal-transition table."""

    def __init__(self, current: OrderStatus, target: OrderStatus):
        self.current = current
        self.target = target
        allowed = ", ".join(sorted(s.value for s in allowed_transitions(current))) or "none"
        super().__init__(
            f"Cannot transition order from {current.value} to {target.value} (allowed: {allowed})"
        )


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Customer:
    """Who placed the order and where replies go."""

    phone = String(required=True, max_length=32)
    display_name = String(max_length=100)
    chat_address = String(required=True, max_length=255)


@ordering.value_object(part_of="Order")
class PackageSnapshot:
    """Catalogue data frozen at order time.

    Later catalogue edits (price, specs, availability) never change an
    existing order.
    """

    key = String(required=True, max_length=20)
    name = String(required=True, max_length=100)
    unit_price = Integer(required=True, min_value=0)
    ram = String(max_length=20)
    cpu = String(max_length=20)
    storage = String(max_length=30)
    bandwidth = String(max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderStatusHistory:
    """One row of the append-only status ledger."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=20, choices=OrderStatus)
    actor = String(required=True, max_length=100)
    note = Text()
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    id = Identifier(identifier=True)
    customer = ValueObject(Customer, required=True)
    package = ValueObject(PackageSnapshot, required=True)
    duration = Integer(required=True, min_value=MIN_DURATION, max_value=MAX_DURATION)
    total_amount = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="IDR")
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    notes = Text()
    admin_notes = Text()
    payment_proof = String(max_length=500)
    server_id = String(max_length=100)
    panel_username = String(max_length=100)
    status_history = HasMany(OrderStatusHistory)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def status_must_match_history_tail(self):
        history = self.history
        if not history:
            raise ValidationError({"status_history": ["Order must have at least one status history entry"]})
        if history[-1].status != self.status:
            raise ValidationError(
                {"status": [f"Status {self.status} does not match latest history entry {history[-1].status}"]}
            )

    @invariant.post
    def total_must_equal_price_times_duration(self):
        if self.package is None or self.duration is None:
            return
        if self.total_amount != self.package.unit_price * self.duration:
            raise ValidationError({"total_amount": ["Total amount must equal unit price times duration"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id: str,
        customer: Customer,
        package: PackageSnapshot,
        duration: int,
        currency: str = "IDR",
        notes: str | None = None,
    ):
        """Create a pending order with its first history entry."""
        if duration is None or not MIN_DURATION <= duration <= MAX_DURATION:
            raise ValidationError(
                {"duration": [f"Duration must be between {MIN_DURATION} and {MAX_DURATION} months"]}
            )

        now = datetime.now(UTC)
        total = package.unit_price * duration
        order = cls(
            id=normalize_order_id(order_id),
            customer=customer,
            package=package,
            duration=duration,
            total_amount=total,
            currency=currency,
            status=OrderStatus.PENDING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
            status_history=[
                OrderStatusHistory(
                    sequence=1,
                    status=OrderStatus.PENDING.value,
                    actor=SYSTEM_ACTOR,
                    note="Order created",
                    recorded_at=now,
                )
            ],
        )
        order.raise_(
            OrderCreated(
                order_id=order.id,
                customer_phone=customer.phone,
                package_key=package.key,
                duration=duration,
                unit_price=package.unit_price,
                total_amount=total,
                currency=currency,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Ledger helpers
    # -------------------------------------------------------------------
    @property
    def history(self) -> list[OrderStatusHistory]:
        """Status history ordered oldest first."""
        return sorted(self.status_history or [], key=lambda entry: entry.sequence)

    def _now(self) -> datetime:
        # updated_at never moves backwards, even if the wall clock does
        now = datetime.now(UTC)
        if self.updated_at is not None and now < self.updated_at:
            return self.updated_at
        return now

    def _append_history(self, target: OrderStatus, actor: str, note: str | None, at: datetime) -> None:
        previous = self.status
        self.status = target.value
        self.add_status_history(
            OrderStatusHistory(
                sequence=len(self.status_history or []) + 1,
                status=target.value,
                actor=actor,
                note=note,
                recorded_at=at,
            )
        )
        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                previous_status=previous,
                new_status=target.value,
                actor=actor,
                note=note,
                changed_at=at,
            )
        )

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _assert_can_transition(self, target: OrderStatus) -> None:
        if not self.can_transition_to(target):
            raise IllegalTransitionError(OrderStatus(self.status), target)

    def transition_to(self, target: OrderStatus, actor: str, note: str | None = None) -> None:
        """Move to ``target`` and append the matching history row."""
        self._assert_can_transition(target)
        now = self._now()
        with atomic_change(self):
            self._append_history(target, actor, note, now)
            self.updated_at = now

    def cancel(self, actor: str, reason: str | None = None) -> None:
        self.transition_to(OrderStatus.CANCELLED, actor, reason or "Order cancelled")

    def mark_provisioned(self, server_id: str, actor: str = SYSTEM_ACTOR, panel_username: str | None = None) -> None:
        """Record a successful fulfilment: confirmed → processing → completed.

        Both history rows are written together with the server identifier,
        so a failed provisioning attempt leaves no trace in the ledger.
        """
        current = OrderStatus(self.status)
        if current not in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING):
            raise IllegalTransitionError(current, OrderStatus.COMPLETED)
        if self.server_id and self.server_id != server_id:
            raise InvalidOperationError(f"Order {self.id} is already linked to server {self.server_id}")

        now = self._now()
        with atomic_change(self):
            if current == OrderStatus.CONFIRMED:
                self._append_history(OrderStatus.PROCESSING, actor, "Provisioning started", now)
            self._append_history(OrderStatus.COMPLETED, actor, f"Provisioned server {server_id}", now)
            self.server_id = server_id
            if panel_username:
                self.panel_username = panel_username
            self.updated_at = now

    # -------------------------------------------------------------------
    # Provisioning artifact
    # -------------------------------------------------------------------
    def assign_server(self, server_id: str, assigned_by: str, override: bool = False) -> bool:
        """Record the panel server identifier.

        Unchanged values are a no-op. Replacing an existing value requires
        ``override`` (the admin path). Returns True when the value changed.
        """
        if not server_id:
            raise ValidationError({"server_id": ["Server ID is required"]})
        if self.server_id == server_id:
            return False
        if self.server_id and not override:
            raise InvalidOperationError(f"Order {self.id} already has server {self.server_id}")

        now = self._now()
        previous = self.server_id
        self.server_id = server_id
        self.updated_at = now
        self.raise_(
            OrderServerAssigned(
                order_id=self.id,
                server_id=server_id,
                previous_server_id=previous,
                assigned_by=assigned_by,
                assigned_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Notes and payment proof
    # -------------------------------------------------------------------
    def update_notes(self, note: str | None, admin: bool = False) -> None:
        now = self._now()
        if admin:
            self.admin_notes = note
        else:
            self.notes = note
        self.updated_at = now
        self.raise_(
            OrderNotesUpdated(
                order_id=self.id,
                note_kind="admin" if admin else "customer",
                updated_at=now,
            )
        )

    def record_payment_proof(self, reference: str) -> None:
        if not reference:
            raise ValidationError({"payment_proof": ["Payment proof reference is required"]})
        if OrderStatus(self.status) in TERMINAL_STATUSES:
            raise InvalidOperationError(f"Cannot attach payment proof to a {self.status} order")
        now = self._now()
        self.payment_proof = reference
        self.updated_at = now
        self.raise_(PaymentProofRecorded(order_id=self.id, recorded_at=now))
