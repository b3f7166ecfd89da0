"""Order domain events — immutable facts about order state changes.

Raised for the dashboard live-update feed. Customer and admin
notifications are sent explicitly by the caller, not by handlers of
these events.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """A customer placed an order for a hosting package."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_phone = String(required=True)
    package_key = String(required=True)
    duration = Integer(required=True)
    unit_price = Integer(required=True)
    total_amount = Integer(required=True)
    currency = String(required=True)
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An order moved from one lifecycle status to another."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    note = Text()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderServerAssigned:
    """A panel server identifier was recorded on an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    server_id = String(required=True)
    previous_server_id = String()
    assigned_by = String(required=True)
    assigned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderNotesUpdated:
    """Customer notes or admin notes on an order were replaced."""

    __version__ = 1

    order_id = Identifier(required=True)
    note_kind = String(required=True)  # "customer" or "admin"
    updated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentProofRecorded:
    """A reference to the customer's payment proof was attached."""

    __version__ = 1

    order_id = Identifier(required=True)
    recorded_at = DateTime(required=True)
