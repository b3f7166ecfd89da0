"""Order notes and payment proof — commands and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class UpdateOrderNotes:
    order_id = Identifier(required=True)
    note = Text()
    admin = Boolean(default=False)


@ordering.command(part_of="Order")
class RecordPaymentProof:
    order_id = Identifier(required=True)
    reference = String(required=True, max_length=500)


@ordering.command_handler(part_of=Order)
class OrderNotesHandler:
    @handle(UpdateOrderNotes)
    def update_notes(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_notes(command.note, admin=command.admin)
        repo.add(order)

    @handle(RecordPaymentProof)
    def record_payment_proof(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_proof(command.reference)
        repo.add(order)
