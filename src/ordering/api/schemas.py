"""Pydantic API schemas for the Ordering domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and OrderLifecycle calls.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    customer_phone: str
    package_key: str
    duration: int = Field(ge=1, le=12)
    customer_name: str | None = None
    chat_address: str | None = None
    notes: str | None = None


class TransitionOrderRequest(BaseModel):
    status: str
    actor: str = "admin"
    note: str | None = None


class CancelOrderRequest(BaseModel):
    actor: str = "admin"
    reason: str | None = None


class UpdateNotesRequest(BaseModel):
    note: str | None = None
    admin: bool = False


class PaymentProofRequest(BaseModel):
    reference: str


class ServerOverrideRequest(BaseModel):
    server_id: str
    actor: str = "admin"


class ProvisionRequest(BaseModel):
    actor: str = "admin"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class CustomerResponse(BaseModel):
    phone: str
    display_name: str | None = None
    chat_address: str


class PackageSnapshotResponse(BaseModel):
    key: str
    name: str
    unit_price: int
    ram: str | None = None
    cpu: str | None = None
    storage: str | None = None
    bandwidth: str | None = None


class HistoryEntryResponse(BaseModel):
    sequence: int
    status: str
    actor: str
    note: str | None = None
    recorded_at: datetime


class OrderResponse(BaseModel):
    id: str
    customer: CustomerResponse
    package: PackageSnapshotResponse
    duration: int
    total_amount: int
    currency: str
    status: str
    notes: str | None = None
    admin_notes: str | None = None
    payment_proof: str | None = None
    server_id: str | None = None
    panel_username: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer=CustomerResponse(
                phone=order.customer.phone,
                display_name=order.customer.display_name,
                chat_address=order.customer.chat_address,
            ),
            package=PackageSnapshotResponse(
                key=order.package.key,
                name=order.package.name,
                unit_price=order.package.unit_price,
                ram=order.package.ram,
                cpu=order.package.cpu,
                storage=order.package.storage,
                bandwidth=order.package.bandwidth,
            ),
            duration=order.duration,
            total_amount=order.total_amount,
            currency=order.currency,
            status=order.status,
            notes=order.notes,
            admin_notes=order.admin_notes,
            payment_proof=order.payment_proof,
            server_id=order.server_id,
            panel_username=order.panel_username,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    total: int
    items: list[OrderResponse]


class OrderStatsResponse(BaseModel):
    total_orders: int
    orders_by_status: dict[str, int]
    orders_by_package: dict[str, int]
    total_revenue: int
    average_order_value: float
    orders_today: int
    orders_this_month: int


class ProvisioningResponse(BaseModel):
    success: bool
    order_id: str
    status: str
    server_id: str | None = None
    panel_username: str | None = None
    error: str | None = None
    reason: str | None = None
    compensation_error: str | None = None
