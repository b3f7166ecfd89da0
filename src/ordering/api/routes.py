"""FastAPI routes for the Ordering domain — orders, history and provisioning."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Response

from bootstrap import Container, get_container
from ordering.api.schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    HistoryEntryResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    PaymentProofRequest,
    ProvisioningResponse,
    ProvisionRequest,
    ServerOverrideRequest,
    TransitionOrderRequest,
    UpdateNotesRequest,
)

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, container: Container = Depends(get_container)) -> OrderResponse:
    """Place a pending order; the package price is snapshotted now."""
    order = container.lifecycle.create_order(
        customer_phone=body.customer_phone,
        package_key=body.package_key,
        duration=body.duration,
        customer_name=body.customer_name,
        chat_address=body.chat_address,
        notes=body.notes,
    )
    await container.dispatcher.on_order_created(order)
    return OrderResponse.from_order(order)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    customer: str | None = None,
    q: str | None = None,
    limit: int = 50,
    offset: int = 0,
    container: Container = Depends(get_container),
) -> OrderListResponse:
    """List orders newest first, optionally filtered, then paginated."""
    lifecycle = container.lifecycle
    if not (q or customer or status):
        page = lifecycle.list_orders(limit=limit, offset=offset)
        return OrderListResponse(
            total=lifecycle.count_orders(), items=[OrderResponse.from_order(order) for order in page]
        )

    if q:
        orders = lifecycle.search(q)
    elif customer:
        orders = lifecycle.get_orders_by_customer(customer)
    else:
        orders = lifecycle.get_orders_by_status(status)

    if status and (q or customer):
        orders = [order for order in orders if order.status == status]
    page = orders[max(offset, 0) : max(offset, 0) + max(limit, 0)]
    return OrderListResponse(total=len(orders), items=[OrderResponse.from_order(order) for order in page])


@order_router.get("/stats", response_model=OrderStatsResponse)
async def order_stats(container: Container = Depends(get_container)) -> OrderStatsResponse:
    return OrderStatsResponse(**asdict(container.lifecycle.get_order_stats()))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, container: Container = Depends(get_container)) -> OrderResponse:
    return OrderResponse.from_order(container.lifecycle.get_order(order_id))


@order_router.get("/{order_id}/history", response_model=list[HistoryEntryResponse])
async def order_history(order_id: str, container: Container = Depends(get_container)) -> list[HistoryEntryResponse]:
    order = container.lifecycle.get_order(order_id)
    return [
        HistoryEntryResponse(
            sequence=entry.sequence,
            status=entry.status,
            actor=entry.actor,
            note=entry.note,
            recorded_at=entry.recorded_at,
        )
        for entry in order.history
    ]


@order_router.post("/{order_id}/transition", response_model=OrderResponse)
async def transition_order(
    order_id: str, body: TransitionOrderRequest, container: Container = Depends(get_container)
) -> OrderResponse:
    """Move an order along the legal-transition table and notify the customer."""
    order = container.lifecycle.transition(order_id, body.status, actor=body.actor, note=body.note)
    await container.dispatcher.on_status_changed(order, note=body.note)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, container: Container = Depends(get_container)
) -> OrderResponse:
    order = container.lifecycle.cancel_order(order_id, actor=body.actor, reason=body.reason)
    await container.dispatcher.on_status_changed(order, note=body.reason)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/notes", response_model=OrderResponse)
async def update_notes(
    order_id: str, body: UpdateNotesRequest, container: Container = Depends(get_container)
) -> OrderResponse:
    return OrderResponse.from_order(container.lifecycle.add_note(order_id, body.note, admin=body.admin))


@order_router.put("/{order_id}/payment-proof", response_model=OrderResponse)
async def record_payment_proof(
    order_id: str, body: PaymentProofRequest, container: Container = Depends(get_container)
) -> OrderResponse:
    return OrderResponse.from_order(container.lifecycle.set_payment_proof(order_id, body.reference))


@order_router.put("/{order_id}/server", response_model=OrderResponse)
async def override_server(
    order_id: str, body: ServerOverrideRequest, container: Container = Depends(get_container)
) -> OrderResponse:
    """Admin override of the panel server identifier."""
    order = container.lifecycle.set_server_id(order_id, body.server_id, actor=body.actor, override=True)
    return OrderResponse.from_order(order)


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str, actor: str = "admin", container: Container = Depends(get_container)):
    """Delete a cancelled order together with its status history."""
    container.lifecycle.delete_order(order_id, actor=actor)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------
async def _run_provisioning(order_id: str, actor: str, container: Container, retry: bool) -> ProvisioningResponse:
    orchestrator = container.orchestrator
    if retry:
        result = await orchestrator.retry_provisioning(order_id, actor=actor)
    else:
        result = await orchestrator.provision(order_id, actor=actor)

    if result.success and result.credentials is not None:
        await container.dispatcher.on_provisioned(result.order, result.credentials)
    elif not result.success:
        await container.dispatcher.on_provisioning_failed(result.order, result)

    return ProvisioningResponse(
        success=result.success,
        order_id=result.order.id,
        status=result.order.status,
        server_id=result.server_id,
        panel_username=result.credentials.username if result.credentials else None,
        error=result.error,
        reason=result.reason,
        compensation_error=result.compensation_error,
    )


@order_router.post("/{order_id}/provision", response_model=ProvisioningResponse)
async def provision_order(
    order_id: str, body: ProvisionRequest, container: Container = Depends(get_container)
) -> ProvisioningResponse:
    """Provision a confirmed order on the hosting panel."""
    return await _run_provisioning(order_id, body.actor, container, retry=False)


@order_router.post("/{order_id}/retry-provision", response_model=ProvisioningResponse)
async def retry_provision_order(
    order_id: str, body: ProvisionRequest, container: Container = Depends(get_container)
) -> ProvisioningResponse:
    return await _run_provisioning(order_id, body.actor, container, retry=True)
