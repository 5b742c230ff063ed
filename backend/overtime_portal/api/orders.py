# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, Response, status

from overtime_portal.api.deps import AuthDep
from overtime_portal.db import SessionDep
from overtime_portal.schemas.order import (
    BulkActionPayload,
    BulkActionResponse,
    CompletePayload,
    CreateOrderPayload,
    OrderActionsResponse,
    OrderListResponse,
    OrderResponse,
    ScheduledDayOffPayload,
    UpdateOrderPayload,
)
from overtime_portal.services import approval as approval_service
from overtime_portal.services import bulk as bulk_service
from overtime_portal.services import order as order_service

orders_router = APIRouter(prefix="/overtime-orders", tags=["overtime-orders"])


def _split(values: list[str] | None) -> list[str] | None:
    """Accept both repeated query params and comma-separated lists."""
    if not values:
        return None
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


@orders_router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: CreateOrderPayload,
    session: SessionDep,
    auth: AuthDep,
) -> OrderResponse:
    """Submit a new overtime order."""
    return await order_service.create_order(session, auth, payload)


@orders_router.get("", response_model=OrderListResponse)
async def list_orders(
    session: SessionDep,
    auth: AuthDep,
    status_filter: list[str] | None = Query(default=None, alias="status"),
    department: list[str] | None = Query(default=None),
    requested_by: list[str] | None = Query(default=None),
    responsible_employee: list[str] | None = Query(default=None),
    internal_id: str | None = Query(default=None, alias="id"),
    on_date: date | None = Query(default=None, alias="date"),
    year: list[int] | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> OrderListResponse:
    """List overtime orders with optional filters."""
    return await order_service.list_orders(
        session,
        auth,
        statuses=_split(status_filter),
        departments=_split(department),
        requested_by=_split(requested_by),
        responsible_employee=_split(responsible_employee),
        internal_id=internal_id,
        on_date=on_date,
        years=year,
        offset=offset,
        limit=limit,
    )


# Bulk routes come before "/{order_id}/..." so "bulk" is never parsed as an order ID.


@orders_router.post("/bulk/pre-approve", response_model=BulkActionResponse)
async def bulk_pre_approve(payload: BulkActionPayload, session: SessionDep, auth: AuthDep) -> BulkActionResponse:
    """Pre-approve every eligible order in the selection."""
    return await bulk_service.bulk_pre_approve(session, auth, payload.ids)


@orders_router.post("/bulk/approve", response_model=BulkActionResponse)
async def bulk_approve(payload: BulkActionPayload, session: SessionDep, auth: AuthDep) -> BulkActionResponse:
    """Approve every eligible order in the selection."""
    return await bulk_service.bulk_approve(session, auth, payload.ids)


@orders_router.post("/bulk/cancel", response_model=BulkActionResponse)
async def bulk_cancel(payload: BulkActionPayload, session: SessionDep, auth: AuthDep) -> BulkActionResponse:
    """Cancel every eligible order in the selection."""
    return await bulk_service.bulk_cancel(session, auth, payload.ids)


@orders_router.post("/bulk/mark-accounted", response_model=BulkActionResponse)
async def bulk_mark_accounted(
    payload: BulkActionPayload, session: SessionDep, auth: AuthDep
) -> BulkActionResponse:
    """Mark every eligible completed order as accounted."""
    return await bulk_service.bulk_mark_accounted(session, auth, payload.ids)


@orders_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Get a single overtime order."""
    return await order_service.get_order(session, auth, order_id)


@orders_router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: uuid.UUID,
    payload: UpdateOrderPayload,
    session: SessionDep,
    auth: AuthDep,
) -> OrderResponse:
    """Edit an overtime order."""
    return await order_service.update_order(session, auth, order_id, payload)


@orders_router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> Response:
    """Delete an overtime order (admin only)."""
    await order_service.delete_order(session, auth, order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@orders_router.get("/{order_id}/actions", response_model=OrderActionsResponse)
async def get_order_actions(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderActionsResponse:
    """List the workflow actions available to the caller on this order."""
    return await order_service.get_order_actions(session, auth, order_id)


@orders_router.post("/{order_id}/pre-approve", response_model=OrderResponse)
async def pre_approve_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Pre-approve a pending non-logistics order (production manager or admin)."""
    return await approval_service.pre_approve_order(session, auth, order_id)


@orders_router.post("/{order_id}/approve", response_model=OrderResponse)
async def approve_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Approve an order (plant manager or admin)."""
    return await approval_service.approve_order(session, auth, order_id)


@orders_router.post("/{order_id}/complete", response_model=OrderResponse)
async def complete_order(
    order_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CompletePayload | None = None,
) -> OrderResponse:
    """Close out an approved order."""
    return await approval_service.complete_order(
        session, auth, order_id, payload.attachment_filename if payload else None
    )


@orders_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Cancel an open order."""
    return await approval_service.cancel_order(session, auth, order_id)


@orders_router.post("/{order_id}/mark-accounted", response_model=OrderResponse)
async def mark_order_accounted(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Mark a completed order as accounted (HR or admin)."""
    return await approval_service.mark_order_accounted(session, auth, order_id)


@orders_router.post("/{order_id}/reactivate", response_model=OrderResponse)
async def reactivate_order(order_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> OrderResponse:
    """Return a canceled order to pending (HR or admin)."""
    return await approval_service.reactivate_order(session, auth, order_id)


@orders_router.post("/{order_id}/days-off", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def add_scheduled_day_off(
    order_id: uuid.UUID,
    payload: ScheduledDayOffPayload,
    session: SessionDep,
    auth: AuthDep,
) -> OrderResponse:
    """Add an employee with a scheduled day off to the order."""
    return await order_service.add_scheduled_day_off(session, auth, order_id, payload)


@orders_router.delete("/{order_id}/days-off/{identifier}", response_model=OrderResponse)
async def remove_scheduled_day_off(
    order_id: uuid.UUID,
    identifier: str,
    session: SessionDep,
    auth: AuthDep,
) -> OrderResponse:
    """Remove an employee's scheduled day off from the order."""
    return await order_service.remove_scheduled_day_off(session, auth, order_id, identifier)
