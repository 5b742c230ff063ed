# ruff: noqa: TC003
"""Overtime order records: create, edit, browse, delete and the day-off roster."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, delete, func, or_, select
from sqlmodel import col

from overtime_portal.config import get_settings
from overtime_portal.exceptions import AppError, invalid_status, not_found, unauthorized
from overtime_portal.models.base import now_utc
from overtime_portal.models.enums import AuditAction, AuditEntityType, OrderStatus, Role
from overtime_portal.models.order import OvertimeOrder, ScheduledDayOff
from overtime_portal.schemas.order import (
    OrderActionsResponse,
    OrderListResponse,
    OrderResponse,
    ScheduledDayOffResponse,
)
from overtime_portal.services.audit import model_to_audit_dict, write_audit_log
from overtime_portal.services.sequence import next_internal_id
from overtime_portal.workflow import (
    CLOSED_STATUSES,
    OrderState,
    allowed_actions,
    can_edit,
    can_modify_roster,
    has_view_access,
    is_logistics,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from overtime_portal.schemas.auth import AuthContext
    from overtime_portal.schemas.order import CreateOrderPayload, ScheduledDayOffPayload, UpdateOrderPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_day_off_response(day_off: ScheduledDayOff) -> ScheduledDayOffResponse:
    return ScheduledDayOffResponse(
        identifier=day_off.identifier,
        first_name=day_off.first_name,
        last_name=day_off.last_name,
        pin=day_off.pin,
        agreed_receiving_at=day_off.agreed_receiving_at,
        note=day_off.note,
    )


def build_order_response(order: OvertimeOrder, days_off: Sequence[ScheduledDayOff] = ()) -> OrderResponse:
    """Map an order model (and its roster) to its response schema."""
    return OrderResponse(
        id=order.id,
        internal_id=order.internal_id,
        status=OrderStatus(order.status),
        department=order.department,
        quarry=order.quarry,
        number_of_employees=order.number_of_employees,
        number_of_shifts=order.number_of_shifts,
        responsible_employee=order.responsible_employee,
        from_at=order.from_at,
        to_at=order.to_at,
        reason=order.reason,
        note=order.note,
        employees_with_scheduled_day_off=[_build_day_off_response(d) for d in days_off],
        requested_at=order.requested_at,
        requested_by=order.requested_by,
        edited_at=order.edited_at,
        edited_by=order.edited_by,
        pre_approved_at=order.pre_approved_at,
        pre_approved_by=order.pre_approved_by,
        approved_at=order.approved_at,
        approved_by=order.approved_by,
        completed_at=order.completed_at,
        completed_by=order.completed_by,
        canceled_at=order.canceled_at,
        canceled_by=order.canceled_by,
        accounted_at=order.accounted_at,
        accounted_by=order.accounted_by,
        reactivated_at=order.reactivated_at,
        reactivated_by=order.reactivated_by,
        has_attachment=order.has_attachment,
        attachment_filename=order.attachment_filename,
    )


async def get_order_or_404(session: AsyncSession, order_id: uuid.UUID) -> OvertimeOrder:
    """Fetch an order by ID. Raises 404 if not found."""
    result = await session.execute(select(OvertimeOrder).where(col(OvertimeOrder.id) == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise not_found()
    return order


async def load_days_off(session: AsyncSession, order_id: uuid.UUID) -> list[ScheduledDayOff]:
    result = await session.execute(
        select(ScheduledDayOff)
        .where(col(ScheduledDayOff.order_id) == order_id)
        .order_by(col(ScheduledDayOff.agreed_receiving_at), col(ScheduledDayOff.identifier))
    )
    return list(result.scalars().all())


async def order_response(session: AsyncSession, order: OvertimeOrder) -> OrderResponse:
    return build_order_response(order, await load_days_off(session, order.id))


def _ensure_can_view(order: OvertimeOrder, auth: AuthContext) -> None:
    actor = auth.actor
    if has_view_access(actor) or actor.email in (order.requested_by, order.responsible_employee):
        return
    raise unauthorized()


def _day_window(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=UTC)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def _overlaps(start: datetime, end: datetime) -> object:
    """Order window touches [start, end]."""
    return or_(
        and_(col(OvertimeOrder.from_at) >= start, col(OvertimeOrder.from_at) <= end),
        and_(col(OvertimeOrder.to_at) >= start, col(OvertimeOrder.to_at) <= end),
        and_(col(OvertimeOrder.from_at) <= start, col(OvertimeOrder.to_at) >= end),
    )


def _changes_approval_path(current: str, new: str) -> bool:
    """Moving across the logistics department switches between the one- and two-step approval."""
    logistics_department = get_settings().logistics_department
    return is_logistics(current, logistics_department) != is_logistics(new, logistics_department)


def _new_day_off(order_id: uuid.UUID, payload: ScheduledDayOffPayload) -> ScheduledDayOff:
    return ScheduledDayOff(
        order_id=order_id,
        identifier=payload.identifier,
        first_name=payload.first_name,
        last_name=payload.last_name,
        pin=payload.pin,
        agreed_receiving_at=payload.agreed_receiving_at,
        note=payload.note,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_order(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateOrderPayload,
) -> OrderResponse:
    """Create a pending order numbered with the next yearly internal ID."""
    internal_id = await next_internal_id(session)
    now = now_utc()

    order = OvertimeOrder(
        internal_id=internal_id,
        status=OrderStatus.PENDING.value,
        department=payload.department,
        quarry=payload.quarry,
        number_of_employees=payload.number_of_employees,
        number_of_shifts=payload.number_of_shifts,
        responsible_employee=payload.responsible_employee,
        from_at=payload.from_at,
        to_at=payload.to_at,
        reason=payload.reason,
        note=payload.note,
        requested_at=now,
        requested_by=auth.email,
        edited_at=now,
        edited_by=auth.email,
    )
    session.add(order)
    await session.flush()

    days_off = [_new_day_off(order.id, d) for d in payload.employees_with_scheduled_day_off]
    session.add_all(days_off)
    await session.flush()

    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.OVERTIME_ORDER,
        entity_id=order.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(order),
    )
    await session.commit()
    logger.info("Order %s created by %s (%s)", order.internal_id, auth.email, order.department)
    return build_order_response(order, days_off)


async def update_order(
    session: AsyncSession,
    auth: AuthContext,
    order_id: uuid.UUID,
    payload: UpdateOrderPayload,
) -> OrderResponse:
    """Edit an order's details.

    Canceled and accounted orders are admin-only. Otherwise admin, HR and
    plant managers may always edit; the requester only while pending. Once
    the order left pending it cannot move into or out of logistics.
    """
    order = await get_order_or_404(session, order_id)
    if not can_edit(OrderState.of(order), auth.actor):
        raise unauthorized()

    if order.status != OrderStatus.PENDING and _changes_approval_path(order.department, payload.department):
        raise invalid_status()

    days_off = await load_days_off(session, order.id)
    if len(days_off) > payload.number_of_employees:
        raise AppError("too many employees with scheduled days off", status_code=400)

    before_dict = model_to_audit_dict(order)
    for key, value in payload.model_dump().items():
        setattr(order, key, value)
    order.edited_at = now_utc()
    order.edited_by = auth.email

    await session.flush()
    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.OVERTIME_ORDER,
        entity_id=order.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(order),
    )
    await session.commit()
    logger.info("Order %s updated by %s", order.internal_id, auth.email)
    return build_order_response(order, days_off)


async def delete_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> None:
    """Remove an order and its roster (admin only)."""
    if not auth.actor.has_any([Role.ADMIN]):
        raise unauthorized()
    order = await get_order_or_404(session, order_id)
    before_dict = model_to_audit_dict(order)

    await session.execute(delete(ScheduledDayOff).where(col(ScheduledDayOff.order_id) == order.id))
    await session.delete(order)
    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.OVERTIME_ORDER,
        entity_id=order.id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
    logger.info("Order %s deleted by %s", order.internal_id, auth.email)


async def get_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    """Get a single order. Visible to browsing roles, the requester and the responsible employee."""
    order = await get_order_or_404(session, order_id)
    _ensure_can_view(order, auth)
    return await order_response(session, order)


async def get_order_actions(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderActionsResponse:
    """List what the caller may do with the order right now."""
    order = await get_order_or_404(session, order_id)
    _ensure_can_view(order, auth)
    state = OrderState.of(order)
    actor = auth.actor
    return OrderActionsResponse(
        order_id=order.id,
        status=state.status,
        actions=allowed_actions(state, actor, logistics_department=get_settings().logistics_department),
        can_edit=can_edit(state, actor),
        can_modify_roster=can_modify_roster(state, actor),
    )


async def list_orders(
    session: AsyncSession,
    auth: AuthContext,
    *,
    statuses: list[str] | None = None,
    departments: list[str] | None = None,
    requested_by: list[str] | None = None,
    responsible_employee: list[str] | None = None,
    internal_id: str | None = None,
    on_date: date | None = None,
    years: list[int] | None = None,
    offset: int = 0,
    limit: int = 50,
) -> OrderListResponse:
    """List orders with optional filters, newest request first.

    Callers without a browsing role only see orders they requested or are
    responsible for.
    """
    filters: list[object] = []
    actor = auth.actor
    if not has_view_access(actor):
        filters.append(
            or_(col(OvertimeOrder.requested_by) == actor.email, col(OvertimeOrder.responsible_employee) == actor.email)
        )

    if statuses:
        filters.append(col(OvertimeOrder.status).in_(statuses))
    if departments:
        filters.append(col(OvertimeOrder.department).in_(departments))
    if requested_by:
        filters.append(col(OvertimeOrder.requested_by).in_(requested_by))
    if responsible_employee:
        filters.append(col(OvertimeOrder.responsible_employee).in_(responsible_employee))
    if internal_id:
        filters.append(func.lower(col(OvertimeOrder.internal_id)).contains(internal_id.lower()))
    if on_date is not None:
        start, end = _day_window(on_date)
        filters.append(
            or_(
                and_(col(OvertimeOrder.from_at) >= start, col(OvertimeOrder.from_at) <= end),
                and_(col(OvertimeOrder.to_at) >= start, col(OvertimeOrder.to_at) <= end),
            )
        )
    if years:
        filters.append(
            or_(
                *(
                    _overlaps(
                        datetime(y, 1, 1, tzinfo=UTC),
                        datetime(y + 1, 1, 1, tzinfo=UTC) - timedelta(microseconds=1),
                    )
                    for y in years
                )
            )
        )

    count_result = await session.execute(select(func.count()).select_from(OvertimeOrder).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(OvertimeOrder)
        .where(*filters)
        .order_by(col(OvertimeOrder.requested_at).desc())
        .offset(offset)
        .limit(limit)
    )
    orders = list(result.scalars().all())

    days_off_by_order: dict[uuid.UUID, list[ScheduledDayOff]] = {o.id: [] for o in orders}
    if orders:
        roster_result = await session.execute(
            select(ScheduledDayOff)
            .where(col(ScheduledDayOff.order_id).in_(list(days_off_by_order)))
            .order_by(col(ScheduledDayOff.agreed_receiving_at), col(ScheduledDayOff.identifier))
        )
        for day_off in roster_result.scalars().all():
            days_off_by_order[day_off.order_id].append(day_off)

    return OrderListResponse(
        items=[build_order_response(o, days_off_by_order[o.id]) for o in orders],
        total=total,
    )


# ---------------------------------------------------------------------------
# Scheduled days off
# ---------------------------------------------------------------------------


async def add_scheduled_day_off(
    session: AsyncSession,
    auth: AuthContext,
    order_id: uuid.UUID,
    payload: ScheduledDayOffPayload,
) -> OrderResponse:
    """Add an employee to the order's day-off roster."""
    order = await get_order_or_404(session, order_id)
    if not can_modify_roster(OrderState.of(order), auth.actor):
        if OrderStatus(order.status) in CLOSED_STATUSES:
            raise invalid_status()
        raise unauthorized()

    days_off = await load_days_off(session, order.id)
    if any(d.identifier == payload.identifier for d in days_off):
        raise AppError("employee already exists", status_code=409)
    if len(days_off) + 1 > order.number_of_employees:
        raise AppError("too many employees with scheduled days off", status_code=400)

    day_off = _new_day_off(order.id, payload)
    session.add(day_off)
    order.edited_at = now_utc()
    order.edited_by = auth.email
    await session.flush()

    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.SCHEDULED_DAY_OFF,
        entity_id=order.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(day_off),
    )
    await session.commit()
    logger.info("Day off for %s added to order %s by %s", payload.identifier, order.internal_id, auth.email)
    return await order_response(session, order)


async def remove_scheduled_day_off(
    session: AsyncSession,
    auth: AuthContext,
    order_id: uuid.UUID,
    identifier: str,
) -> OrderResponse:
    """Remove an employee from the order's day-off roster."""
    order = await get_order_or_404(session, order_id)
    if not can_modify_roster(OrderState.of(order), auth.actor):
        if OrderStatus(order.status) in CLOSED_STATUSES:
            raise invalid_status()
        raise unauthorized()

    result = await session.execute(
        select(ScheduledDayOff).where(
            col(ScheduledDayOff.order_id) == order.id,
            col(ScheduledDayOff.identifier) == identifier,
        )
    )
    day_off = result.scalar_one_or_none()
    if day_off is None:
        raise not_found("not found employee")

    before_dict = model_to_audit_dict(day_off)
    await session.delete(day_off)
    order.edited_at = now_utc()
    order.edited_by = auth.email
    await session.flush()

    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.SCHEDULED_DAY_OFF,
        entity_id=order.id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
    logger.info("Day off for %s removed from order %s by %s", identifier, order.internal_id, auth.email)
    return await order_response(session, order)
