"""Reporting service: audit log queries and overtime summaries."""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from overtime_portal.models.audit import AuditLog
from overtime_portal.models.enums import OrderStatus
from overtime_portal.models.order import OvertimeOrder
from overtime_portal.schemas.report import (
    AuditLogEntryResponse,
    AuditLogListResponse,
    DepartmentSummary,
    OvertimeSummaryResponse,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


async def query_audit_log(
    session: AsyncSession,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action: str | None = None,
    actor: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters."""
    filters = []

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor is not None:
        filters.append(col(AuditLog.actor) == actor)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= _start_of_day(start_date))
    if end_date is not None:
        # end_date is inclusive: everything before the next midnight
        filters.append(col(AuditLog.created_at) < _start_of_day(end_date + timedelta(days=1)))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor=e.actor,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )


def _employee_hours(order: OvertimeOrder) -> float:
    hours = (order.to_at - order.from_at).total_seconds() / 3600
    return hours * order.number_of_employees


async def get_overtime_summary(
    session: AsyncSession,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    include_canceled: bool = False,
) -> OvertimeSummaryResponse:
    """Order counts per department and status, with requested employee-hours.

    Employee-hours are the order window length times the number of employees.
    Canceled orders are counted but contribute no hours unless asked for.
    """
    filters = []
    if start is not None:
        filters.append(col(OvertimeOrder.to_at) >= start)
    if end is not None:
        filters.append(col(OvertimeOrder.from_at) <= end)

    result = await session.execute(
        select(OvertimeOrder).where(*filters).order_by(col(OvertimeOrder.department))
    )
    orders = list(result.scalars().all())

    counts: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    hours: dict[str, float] = defaultdict(float)
    for order in orders:
        counts[order.department][order.status] += 1
        if include_canceled or order.status != OrderStatus.CANCELED:
            hours[order.department] += _employee_hours(order)

    items = [
        DepartmentSummary(
            department=department,
            total_orders=sum(by_status.values()),
            by_status=dict(by_status),
            employee_hours=round(hours[department], 2),
        )
        for department, by_status in counts.items()
    ]
    return OvertimeSummaryResponse(
        items=items,
        total_orders=len(orders),
        employee_hours=round(sum(hours.values()), 2),
    )
