# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Query

from overtime_portal.api.deps import AdminOrHRDep, ViewerDep
from overtime_portal.db import SessionDep
from overtime_portal.schemas.report import AuditLogListResponse, OvertimeSummaryResponse
from overtime_portal.services import report as report_service

reports_router = APIRouter(prefix="/reports", tags=["reports"])


@reports_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: AdminOrHRDep,
    entity_type: str | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: str | None = Query(default=None),
    actor: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (admin or HR)."""
    return await report_service.query_audit_log(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor=actor,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@reports_router.get("/overtime-summary", response_model=OvertimeSummaryResponse)
async def overtime_summary(
    session: SessionDep,
    auth: ViewerDep,
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    include_canceled: bool = Query(default=False),
) -> OvertimeSummaryResponse:
    """Order counts and employee-hours per department."""
    return await report_service.get_overtime_summary(
        session, start=start, end=end, include_canceled=include_canceled
    )
