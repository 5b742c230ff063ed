# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor: str
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int


class DepartmentSummary(BaseModel):
    """Order counts and requested hours for one department."""

    department: str
    total_orders: int
    by_status: dict[str, int]
    employee_hours: float


class OvertimeSummaryResponse(BaseModel):
    """Order counts per department over an optional time window."""

    items: list[DepartmentSummary]
    total_orders: int
    employee_hours: float
