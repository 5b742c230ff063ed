# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from overtime_portal.models.enums import OrderStatus, WorkflowAction
from overtime_portal.workflow import Rejection

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

MIN_DURATION = timedelta(hours=1)
MAX_DURATION = timedelta(hours=24)
DURATION_STEP = timedelta(minutes=30)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ScheduledDayOffPayload(BaseModel):
    """An employee taking a day off in exchange for the overtime."""

    identifier: str = Field(min_length=1, max_length=64)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    pin: str | None = Field(default=None, max_length=32)
    agreed_receiving_at: datetime
    note: str | None = None

    @field_validator("agreed_receiving_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return _as_utc(value)


class OrderFields(BaseModel):
    """Fields shared by create and update."""

    department: str = Field(min_length=1, max_length=100)
    quarry: str | None = Field(default=None, max_length=100)
    number_of_employees: int = Field(ge=1)
    number_of_shifts: int = Field(ge=1)
    responsible_employee: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    from_at: datetime
    to_at: datetime
    reason: str = Field(min_length=1)
    note: str | None = None

    @field_validator("from_at", "to_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("responsible_employee")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def _validate_window(self) -> Self:
        duration = self.to_at - self.from_at
        if duration < timedelta(0):
            msg = "to_at must not be before from_at"
            raise ValueError(msg)
        if duration > MAX_DURATION:
            msg = "overtime window cannot exceed 24 hours"
            raise ValueError(msg)
        if duration < MIN_DURATION:
            msg = "overtime window must last at least 1 hour"
            raise ValueError(msg)
        if duration % DURATION_STEP:
            msg = "overtime window must be a whole or half hour"
            raise ValueError(msg)
        return self


class CreateOrderPayload(OrderFields):
    """Request body for a new overtime order."""

    employees_with_scheduled_day_off: list[ScheduledDayOffPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_new_order(self) -> Self:
        now = datetime.now(UTC)
        if self.from_at < now:
            msg = "from_at cannot be in the past"
            raise ValueError(msg)
        if self.to_at < now:
            msg = "to_at cannot be in the past"
            raise ValueError(msg)
        roster = self.employees_with_scheduled_day_off
        if len(roster) > self.number_of_employees:
            msg = "more employees with a scheduled day off than employees on the order"
            raise ValueError(msg)
        if len({e.identifier for e in roster}) != len(roster):
            msg = "employee identifiers must be unique"
            raise ValueError(msg)
        return self


class UpdateOrderPayload(OrderFields):
    """Request body for editing an existing order. The roster is edited separately."""


class CompletePayload(BaseModel):
    """Request body for closing out an approved order."""

    attachment_filename: str | None = Field(default=None, max_length=255)


class BulkActionPayload(BaseModel):
    """Request body for bulk status changes."""

    ids: list[uuid.UUID] = Field(min_length=1, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ScheduledDayOffResponse(BaseModel):
    """A scheduled day off attached to an order."""

    identifier: str
    first_name: str
    last_name: str
    pin: str | None
    agreed_receiving_at: datetime
    note: str | None


class OrderResponse(BaseModel):
    """Response schema for a single overtime order."""

    id: uuid.UUID
    internal_id: str
    status: OrderStatus
    department: str
    quarry: str | None
    number_of_employees: int
    number_of_shifts: int
    responsible_employee: str
    from_at: datetime
    to_at: datetime
    reason: str
    note: str | None
    employees_with_scheduled_day_off: list[ScheduledDayOffResponse]
    requested_at: datetime
    requested_by: str
    edited_at: datetime
    edited_by: str
    pre_approved_at: datetime | None
    pre_approved_by: str | None
    approved_at: datetime | None
    approved_by: str | None
    completed_at: datetime | None
    completed_by: str | None
    canceled_at: datetime | None
    canceled_by: str | None
    accounted_at: datetime | None
    accounted_by: str | None
    reactivated_at: datetime | None
    reactivated_by: str | None
    has_attachment: bool
    attachment_filename: str | None


class OrderListResponse(BaseModel):
    """Paginated list of overtime orders."""

    items: list[OrderResponse]
    total: int


class OrderActionsResponse(BaseModel):
    """What the current actor may do with an order."""

    order_id: uuid.UUID
    status: OrderStatus
    actions: list[WorkflowAction]
    can_edit: bool
    can_modify_roster: bool


class SkippedItem(BaseModel):
    """An order left untouched by a bulk action, with the reason."""

    id: uuid.UUID
    reason: Rejection


class BulkActionResponse(BaseModel):
    """Outcome of a bulk status change."""

    action: WorkflowAction
    requested: int
    count: int
    modified_ids: list[uuid.UUID]
    skipped: list[SkippedItem]
