# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from overtime_portal.models.base import EditTrailMixin, UUIDBase, now_utc
from overtime_portal.models.enums import OrderStatus


class OvertimeOrder(UUIDBase, EditTrailMixin, table=True):
    """A request for overtime work moving through the approval workflow."""

    __tablename__ = "overtime_order"
    __table_args__ = (sa.Index("ix_overtime_order_department_status", "department", "status"),)

    internal_id: str = Field(max_length=32, unique=True, index=True)
    status: str = Field(
        default=OrderStatus.PENDING, max_length=32, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    department: str = Field(max_length=100)
    quarry: str | None = Field(default=None, max_length=100)
    number_of_employees: int
    number_of_shifts: int
    responsible_employee: str = Field(max_length=255, index=True)
    from_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    to_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reason: str
    note: str | None = None

    requested_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    requested_by: str = Field(max_length=255, index=True)

    pre_approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    pre_approved_by: str | None = Field(default=None, max_length=255)
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    approved_by: str | None = Field(default=None, max_length=255)
    completed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    completed_by: str | None = Field(default=None, max_length=255)
    canceled_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    canceled_by: str | None = Field(default=None, max_length=255)
    accounted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    accounted_by: str | None = Field(default=None, max_length=255)
    reactivated_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reactivated_by: str | None = Field(default=None, max_length=255)

    has_attachment: bool = False
    attachment_filename: str | None = Field(default=None, max_length=255)


class ScheduledDayOff(UUIDBase, table=True):
    """An employee who agreed to take a day off in exchange for the overtime."""

    __tablename__ = "scheduled_day_off"
    __table_args__ = (sa.UniqueConstraint("order_id", "identifier", name="uq_day_off_order_identifier"),)

    order_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("overtime_order.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    identifier: str = Field(max_length=64)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    pin: str | None = Field(default=None, max_length=32)
    agreed_receiving_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    note: str | None = None
