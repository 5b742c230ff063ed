from sqlmodel import SQLModel

from overtime_portal.models.audit import AuditLog
from overtime_portal.models.base import EditTrailMixin, UUIDBase
from overtime_portal.models.counter import SequenceCounter
from overtime_portal.models.enums import (
    AuditAction,
    AuditEntityType,
    OrderStatus,
    Role,
    WorkflowAction,
)
from overtime_portal.models.order import OvertimeOrder, ScheduledDayOff

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "EditTrailMixin",
    "OrderStatus",
    "OvertimeOrder",
    "Role",
    "SQLModel",
    "ScheduledDayOff",
    "SequenceCounter",
    "UUIDBase",
    "WorkflowAction",
]
