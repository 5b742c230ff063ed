from __future__ import annotations

import enum


class OrderStatus(enum.StrEnum):
    """Lifecycle states of an overtime order."""

    PENDING = "pending"
    PRE_APPROVED = "pre_approved"
    APPROVED = "approved"
    COMPLETED = "completed"
    ACCOUNTED = "accounted"
    CANCELED = "canceled"


class Role(enum.StrEnum):
    """Portal roles that carry workflow capabilities."""

    ADMIN = "admin"
    HR = "hr"
    PLANT_MANAGER = "plant-manager"
    PRODUCTION_MANAGER = "production-manager"
    GROUP_LEADER = "group-leader"


class WorkflowAction(enum.StrEnum):
    """Status transitions an actor can request."""

    PRE_APPROVE = "pre_approve"
    APPROVE = "approve"
    COMPLETE = "complete"
    CANCEL = "cancel"
    MARK_ACCOUNTED = "mark_accounted"
    REACTIVATE = "reactivate"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    OVERTIME_ORDER = "OVERTIME_ORDER"
    SCHEDULED_DAY_OFF = "SCHEDULED_DAY_OFF"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    PRE_APPROVE = "PRE_APPROVE"
    APPROVE = "APPROVE"
    COMPLETE = "COMPLETE"
    CANCEL = "CANCEL"
    MARK_ACCOUNTED = "MARK_ACCOUNTED"
    REACTIVATE = "REACTIVATE"
