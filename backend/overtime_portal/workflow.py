"""Approval workflow for overtime orders.

Every status change an order can go through is one row of ``TRANSITIONS``.
A row names the statuses it may start from, the status it leads to and the
roles allowed to trigger it; some rows also let the requester or the
responsible employee act without holding a role. Logistics orders skip the
production-manager pre-approval and go straight to the plant manager, so a row
carries separate source statuses for them.

This module does no I/O. Services load an order, build an ``OrderState`` and an
``Actor`` and ask ``check_transition`` before touching the database; single and
bulk operations share the same table so their rules cannot drift apart.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from overtime_portal.models.enums import OrderStatus, Role, WorkflowAction

DEFAULT_LOGISTICS_DEPARTMENT = "logistics"

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.ACCOUNTED, OrderStatus.CANCELED})
CLOSED_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.ACCOUNTED, OrderStatus.CANCELED}
)
OPEN_STATUSES: frozenset[OrderStatus] = frozenset(OrderStatus) - CLOSED_STATUSES


class Rejection(enum.StrEnum):
    """Why a transition was refused."""

    NOT_FOUND = "not found"
    INVALID_STATUS = "invalid status"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class Actor:
    """The acting session: who is asking and which roles they hold."""

    email: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_roles(cls, email: str, roles: Iterable[str]) -> Actor:
        return cls(email=email, roles=frozenset(r.strip() for r in roles if r.strip()))

    def has_any(self, roles: Iterable[str]) -> bool:
        return any(role in self.roles for role in roles)


@dataclass(frozen=True)
class OrderState:
    """The order fields the guards read."""

    status: OrderStatus
    department: str
    requested_by: str
    responsible_employee: str | None = None

    @classmethod
    def of(cls, order: Any) -> OrderState:
        """Build from anything carrying the order attributes (ORM row or schema)."""
        return cls(
            status=OrderStatus(order.status),
            department=order.department,
            requested_by=order.requested_by,
            responsible_employee=getattr(order, "responsible_employee", None),
        )


@dataclass(frozen=True)
class Transition:
    """One row of the workflow table."""

    action: WorkflowAction
    target: OrderStatus
    sources: frozenset[OrderStatus]
    logistics_sources: frozenset[OrderStatus]
    roles: frozenset[Role]
    requester_may_act: bool = False
    responsible_may_act: bool = False

    @property
    def requires_role(self) -> bool:
        """Only holders of ``roles`` may trigger it; no requester or responsible-employee path."""
        return not (self.requester_may_act or self.responsible_may_act)

    def source_statuses(self, logistics: bool) -> frozenset[OrderStatus]:
        return self.logistics_sources if logistics else self.sources

    def permits(self, order: OrderState, actor: Actor) -> bool:
        if actor.has_any(self.roles):
            return True
        if self.requester_may_act and order.requested_by == actor.email:
            return True
        return self.responsible_may_act and order.responsible_employee == actor.email


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of evaluating a transition guard."""

    action: WorkflowAction
    target: OrderStatus
    rejection: Rejection | None = None

    @property
    def allowed(self) -> bool:
        return self.rejection is None

    def __bool__(self) -> bool:
        return self.allowed


def _row(
    action: WorkflowAction,
    target: OrderStatus,
    sources: Iterable[OrderStatus],
    roles: Iterable[Role],
    *,
    logistics_sources: Iterable[OrderStatus] | None = None,
    requester_may_act: bool = False,
    responsible_may_act: bool = False,
) -> Transition:
    src = frozenset(sources)
    return Transition(
        action=action,
        target=target,
        sources=src,
        logistics_sources=src if logistics_sources is None else frozenset(logistics_sources),
        roles=frozenset(roles),
        requester_may_act=requester_may_act,
        responsible_may_act=responsible_may_act,
    )


TRANSITIONS: dict[WorkflowAction, Transition] = {
    t.action: t
    for t in (
        _row(
            WorkflowAction.PRE_APPROVE,
            OrderStatus.PRE_APPROVED,
            [OrderStatus.PENDING],
            [Role.PRODUCTION_MANAGER, Role.ADMIN],
            logistics_sources=[],
        ),
        _row(
            WorkflowAction.APPROVE,
            OrderStatus.APPROVED,
            [OrderStatus.PRE_APPROVED],
            [Role.PLANT_MANAGER, Role.ADMIN],
            logistics_sources=[OrderStatus.PENDING],
        ),
        _row(
            WorkflowAction.COMPLETE,
            OrderStatus.COMPLETED,
            [OrderStatus.APPROVED],
            [Role.ADMIN, Role.HR, Role.PLANT_MANAGER, Role.PRODUCTION_MANAGER, Role.GROUP_LEADER],
            requester_may_act=True,
            responsible_may_act=True,
        ),
        _row(
            WorkflowAction.CANCEL,
            OrderStatus.CANCELED,
            OPEN_STATUSES,
            [Role.PLANT_MANAGER, Role.ADMIN, Role.GROUP_LEADER, Role.PRODUCTION_MANAGER, Role.HR],
            requester_may_act=True,
        ),
        _row(
            WorkflowAction.MARK_ACCOUNTED,
            OrderStatus.ACCOUNTED,
            [OrderStatus.COMPLETED],
            [Role.HR, Role.ADMIN],
        ),
        _row(
            WorkflowAction.REACTIVATE,
            OrderStatus.PENDING,
            [OrderStatus.CANCELED],
            [Role.ADMIN, Role.HR],
        ),
    )
}


def is_logistics(department: str, logistics_department: str = DEFAULT_LOGISTICS_DEPARTMENT) -> bool:
    return department.strip().casefold() == logistics_department.strip().casefold()


def is_terminal(status: OrderStatus | str) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def check_transition(
    action: WorkflowAction,
    order: OrderState,
    actor: Actor,
    *,
    logistics_department: str = DEFAULT_LOGISTICS_DEPARTMENT,
) -> TransitionCheck:
    """Evaluate the guard for ``action`` on ``order`` by ``actor``.

    Rows that only a role may trigger check the role first, so a caller
    without it gets ``unauthorized`` and learns nothing about the order. Rows
    open to the requester or the responsible employee check the source status
    first, since who may act there depends on the order itself.
    """
    transition = TRANSITIONS[WorkflowAction(action)]
    if transition.requires_role and not actor.has_any(transition.roles):
        return TransitionCheck(action=transition.action, target=transition.target, rejection=Rejection.UNAUTHORIZED)
    logistics = is_logistics(order.department, logistics_department)
    if order.status not in transition.source_statuses(logistics):
        return TransitionCheck(action=transition.action, target=transition.target, rejection=Rejection.INVALID_STATUS)
    if not transition.permits(order, actor):
        return TransitionCheck(action=transition.action, target=transition.target, rejection=Rejection.UNAUTHORIZED)
    return TransitionCheck(action=transition.action, target=transition.target)


def can_transition(
    action: WorkflowAction,
    order: OrderState,
    actor: Actor,
    *,
    logistics_department: str = DEFAULT_LOGISTICS_DEPARTMENT,
) -> bool:
    return check_transition(action, order, actor, logistics_department=logistics_department).allowed


def allowed_actions(
    order: OrderState,
    actor: Actor,
    *,
    logistics_department: str = DEFAULT_LOGISTICS_DEPARTMENT,
) -> list[WorkflowAction]:
    """Actions the actor may take on the order right now, in workflow order."""
    return [
        action
        for action in TRANSITIONS
        if can_transition(action, order, actor, logistics_department=logistics_department)
    ]


# ---------------------------------------------------------------------------
# Non-transition permissions
# ---------------------------------------------------------------------------

_EDIT_ROLES = frozenset({Role.ADMIN, Role.HR, Role.PLANT_MANAGER})
_ROSTER_ROLES = frozenset({Role.ADMIN, Role.PRODUCTION_MANAGER, Role.GROUP_LEADER, Role.PLANT_MANAGER, Role.HR})


def can_edit(order: OrderState, actor: Actor) -> bool:
    """Canceled and accounted orders are admin-only; the requester may edit only while pending."""
    if order.status in TERMINAL_STATUSES:
        return actor.has_any([Role.ADMIN])
    if actor.has_any(_EDIT_ROLES):
        return True
    return order.requested_by == actor.email and order.status == OrderStatus.PENDING


def can_modify_roster(order: OrderState, actor: Actor) -> bool:
    """Whether the actor may add or remove scheduled days off on the order."""
    if order.status in CLOSED_STATUSES:
        return False
    return order.requested_by == actor.email or actor.has_any(_ROSTER_ROLES)


def has_view_access(actor: Actor) -> bool:
    """Admins, HR and any leader or manager role may browse all orders."""
    return any(
        role in (Role.ADMIN, Role.HR) or Role.GROUP_LEADER in role or "manager" in role for role in actor.roles
    )
