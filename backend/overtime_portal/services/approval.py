# ruff: noqa: TC003
"""Single-order status transitions.

Each public function loads the order, asks the workflow table whether the
caller may move it, stamps the ``<action>_at``/``<action>_by`` trail and
writes an audit row. Orders in the wrong state are refused with
``invalid status`` instead of being rewritten.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from overtime_portal.config import get_settings
from overtime_portal.exceptions import AppError, invalid_status, not_found, unauthorized
from overtime_portal.models.base import now_utc
from overtime_portal.models.enums import AuditAction, AuditEntityType, WorkflowAction
from overtime_portal.models.order import OvertimeOrder
from overtime_portal.services.audit import status_audit_dict, write_audit_log
from overtime_portal.services.order import order_response
from overtime_portal.workflow import OrderState, Rejection, check_transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from overtime_portal.schemas.auth import AuthContext
    from overtime_portal.schemas.order import OrderResponse

logger = logging.getLogger(__name__)

TRAIL_FIELDS: dict[WorkflowAction, tuple[str, str]] = {
    WorkflowAction.PRE_APPROVE: ("pre_approved_at", "pre_approved_by"),
    WorkflowAction.APPROVE: ("approved_at", "approved_by"),
    WorkflowAction.COMPLETE: ("completed_at", "completed_by"),
    WorkflowAction.CANCEL: ("canceled_at", "canceled_by"),
    WorkflowAction.MARK_ACCOUNTED: ("accounted_at", "accounted_by"),
    WorkflowAction.REACTIVATE: ("reactivated_at", "reactivated_by"),
}

AUDIT_ACTIONS: dict[WorkflowAction, AuditAction] = {
    WorkflowAction.PRE_APPROVE: AuditAction.PRE_APPROVE,
    WorkflowAction.APPROVE: AuditAction.APPROVE,
    WorkflowAction.COMPLETE: AuditAction.COMPLETE,
    WorkflowAction.CANCEL: AuditAction.CANCEL,
    WorkflowAction.MARK_ACCOUNTED: AuditAction.MARK_ACCOUNTED,
    WorkflowAction.REACTIVATE: AuditAction.REACTIVATE,
}


def rejection_error(action: WorkflowAction, rejection: Rejection) -> AppError:
    """Map a workflow refusal to the HTTP error returned to the caller."""
    if rejection is Rejection.NOT_FOUND:
        return not_found()
    if rejection is Rejection.UNAUTHORIZED:
        return unauthorized()
    if action is WorkflowAction.CANCEL:
        return invalid_status("cannot cancel")
    return invalid_status()


async def _get_order_for_update(session: AsyncSession, order_id: uuid.UUID) -> OvertimeOrder:
    result = await session.execute(
        select(OvertimeOrder).where(col(OvertimeOrder.id) == order_id).with_for_update()
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise not_found()
    return order


async def transition_order(
    session: AsyncSession,
    auth: AuthContext,
    order_id: uuid.UUID,
    action: WorkflowAction,
    *,
    attachment_filename: str | None = None,
) -> OrderResponse:
    """Move one order through ``action`` if its status and the caller's roles allow it."""
    action = WorkflowAction(action)
    order = await _get_order_for_update(session, order_id)
    check = check_transition(
        action,
        OrderState.of(order),
        auth.actor,
        logistics_department=get_settings().logistics_department,
    )
    if check.rejection is not None:
        logger.info(
            "Refused %s on order %s (%s) for %s: %s",
            action.value,
            order.internal_id,
            order.status,
            auth.email,
            check.rejection.value,
        )
        raise rejection_error(action, check.rejection)

    at_field, by_field = TRAIL_FIELDS[action]
    before_dict = status_audit_dict(order, at_field, by_field)
    now = now_utc()

    order.status = check.target.value
    setattr(order, at_field, now)
    setattr(order, by_field, auth.email)
    order.edited_at = now
    order.edited_by = auth.email
    if action is WorkflowAction.COMPLETE and attachment_filename:
        order.has_attachment = True
        order.attachment_filename = attachment_filename

    await session.flush()
    await write_audit_log(
        session,
        actor=auth.email,
        entity_type=AuditEntityType.OVERTIME_ORDER,
        entity_id=order.id,
        action=AUDIT_ACTIONS[action],
        before_json=before_dict,
        after_json=status_audit_dict(order, at_field, by_field),
    )
    await session.commit()
    logger.info("Order %s %s by %s -> %s", order.internal_id, action.value, auth.email, order.status)
    return await order_response(session, order)


async def pre_approve_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    """Production-manager sign-off on a pending non-logistics order."""
    return await transition_order(session, auth, order_id, WorkflowAction.PRE_APPROVE)


async def approve_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    """Plant-manager approval: pending logistics orders or pre-approved others."""
    return await transition_order(session, auth, order_id, WorkflowAction.APPROVE)


async def complete_order(
    session: AsyncSession,
    auth: AuthContext,
    order_id: uuid.UUID,
    attachment_filename: str | None = None,
) -> OrderResponse:
    return await transition_order(
        session, auth, order_id, WorkflowAction.COMPLETE, attachment_filename=attachment_filename
    )


async def cancel_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    """Cancel an open order. The requester or any workflow role may cancel."""
    return await transition_order(session, auth, order_id, WorkflowAction.CANCEL)


async def mark_order_accounted(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    return await transition_order(session, auth, order_id, WorkflowAction.MARK_ACCOUNTED)


async def reactivate_order(session: AsyncSession, auth: AuthContext, order_id: uuid.UUID) -> OrderResponse:
    """Return a canceled order to pending (admin/HR)."""
    return await transition_order(session, auth, order_id, WorkflowAction.REACTIVATE)
