# ruff: noqa: TC003
"""Bulk status transitions over a selection of orders.

The guard is evaluated per order; orders that do not qualify are skipped and
reported, never failed as a batch. The write is a conditional UPDATE keyed on
the status each order was read with, so an order changed by someone else in
between is skipped too and ``count`` is always the number of rows actually
modified. There is no atomicity across the batch beyond that.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from overtime_portal.config import get_settings
from overtime_portal.exceptions import AppError, unauthorized
from overtime_portal.models.base import now_utc
from overtime_portal.models.enums import AuditEntityType, OrderStatus, WorkflowAction
from overtime_portal.models.order import OvertimeOrder
from overtime_portal.schemas.order import BulkActionResponse, SkippedItem
from overtime_portal.services.approval import AUDIT_ACTIONS, TRAIL_FIELDS
from overtime_portal.services.audit import write_audit_log
from overtime_portal.workflow import TRANSITIONS, OrderState, Rejection, check_transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from overtime_portal.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

BULK_ACTIONS: frozenset[WorkflowAction] = frozenset(
    {
        WorkflowAction.PRE_APPROVE,
        WorkflowAction.APPROVE,
        WorkflowAction.CANCEL,
        WorkflowAction.MARK_ACCOUNTED,
    }
)

_PAST_TENSE: dict[WorkflowAction, str] = {
    WorkflowAction.PRE_APPROVE: "pre-approved",
    WorkflowAction.APPROVE: "approved",
    WorkflowAction.CANCEL: "canceled",
    WorkflowAction.MARK_ACCOUNTED: "marked as accounted",
}


async def bulk_transition(
    session: AsyncSession,
    auth: AuthContext,
    action: WorkflowAction,
    ids: list[uuid.UUID],
) -> BulkActionResponse:
    """Apply ``action`` to every eligible order in ``ids``.

    Raises 403 up front when the action is role-only and the caller holds
    none of its roles, and 400 when not a single order qualifies.
    """
    action = WorkflowAction(action)
    if action not in BULK_ACTIONS:
        raise AppError(f"{action.value} is not available as a bulk action", status_code=400)

    actor = auth.actor
    transition = TRANSITIONS[action]
    if transition.requires_role and not actor.has_any(transition.roles):
        logger.info("Bulk %s refused for %s: missing role", action.value, auth.email)
        raise unauthorized()

    requested = list(dict.fromkeys(ids))
    result = await session.execute(select(OvertimeOrder).where(col(OvertimeOrder.id).in_(requested)))
    orders = {order.id: order for order in result.scalars().all()}

    logistics_department = get_settings().logistics_department
    skipped: list[SkippedItem] = []
    eligible: dict[OrderStatus, list[uuid.UUID]] = defaultdict(list)
    target: OrderStatus | None = None

    for order_id in requested:
        order = orders.get(order_id)
        if order is None:
            skipped.append(SkippedItem(id=order_id, reason=Rejection.NOT_FOUND))
            continue
        check = check_transition(action, OrderState.of(order), actor, logistics_department=logistics_department)
        if check.rejection is not None:
            skipped.append(SkippedItem(id=order_id, reason=check.rejection))
            continue
        target = check.target
        eligible[OrderStatus(order.status)].append(order_id)

    if target is None:
        logger.info("Bulk %s by %s: none of %d orders qualify", action.value, auth.email, len(requested))
        raise AppError(f"no orders can be {_PAST_TENSE[action]}", status_code=400)

    at_field, by_field = TRAIL_FIELDS[action]
    now = now_utc()
    modified: list[uuid.UUID] = []

    for source_status, group in eligible.items():
        update_result = await session.execute(
            update(OvertimeOrder)
            .where(col(OvertimeOrder.id).in_(group), col(OvertimeOrder.status) == source_status.value)
            .values(
                {
                    "status": target.value,
                    at_field: now,
                    by_field: auth.email,
                    "edited_at": now,
                    "edited_by": auth.email,
                }
            )
            .returning(col(OvertimeOrder.id))
            .execution_options(synchronize_session=False)
        )
        changed = set(update_result.scalars().all())
        for order_id in group:
            if order_id not in changed:
                skipped.append(SkippedItem(id=order_id, reason=Rejection.INVALID_STATUS))
                continue
            modified.append(order_id)
            session.expire(orders[order_id])
            await write_audit_log(
                session,
                actor=auth.email,
                entity_type=AuditEntityType.OVERTIME_ORDER,
                entity_id=order_id,
                action=AUDIT_ACTIONS[action],
                before_json={"status": source_status.value},
                after_json={"status": target.value, at_field: now.isoformat(), by_field: auth.email},
            )

    await session.commit()
    logger.info(
        "Bulk %s by %s: requested=%d modified=%d skipped=%d",
        action.value,
        auth.email,
        len(requested),
        len(modified),
        len(skipped),
    )
    return BulkActionResponse(
        action=action,
        requested=len(requested),
        count=len(modified),
        modified_ids=modified,
        skipped=skipped,
    )


async def bulk_pre_approve(session: AsyncSession, auth: AuthContext, ids: list[uuid.UUID]) -> BulkActionResponse:
    return await bulk_transition(session, auth, WorkflowAction.PRE_APPROVE, ids)


async def bulk_approve(session: AsyncSession, auth: AuthContext, ids: list[uuid.UUID]) -> BulkActionResponse:
    return await bulk_transition(session, auth, WorkflowAction.APPROVE, ids)


async def bulk_cancel(session: AsyncSession, auth: AuthContext, ids: list[uuid.UUID]) -> BulkActionResponse:
    return await bulk_transition(session, auth, WorkflowAction.CANCEL, ids)


async def bulk_mark_accounted(session: AsyncSession, auth: AuthContext, ids: list[uuid.UUID]) -> BulkActionResponse:
    return await bulk_transition(session, auth, WorkflowAction.MARK_ACCOUNTED, ids)
