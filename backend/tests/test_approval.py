"""Tests for single-order workflow transitions over HTTP."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from overtime_portal.models.audit import AuditLog
from tests.conftest import (
    ADMIN,
    EMPLOYEE,
    HR,
    ORDERS_URL,
    PLANT_MANAGER,
    PRODUCTION_MANAGER,
    REQUESTER,
    create_order,
    headers,
    order_in_status,
    run_action,
)

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


async def _post(
    client: AsyncClient, order_id: str, action: str, as_user: dict[str, str]
) -> tuple[int, dict[str, Any]]:
    resp = await client.post(f"{ORDERS_URL}/{order_id}/{action}", headers=as_user)
    return resp.status_code, resp.json()


# ---------------------------------------------------------------------------
# Full lifecycle
# ---------------------------------------------------------------------------


async def test_lifecycle_standard_department(async_client: AsyncClient) -> None:
    order = await create_order(async_client, "assembly")
    oid = order["id"]

    order = await run_action(async_client, oid, "pre-approve", PRODUCTION_MANAGER)
    assert order["status"] == "pre_approved"
    assert order["pre_approved_by"] == "prod.manager@example.com"
    assert order["pre_approved_at"] is not None

    order = await run_action(async_client, oid, "approve", PLANT_MANAGER)
    assert order["status"] == "approved"
    assert order["approved_by"] == "plant.manager@example.com"

    order = await run_action(async_client, oid, "complete", REQUESTER)
    assert order["status"] == "completed"
    assert order["completed_by"] == "leader@example.com"

    order = await run_action(async_client, oid, "mark-accounted", HR)
    assert order["status"] == "accounted"
    assert order["accounted_by"] == "hr@example.com"
    assert order["edited_by"] == "hr@example.com"


async def test_lifecycle_logistics_skips_pre_approval(async_client: AsyncClient) -> None:
    order = await create_order(async_client, "logistics")
    oid = order["id"]

    code, body = await _post(async_client, oid, "pre-approve", PRODUCTION_MANAGER)
    assert code == 409
    assert body["detail"] == "invalid status"

    order = await run_action(async_client, oid, "approve", PLANT_MANAGER)
    assert order["status"] == "approved"
    assert order["pre_approved_at"] is None


async def test_cancel_and_reactivate(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "pre_approved")
    oid = order["id"]

    order = await run_action(async_client, oid, "cancel", REQUESTER)
    assert order["status"] == "canceled"
    assert order["canceled_by"] == "leader@example.com"

    order = await run_action(async_client, oid, "reactivate", HR)
    assert order["status"] == "pending"
    assert order["reactivated_by"] == "hr@example.com"
    # earlier trail stays for the record
    assert order["pre_approved_by"] == "prod.manager@example.com"


# ---------------------------------------------------------------------------
# Refusals
# ---------------------------------------------------------------------------


async def test_approve_pending_non_logistics_order(async_client: AsyncClient) -> None:
    order = await create_order(async_client)
    code, body = await _post(async_client, order["id"], "approve", PLANT_MANAGER)
    assert code == 409
    assert body == {"error": "AppError", "detail": "invalid status", "status_code": 409}


async def test_pre_approve_by_plant_manager_unauthorized(async_client: AsyncClient) -> None:
    order = await create_order(async_client)
    code, body = await _post(async_client, order["id"], "pre-approve", PLANT_MANAGER)
    assert code == 403
    assert body["detail"] == "unauthorized"


async def test_missing_role_reported_before_wrong_status(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "approved")
    code, body = await _post(async_client, order["id"], "pre-approve", EMPLOYEE)
    assert code == 403
    assert body["detail"] == "unauthorized"


async def test_cancel_reports_wrong_status_to_anyone(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "completed")
    code, body = await _post(async_client, order["id"], "cancel", EMPLOYEE)
    assert code == 409
    assert body["detail"] == "cannot cancel"


@pytest.mark.parametrize("status", ["completed", "accounted", "canceled"])
async def test_cancel_closed_order(async_client: AsyncClient, status: str) -> None:
    order = await order_in_status(async_client, status)
    code, body = await _post(async_client, order["id"], "cancel", ADMIN)
    assert code == 409
    assert body["detail"] == "cannot cancel"


async def test_cancel_by_unrelated_user(async_client: AsyncClient) -> None:
    order = await create_order(async_client)
    code, _ = await _post(async_client, order["id"], "cancel", EMPLOYEE)
    assert code == 403


async def test_complete_by_responsible_employee(async_client: AsyncClient) -> None:
    order = await create_order(async_client, "logistics", responsible_employee="worker@example.com")
    await run_action(async_client, order["id"], "approve", PLANT_MANAGER)
    order = await run_action(async_client, order["id"], "complete", EMPLOYEE)
    assert order["status"] == "completed"
    assert order["completed_by"] == "worker@example.com"


async def test_complete_with_attachment(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "approved")
    resp = await async_client.post(
        f"{ORDERS_URL}/{order['id']}/complete",
        json={"attachment_filename": "timesheet.pdf"},
        headers=REQUESTER,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["has_attachment"] is True
    assert body["attachment_filename"] == "timesheet.pdf"


async def test_mark_accounted_requires_completion(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "approved")
    code, _ = await _post(async_client, order["id"], "mark-accounted", HR)
    assert code == 409


async def test_mark_accounted_by_plant_manager_unauthorized(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "completed")
    code, _ = await _post(async_client, order["id"], "mark-accounted", PLANT_MANAGER)
    assert code == 403


async def test_accounted_order_cannot_be_reactivated(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "accounted")
    code, _ = await _post(async_client, order["id"], "reactivate", ADMIN)
    assert code == 409


async def test_reactivate_by_group_leader_unauthorized(async_client: AsyncClient) -> None:
    order = await order_in_status(async_client, "canceled")
    code, _ = await _post(async_client, order["id"], "reactivate", REQUESTER)
    assert code == 403


async def test_transition_on_missing_order(async_client: AsyncClient, missing_id: str) -> None:
    code, body = await _post(async_client, missing_id, "approve", ADMIN)
    assert code == 404
    assert body["detail"] == "not found"


async def test_refusal_leaves_order_untouched(async_client: AsyncClient) -> None:
    order = await create_order(async_client)
    await _post(async_client, order["id"], "pre-approve", headers("stranger@example.com"))
    resp = await async_client.get(f"{ORDERS_URL}/{order['id']}", headers=ADMIN)
    body = resp.json()
    assert body["status"] == "pending"
    assert body["pre_approved_by"] is None
    assert body["edited_by"] == order["edited_by"]


async def test_admin_can_drive_whole_workflow(async_client: AsyncClient) -> None:
    order = await create_order(async_client)
    for action, expected in [
        ("pre-approve", "pre_approved"),
        ("approve", "approved"),
        ("complete", "completed"),
        ("mark-accounted", "accounted"),
    ]:
        order = await run_action(async_client, order["id"], action, ADMIN)
        assert order["status"] == expected


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


async def test_transitions_are_audited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    order = await order_in_status(async_client, "approved")
    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(order["id"])).order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())
    assert [e.action for e in entries] == ["CREATE", "PRE_APPROVE", "APPROVE"]
    approve = entries[-1]
    assert approve.actor == "plant.manager@example.com"
    assert approve.before_json == {"status": "pre_approved", "approved_at": None, "approved_by": None}
    assert approve.after_json is not None
    assert approve.after_json["status"] == "approved"
    assert approve.after_json["approved_by"] == "plant.manager@example.com"


async def test_refused_transition_writes_no_audit(async_client: AsyncClient, db_session: AsyncSession) -> None:
    order = await create_order(async_client)
    await _post(async_client, order["id"], "approve", PLANT_MANAGER)
    result = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(order["id"])))
    assert [e.action for e in result.scalars().all()] == ["CREATE"]
