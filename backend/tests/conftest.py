from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from overtime_portal.db import get_session
from overtime_portal.main import app
from overtime_portal.models import SQLModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

ORDERS_URL = "/overtime-orders"


def headers(email: str, *roles: str) -> dict[str, str]:
    """Session headers for a user with the given roles."""
    return {"X-User-Email": email, "X-User-Roles": ",".join(roles)}


REQUESTER = headers("leader@example.com", "group-leader")
EMPLOYEE = headers("worker@example.com")
PRODUCTION_MANAGER = headers("prod.manager@example.com", "production-manager")
PLANT_MANAGER = headers("plant.manager@example.com", "plant-manager")
HR = headers("hr@example.com", "hr")
ADMIN = headers("admin@example.com", "admin")


def order_payload(
    department: str = "assembly",
    *,
    days_ahead: int = 2,
    hours: float = 8,
    number_of_employees: int = 3,
    responsible_employee: str = "leader@example.com",
    **extra: Any,
) -> dict[str, Any]:
    """Build a valid create payload starting at 14:00 UTC ``days_ahead`` days from now."""
    start = (datetime.now(UTC) + timedelta(days=days_ahead)).replace(hour=14, minute=0, second=0, microsecond=0)
    payload: dict[str, Any] = {
        "department": department,
        "number_of_employees": number_of_employees,
        "number_of_shifts": 1,
        "responsible_employee": responsible_employee,
        "from_at": start.isoformat(),
        "to_at": (start + timedelta(hours=hours)).isoformat(),
        "reason": "Backlog",
    }
    payload.update(extra)
    return payload


async def create_order(
    client: AsyncClient,
    department: str = "assembly",
    *,
    as_user: dict[str, str] = REQUESTER,
    **kwargs: Any,
) -> dict[str, Any]:
    """Create an order and return the response JSON. Asserts 201."""
    resp = await client.post(ORDERS_URL, json=order_payload(department, **kwargs), headers=as_user)
    assert resp.status_code == 201, resp.json()
    result: dict[str, Any] = resp.json()
    return result


async def run_action(client: AsyncClient, order_id: str, action: str, as_user: dict[str, str]) -> dict[str, Any]:
    """POST a workflow action and return the response JSON. Asserts 200."""
    resp = await client.post(f"{ORDERS_URL}/{order_id}/{action}", headers=as_user)
    assert resp.status_code == 200, resp.json()
    result: dict[str, Any] = resp.json()
    return result


async def order_in_status(client: AsyncClient, status: str, department: str = "assembly") -> dict[str, Any]:
    """Create an order and drive it to ``status`` through the regular workflow."""
    order = await create_order(client, department)
    oid = order["id"]
    logistics = department == "logistics"
    steps: dict[str, list[tuple[str, dict[str, str]]]] = {
        "pending": [],
        "pre_approved": [("pre-approve", PRODUCTION_MANAGER)],
        "approved": ([] if logistics else [("pre-approve", PRODUCTION_MANAGER)]) + [("approve", PLANT_MANAGER)],
    }
    steps["completed"] = [*steps["approved"], ("complete", REQUESTER)]
    steps["accounted"] = [*steps["completed"], ("mark-accounted", HR)]
    steps["canceled"] = [("cancel", REQUESTER)]
    for action, as_user in steps[status]:
        order = await run_action(client, oid, action, as_user)
    assert order["status"] == status
    return order


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory database per test, tables created from the models."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session on the per-test database."""
    async with AsyncSession(bind=engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def missing_id() -> str:
    return str(uuid.uuid4())
