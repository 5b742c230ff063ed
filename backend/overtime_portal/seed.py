"""Seed script for development data.

Run with:  python -m overtime_portal.seed
Inside Docker:  docker compose exec api python -m overtime_portal.seed

Creates a handful of orders and walks some of them through the workflow so
every status shows up in the UI.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

BASE_URL = "http://localhost:8000"
ORDERS_URL = f"{BASE_URL}/overtime-orders"


def _headers(email: str, *roles: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-User-Email": email,
        "X-User-Roles": ",".join(roles),
    }


GROUP_LEADER = _headers("anna.nowak@example.com", "group-leader")
PRODUCTION_MANAGER = _headers("piotr.lis@example.com", "production-manager")
PLANT_MANAGER = _headers("marek.wrobel@example.com", "plant-manager")
HR = _headers("ewa.kowalska@example.com", "hr")

# (department, days ahead, hours, employees, steps to run after creation)
ORDERS: list[tuple[str, int, float, int, list[tuple[str, dict[str, str]]]]] = [
    ("assembly", 3, 8, 4, []),
    ("assembly", 4, 6, 2, [("pre-approve", PRODUCTION_MANAGER)]),
    (
        "molding",
        5,
        8,
        3,
        [("pre-approve", PRODUCTION_MANAGER), ("approve", PLANT_MANAGER)],
    ),
    ("logistics", 2, 4.5, 2, [("approve", PLANT_MANAGER), ("complete", GROUP_LEADER)]),
    (
        "logistics",
        6,
        12,
        5,
        [("approve", PLANT_MANAGER), ("complete", GROUP_LEADER), ("mark-accounted", HR)],
    ),
    ("quality", 7, 3, 1, [("cancel", GROUP_LEADER)]),
]


async def _safe_post(
    client: httpx.AsyncClient,
    url: str,
    data: dict[str, Any] | None,
    label: str,
    headers: dict[str, str],
) -> dict[str, Any] | None:
    """POST and report, without aborting the run on a refusal."""
    resp = await client.post(url, json=data, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        result: dict[str, Any] = resp.json()
        return result
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text}")
    return None


def _window(days_ahead: int, hours: float) -> tuple[datetime, datetime]:
    start = (datetime.now(UTC) + timedelta(days=days_ahead)).replace(hour=14, minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=hours)


async def seed_orders(client: httpx.AsyncClient) -> None:
    """Create the sample orders and move them through their steps."""
    print("\n--- Seeding overtime orders ---")
    for department, days_ahead, hours, employees, steps in ORDERS:
        start, end = _window(days_ahead, hours)
        created = await _safe_post(
            client,
            ORDERS_URL,
            {
                "department": department,
                "number_of_employees": employees,
                "number_of_shifts": 1,
                "responsible_employee": "anna.nowak@example.com",
                "from_at": start.isoformat(),
                "to_at": end.isoformat(),
                "reason": f"Backlog in {department}",
            },
            f"Order: {department} {hours}h x{employees}",
            GROUP_LEADER,
        )
        if created is None:
            continue
        for step, headers in steps:
            await _safe_post(
                client,
                f"{ORDERS_URL}/{created['id']}/{step}",
                None,
                f"  {created['internal_id']} {step}",
                headers,
            )


async def main() -> None:
    print("=" * 60)
    print("  Overtime Portal - Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        await seed_orders(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
