"""Tests for request payload validation."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import pytest
from pydantic import ValidationError

from overtime_portal.schemas.order import (
    BulkActionPayload,
    CreateOrderPayload,
    ScheduledDayOffPayload,
    UpdateOrderPayload,
)


def _start() -> datetime:
    return (datetime.now(UTC) + timedelta(days=3)).replace(hour=6, minute=0, second=0, microsecond=0)


def _fields(hours: float = 8, start: datetime | None = None, **extra: Any) -> dict[str, Any]:
    start = start or _start()
    data: dict[str, Any] = {
        "department": "assembly",
        "number_of_employees": 2,
        "number_of_shifts": 1,
        "responsible_employee": "Leader@Example.com",
        "from_at": start,
        "to_at": start + timedelta(hours=hours),
        "reason": "Backlog",
    }
    data.update(extra)
    return data


def _day_off(identifier: str = "E-1") -> dict[str, Any]:
    return {
        "identifier": identifier,
        "first_name": "Jan",
        "last_name": "Kowalski",
        "agreed_receiving_at": _start() + timedelta(days=7),
    }


class TestCreateOrderPayload:
    def test_valid(self) -> None:
        payload = CreateOrderPayload(**_fields())
        assert payload.responsible_employee == "leader@example.com"
        assert payload.employees_with_scheduled_day_off == []

    @pytest.mark.parametrize("hours", [1, 1.5, 7.5, 24])
    def test_accepts_half_hour_steps(self, hours: float) -> None:
        CreateOrderPayload(**_fields(hours=hours))

    @pytest.mark.parametrize("hours", [0.5, 2.25, 24.5, -1])
    def test_rejects_bad_duration(self, hours: float) -> None:
        with pytest.raises(ValidationError):
            CreateOrderPayload(**_fields(hours=hours))

    def test_rejects_past_start(self) -> None:
        start = (datetime.now(UTC) - timedelta(days=1)).replace(minute=0, second=0, microsecond=0)
        with pytest.raises(ValidationError, match="past"):
            CreateOrderPayload(**_fields(start=start))

    def test_naive_datetimes_are_utc(self) -> None:
        start = _start().replace(tzinfo=None)
        payload = CreateOrderPayload(**_fields(start=start))
        assert payload.from_at.tzinfo is UTC

    def test_offsets_are_normalized_to_utc(self) -> None:
        start = _start().astimezone(timezone(timedelta(hours=2)))
        payload = CreateOrderPayload(**_fields(start=start))
        assert payload.from_at.utcoffset() == timedelta(0)
        assert payload.from_at == start

    def test_rejects_bad_email(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderPayload(**_fields(responsible_employee="not-an-email"))

    @pytest.mark.parametrize("field", ["number_of_employees", "number_of_shifts"])
    def test_rejects_non_positive_counts(self, field: str) -> None:
        with pytest.raises(ValidationError):
            CreateOrderPayload(**_fields(**{field: 0}))

    def test_roster_within_headcount(self) -> None:
        payload = CreateOrderPayload(**_fields(employees_with_scheduled_day_off=[_day_off("E-1"), _day_off("E-2")]))
        assert [d.identifier for d in payload.employees_with_scheduled_day_off] == ["E-1", "E-2"]

    def test_roster_larger_than_headcount(self) -> None:
        roster = [_day_off("E-1"), _day_off("E-2"), _day_off("E-3")]
        with pytest.raises(ValidationError, match="more employees"):
            CreateOrderPayload(**_fields(employees_with_scheduled_day_off=roster))

    def test_roster_duplicate_identifiers(self) -> None:
        with pytest.raises(ValidationError, match="unique"):
            CreateOrderPayload(**_fields(employees_with_scheduled_day_off=[_day_off("E-1"), _day_off("E-1")]))


class TestUpdateOrderPayload:
    def test_past_window_is_allowed(self) -> None:
        start = (datetime.now(UTC) - timedelta(days=10)).replace(minute=0, second=0, microsecond=0)
        payload = UpdateOrderPayload(**_fields(start=start))
        assert payload.from_at == start

    def test_window_rules_still_apply(self) -> None:
        with pytest.raises(ValidationError):
            UpdateOrderPayload(**_fields(hours=25))


def test_day_off_requires_identifier() -> None:
    with pytest.raises(ValidationError):
        ScheduledDayOffPayload(**_day_off(""))


def test_bulk_payload_requires_ids() -> None:
    with pytest.raises(ValidationError):
        BulkActionPayload(ids=[])
    assert len(BulkActionPayload(ids=[uuid.uuid4()]).ids) == 1
