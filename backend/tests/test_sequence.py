from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from overtime_portal.services.sequence import format_internal_id, next_internal_id, next_sequence_value

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def test_format_internal_id() -> None:
    assert format_internal_id(7, 2026) == "7/26"
    assert format_internal_id(120, 2030) == "120/30"
    assert format_internal_id(1, 2105) == "1/05"


async def test_sequence_counts_up(db_session: AsyncSession) -> None:
    values = [await next_sequence_value(db_session, "test", 2026) for _ in range(3)]
    assert values == [1, 2, 3]


async def test_sequence_restarts_each_year(db_session: AsyncSession) -> None:
    await next_sequence_value(db_session, "test", 2026)
    await next_sequence_value(db_session, "test", 2026)
    assert await next_sequence_value(db_session, "test", 2027) == 1
    assert await next_sequence_value(db_session, "test", 2026) == 3


async def test_sequences_are_independent(db_session: AsyncSession) -> None:
    await next_sequence_value(db_session, "a", 2026)
    assert await next_sequence_value(db_session, "b", 2026) == 1


async def test_next_internal_id_uses_given_year(db_session: AsyncSession) -> None:
    now = datetime(2031, 3, 1, tzinfo=UTC)
    assert await next_internal_id(db_session, now) == "1/31"
    assert await next_internal_id(db_session, now) == "2/31"
