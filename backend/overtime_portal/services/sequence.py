"""Yearly sequential identifiers such as ``12/26`` (twelfth order of 2026)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from overtime_portal.models.counter import SequenceCounter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

ORDER_SEQUENCE = "overtime_orders"


async def next_sequence_value(session: AsyncSession, name: str, year: int) -> int:
    """Increment and return the counter for ``name`` in ``year``.

    The increment is a single UPDATE so concurrent callers never receive the
    same value; the first call of a year inserts the row. Call it before
    adding anything else to the session: losing the insert race rolls the
    session back.
    """
    result = await session.execute(
        update(SequenceCounter)
        .where(col(SequenceCounter.name) == name, col(SequenceCounter.year) == year)
        .values(value=col(SequenceCounter.value) + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        session.add(SequenceCounter(name=name, year=year, value=1))
        try:
            await session.flush()
        except IntegrityError:
            # Another transaction created the row first.
            await session.rollback()
            return await next_sequence_value(session, name, year)
        return 1

    value = await session.execute(
        select(SequenceCounter.value).where(col(SequenceCounter.name) == name, col(SequenceCounter.year) == year)
    )
    return value.scalar_one()


def format_internal_id(number: int, year: int) -> str:
    return f"{number}/{year % 100:02d}"


async def next_internal_id(session: AsyncSession, now: datetime | None = None) -> str:
    """Next order number for the current year, e.g. ``7/26``."""
    year = (now or datetime.now(UTC)).year
    number = await next_sequence_value(session, ORDER_SEQUENCE, year)
    return format_internal_id(number, year)
