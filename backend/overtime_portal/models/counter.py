from __future__ import annotations

from sqlmodel import Field, SQLModel


class SequenceCounter(SQLModel, table=True):
    """Last value handed out for a named yearly sequence."""

    __tablename__ = "sequence_counter"

    name: str = Field(primary_key=True, max_length=100)
    year: int = Field(primary_key=True)
    value: int = 0
