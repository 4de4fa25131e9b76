"""Database model for the weekly announcement pointer."""

from __future__ import annotations

from sqlmodel import Field as ORMField, SQLModel

POINTER_ID = 1


class CyclePointer(SQLModel, table=True):
    """Permlink and week number of the most recent announcement post."""

    __tablename__ = "link"

    id: int = ORMField(default=POINTER_ID, primary_key=True)
    link: str
    week: int = 0


__all__ = ["CyclePointer", "POINTER_ID"]
