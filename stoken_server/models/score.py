"""Database models for weekly score and time records."""

from __future__ import annotations

import re

from sqlmodel import Field as ORMField, SQLModel

# Characters that may not appear in a record key.
_ILLEGAL_KEY_CHARS = re.compile(r"[.,#$\[\]/]")


def sanitize_key(username: str) -> str:
    """Strip characters that cannot appear in a record key."""

    return _ILLEGAL_KEY_CHARS.sub("", username or "")


class ScoreRecord(SQLModel, table=True):
    """Best score a player submitted during the current week."""

    __tablename__ = "users"

    key: str = ORMField(primary_key=True)
    username: str
    highscore: float = 0.0
    timestamp: int = 0


class TimeRecord(SQLModel, table=True):
    """Completion time (seconds) a player submitted during the current week."""

    __tablename__ = "times"

    key: str = ORMField(primary_key=True)
    username: str
    time: int = 0
    timestamp: int = 0


__all__ = ["ScoreRecord", "TimeRecord", "sanitize_key"]
