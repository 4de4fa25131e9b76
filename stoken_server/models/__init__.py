"""Database model exports."""

from .cycle import POINTER_ID, CyclePointer
from .score import ScoreRecord, TimeRecord, sanitize_key

__all__ = [
    "CyclePointer",
    "POINTER_ID",
    "ScoreRecord",
    "TimeRecord",
    "sanitize_key",
]
