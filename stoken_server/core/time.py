"""Clock helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_ms() -> int:
    """Return the current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


__all__ = ["epoch_ms", "utcnow"]
