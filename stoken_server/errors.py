"""Exception hierarchy shared by the store, the ledger adapter and the engine."""

from __future__ import annotations

from typing import Optional


class StokenError(Exception):
    """Base class for every error raised by stoken_server."""


class ConfigurationError(StokenError):
    """A required setting is missing or malformed."""


class PersistenceError(StokenError):
    """The score store could not be read or written."""


class LedgerError(StokenError):
    """A ledger call failed."""


class TransientLedgerError(LedgerError):
    """Network, timeout, node or broadcast failure; the cycle may be retried."""

    def __init__(self, message: str, *, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class HistoryBoundaryError(LedgerError):
    """Account history does not reach the requested start sequence.

    The node reports (error code 10) the highest sequence it can serve; a scan
    resumes from ``resume_sequence``.
    """

    code = 10

    def __init__(self, resume_sequence: int, message: str = ""):
        super().__init__(message or f"history ends at sequence {resume_sequence}")
        self.resume_sequence = resume_sequence


class PoolUnresolved(StokenError):
    """The payout of the last announcement post is not in the account history."""

    def __init__(self, link: Optional[str] = None):
        message = (
            f"no author reward found for {link}" if link else "no author reward found"
        )
        super().__init__(message)
        self.link = link


class EmptyLeaderboard(StokenError):
    """No score was submitted during the cycle."""


__all__ = [
    "ConfigurationError",
    "EmptyLeaderboard",
    "HistoryBoundaryError",
    "LedgerError",
    "PersistenceError",
    "PoolUnresolved",
    "StokenError",
    "TransientLedgerError",
]
