"""Ledger interface and the Hive adapter."""

from .base import (
    AUTHOR_REWARD_FILTER,
    AccountBalances,
    Asset,
    HistoryEntry,
    Ledger,
    operation_filter,
)
from .hive import HiveClient

__all__ = [
    "AUTHOR_REWARD_FILTER",
    "AccountBalances",
    "Asset",
    "HistoryEntry",
    "HiveClient",
    "Ledger",
    "operation_filter",
]
