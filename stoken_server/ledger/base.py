"""Ledger types and the interface the reward engine depends on."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..errors import TransientLedgerError

# Bit index of author_reward in the account-history operation filter.
AUTHOR_REWARD_OP_ID = 51


def operation_filter(*op_ids: int) -> tuple[int, int]:
    """Build the (low, high) 64-bit masks for an account-history filter."""

    low = high = 0
    for op_id in op_ids:
        if op_id < 64:
            low |= 1 << op_id
        else:
            high |= 1 << (op_id - 64)
    return low, high


AUTHOR_REWARD_FILTER = operation_filter(AUTHOR_REWARD_OP_ID)


@dataclass(frozen=True)
class Asset:
    """An amount with its symbol, e.g. ``12.345 HBD``."""

    amount: Decimal
    symbol: str
    precision: int = 3

    @classmethod
    def parse(cls, raw: str) -> "Asset":
        try:
            amount_text, symbol = raw.strip().split(" ")
            amount = Decimal(amount_text)
        except (AttributeError, ValueError, InvalidOperation) as exc:
            raise TransientLedgerError(f"Malformed asset string: {raw!r}") from exc
        precision = len(amount_text.split(".")[1]) if "." in amount_text else 0
        return cls(amount=amount, symbol=symbol, precision=precision)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.amount:.{self.precision}f} {self.symbol}"


@dataclass(frozen=True)
class AccountBalances:
    """Pending (unclaimed) author/curation rewards of an account."""

    name: str
    reward_hive: Asset
    reward_hbd: Asset
    reward_vests: Asset

    @property
    def has_pending(self) -> bool:
        return not (
            self.reward_hive.is_zero and self.reward_hbd.is_zero and self.reward_vests.is_zero
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One (sequence, operation) pair from the account history."""

    sequence: int
    op_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    trx_id: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def permlink(self) -> Optional[str]:
        return self.payload.get("permlink")


class Ledger(Protocol):
    """Chain operations used by the reward cycle."""

    async def get_account(self, name: str) -> AccountBalances:
        ...

    async def get_account_history(
        self,
        name: str,
        start: int,
        limit: int,
        filter_low: int,
        filter_high: int,
    ) -> List[HistoryEntry]:
        ...

    async def get_content(self, author: str, permlink: str) -> Dict[str, Any]:
        ...

    async def get_account_posts(self, account: str, limit: int = 1) -> List[Dict[str, Any]]:
        ...

    async def claim_reward_balance(
        self, account: str, reward_hive: Asset, reward_hbd: Asset, reward_vests: Asset
    ) -> Optional[str]:
        ...

    async def transfer(self, sender: str, to: str, amount: Asset, memo: str) -> Optional[str]:
        ...

    async def custom_json(
        self,
        required_auths: Sequence[str],
        required_posting_auths: Sequence[str],
        app_id: str,
        payload: Any,
    ) -> Optional[str]:
        ...

    async def post_comment(
        self,
        parent_author: str,
        parent_permlink: str,
        author: str,
        permlink: str,
        title: str,
        body: str,
        json_metadata: Dict[str, Any],
    ) -> Optional[str]:
        ...


__all__ = [
    "AUTHOR_REWARD_FILTER",
    "AUTHOR_REWARD_OP_ID",
    "AccountBalances",
    "Asset",
    "HistoryEntry",
    "Ledger",
    "operation_filter",
]
