"""Ranking and proportional share helpers for the weekly reward pool."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable, List, Sequence

TOP_N = 15

PERCENT_QUANTUM = Decimal("0.01")
CURRENCY_QUANTUM = Decimal("0.001")
MIN_PAYOUT = Decimal("0.001")
ZERO = Decimal("0.000")


@dataclass(frozen=True)
class ShareEntry:
    """One of the top scorers with their share of the pool."""

    username: str
    highscore: float
    share: Decimal
    reward: Decimal = ZERO

    @property
    def payable(self) -> bool:
        return self.reward >= MIN_PAYOUT


@dataclass(frozen=True)
class TimeWinner:
    """One of the fastest completion times of the week."""

    username: str
    time: int


def to_decimal(value: object) -> Decimal:
    """Convert a float/int/str to Decimal without binary float noise."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _tiebreak(record) -> tuple:
    return (int(getattr(record, "timestamp", 0) or 0), (record.username or "").lower())


def rank_scores(records: Iterable, limit: int = TOP_N) -> List:
    """Return the ``limit`` best records by descending highscore.

    Equal highscores go to the earlier submission, then alphabetically.
    """

    ordered = sorted(records, key=lambda r: (-to_decimal(r.highscore), *_tiebreak(r)))
    return ordered[:limit]


def rank_times(records: Iterable, limit: int = TOP_N) -> List[TimeWinner]:
    """Return the ``limit`` fastest records by ascending time, same tie-break."""

    ordered = sorted(records, key=lambda r: (int(r.time), *_tiebreak(r)))
    return [TimeWinner(username=r.username, time=int(r.time)) for r in ordered[:limit]]


def calculate_shares(records: Iterable) -> List[ShareEntry]:
    """Rank ``records`` and give each of the top 15 its percentage of their total.

    The total is taken over the selected entries only. Each share is rounded
    half-up to two decimals independently. A zero total yields zero shares.
    """

    top = rank_scores(records)
    total = sum((to_decimal(r.highscore) for r in top), Decimal(0))

    entries: List[ShareEntry] = []
    for record in top:
        if total > 0:
            share = (to_decimal(record.highscore) / total * 100).quantize(
                PERCENT_QUANTUM, rounding=ROUND_HALF_UP
            )
        else:
            share = Decimal("0.00")
        entries.append(
            ShareEntry(username=record.username, highscore=record.highscore, share=share)
        )
    return entries


def allocate_rewards(shares: Sequence[ShareEntry], pool: Decimal) -> List[ShareEntry]:
    """Attach ``floor(pool * share / 100)`` at three decimals to every entry.

    Rounded shares can add up to slightly more than 100%; when the floored
    rewards then exceed the pool, the excess is taken back from the lowest
    ranked entries so the total paid never exceeds ``pool``.

    Amounts below the minimum transferable unit become zero but the entry
    stays in the list so it is still shown in the announcement.
    """

    pool = to_decimal(pool)
    rewards = [
        (pool * entry.share / 100).quantize(CURRENCY_QUANTUM, rounding=ROUND_DOWN)
        for entry in shares
    ]

    excess = sum(rewards, Decimal(0)) - pool
    for i in reversed(range(len(rewards))):
        if excess <= 0:
            break
        reduced = max(rewards[i] - excess, Decimal(0)).quantize(
            CURRENCY_QUANTUM, rounding=ROUND_DOWN
        )
        excess -= rewards[i] - reduced
        rewards[i] = reduced

    allocated: List[ShareEntry] = []
    for entry, reward in zip(shares, rewards):
        if reward < MIN_PAYOUT:
            reward = ZERO
        allocated.append(replace(entry, reward=reward))
    return allocated


__all__ = [
    "CURRENCY_QUANTUM",
    "MIN_PAYOUT",
    "ShareEntry",
    "TOP_N",
    "TimeWinner",
    "allocate_rewards",
    "calculate_shares",
    "rank_scores",
    "rank_times",
    "to_decimal",
]
