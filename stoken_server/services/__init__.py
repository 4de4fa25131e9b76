"""Service layer helpers."""

from .rewards import (
    CycleReport,
    CyclePhase,
    CycleResult,
    RewardCycleEngine,
    RewardPool,
    RewardSettings,
)
from .scheduler import RewardScheduler
from .shares import allocate_rewards, calculate_shares, rank_scores, rank_times
from .store import ScoreStore

__all__ = [
    "CycleReport",
    "CyclePhase",
    "CycleResult",
    "RewardCycleEngine",
    "RewardPool",
    "RewardScheduler",
    "RewardSettings",
    "ScoreStore",
    "allocate_rewards",
    "calculate_shares",
    "rank_scores",
    "rank_times",
]
