"""Core configuration and infrastructure helpers."""

from .config import (
    DATABASE_URL,
    DB_RESET,
    HIVE_ACCOUNT,
    HIVE_NODES,
    HIVE_TIMEOUT,
    LOG_LEVEL,
    REWARD_CYCLE_INTERVAL,
    REWARD_RETRY_DELAY,
    require_env,
)
from .database import engine, make_engine
from .time import epoch_ms

__all__ = [
    "DATABASE_URL",
    "DB_RESET",
    "HIVE_ACCOUNT",
    "HIVE_NODES",
    "HIVE_TIMEOUT",
    "LOG_LEVEL",
    "REWARD_CYCLE_INTERVAL",
    "REWARD_RETRY_DELAY",
    "engine",
    "epoch_ms",
    "make_engine",
    "require_env",
]
