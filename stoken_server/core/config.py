"""Application settings and environment helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from dotenv import load_dotenv

from ..errors import ConfigurationError

load_dotenv(override=False)

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_PROJECT_ROOT = _PACKAGE_ROOT.parent


def require_env(name: str) -> str:
    """Return a required environment variable or raise an error."""

    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


# Hive account ---------------------------------------------------------------
# Signing keys are read by the worker at startup.
HIVE_ACCOUNT = os.getenv("ACCOUNT", "")

_default_nodes = [
    "https://api.hive.blog",
    "https://anyx.io",
    "https://api.openhive.network",
]
HIVE_NODES = _unique(_split_csv(os.getenv("HIVE_NODES")) or _default_nodes)
HIVE_TIMEOUT = _env_int("HIVE_TIMEOUT", 30)


# Storage --------------------------------------------------------------------
DATA_DIR = Path(os.getenv("DATA_DIR", str(_PROJECT_ROOT / "data")))
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DATA_DIR / 'app.db'}"
DB_RESET = _env_bool("DB_RESET", False)


# Weekly post ----------------------------------------------------------------
COMMUNITY_TAG = os.getenv("COMMUNITY_TAG", "hive-173115")
POST_TITLE = os.getenv("POST_TITLE", "Quest For Skateboarding week {week}")
POST_TEMPLATE = Path(
    os.getenv("POST_TEMPLATE", str(_PACKAGE_ROOT / "templates" / "weekly_post.md"))
)
POST_TAGS = _unique(
    [
        COMMUNITY_TAG,
        *(
            _split_csv(os.getenv("POST_TAGS"))
            or [
                "hivegaming",
                "web3gaming",
                "play2earn",
                "gamedev",
                "proofofbrain",
                "hive-engine",
                "stoken",
            ]
        ),
    ]
)
POST_IMAGES = _split_csv(os.getenv("POST_IMAGES"))
GAME_NAME = os.getenv("GAME_NAME", "Quest For Stoken")
APP_NAME = os.getenv("APP_NAME", "qfs-server")


# Token award ----------------------------------------------------------------
TOKEN_SYMBOL = os.getenv("TOKEN_SYMBOL", "GNAR")
TOKEN_QUANTITY = os.getenv("TOKEN_QUANTITY", "1.000")
TOKEN_LABEL = os.getenv("TOKEN_LABEL", "Gnar Coin")
TOKEN_CONTRACT_ID = os.getenv("TOKEN_CONTRACT_ID", "ssc-mainnet-hive")


# Scheduling -----------------------------------------------------------------
REWARD_CYCLE_INTERVAL = _env_int("REWARD_CYCLE_INTERVAL", 60 * 60)
REWARD_RETRY_DELAY = _env_int("REWARD_RETRY_DELAY", 5 * 60)
HISTORY_PAGE_SIZE = _env_int("HISTORY_PAGE_SIZE", 30)
HISTORY_MAX_PAGES = _env_int("HISTORY_MAX_PAGES", 10)
HISTORY_BOUNDARY_RETRIES = _env_int("HISTORY_BOUNDARY_RETRIES", 3)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


__all__ = [
    "APP_NAME",
    "COMMUNITY_TAG",
    "DATABASE_URL",
    "DATA_DIR",
    "DB_RESET",
    "GAME_NAME",
    "HISTORY_BOUNDARY_RETRIES",
    "HISTORY_MAX_PAGES",
    "HISTORY_PAGE_SIZE",
    "HIVE_ACCOUNT",
    "HIVE_NODES",
    "HIVE_TIMEOUT",
    "LOG_LEVEL",
    "POST_IMAGES",
    "POST_TAGS",
    "POST_TEMPLATE",
    "POST_TITLE",
    "REWARD_CYCLE_INTERVAL",
    "REWARD_RETRY_DELAY",
    "TOKEN_CONTRACT_ID",
    "TOKEN_LABEL",
    "TOKEN_QUANTITY",
    "TOKEN_SYMBOL",
    "require_env",
]
