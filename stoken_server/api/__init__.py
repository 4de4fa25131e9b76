"""HTTP surface: score submission and leaderboard reads."""

from __future__ import annotations

from fastapi import FastAPI

from .deps import get_ledger, get_store
from .routers import ALL_ROUTERS


def register_routes(app: FastAPI) -> None:
    """Mount the system, score and reward routers on ``app``."""

    for router in ALL_ROUTERS:
        app.include_router(router)


__all__ = ["get_ledger", "get_store", "register_routes"]
