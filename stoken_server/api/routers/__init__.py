"""Aggregate API routers."""

from fastapi import APIRouter

from .rewards import router as rewards_router
from .scores import router as scores_router
from .system import router as system_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    scores_router,
    rewards_router,
)

__all__ = ["ALL_ROUTERS"]
