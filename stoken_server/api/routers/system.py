"""System-level API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core import HIVE_ACCOUNT
from ...core.time import utcnow

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> Dict[str, str]:
    """Simple readiness probe."""

    return {"status": "healthy"}


@router.get("/status")
def status() -> JSONResponse:
    """Server identity and clock."""

    payload: Dict[str, Any] = {
        "status": "online",
        "server": "QFS Backend",
        "account": HIVE_ACCOUNT,
        "timestamp": utcnow().isoformat(),
    }
    return JSONResponse(payload)


__all__ = ["router"]
