"""FastAPI application factory for the score server."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import get_ledger, get_store, register_routes
from .core import DB_RESET
from .ledger import Ledger
from .services.store import ScoreStore


def create_app(store: Optional[ScoreStore] = None, ledger: Optional[Ledger] = None) -> FastAPI:
    """Build the app; ``store`` and ``ledger`` replace the default SQLite store and Hive reader."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        (store or get_store()).create_tables(reset=DB_RESET)
        yield

    app = FastAPI(title="Quest For Stoken Score API", version="1.0.0", lifespan=lifespan)
    register_routes(app)
    if store is not None:
        app.dependency_overrides[get_store] = lambda: store
    if ledger is not None:
        app.dependency_overrides[get_ledger] = lambda: ledger
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stoken_server.app:app", host="127.0.0.1", port=3000, reload=True)
