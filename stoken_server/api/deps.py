"""Request dependencies."""

from __future__ import annotations

from ..core import HIVE_ACCOUNT, HIVE_NODES, HIVE_TIMEOUT, engine
from ..ledger import HiveClient, Ledger
from ..services.store import ScoreStore

_store = ScoreStore(engine)

# Read-only client: no signing keys on the API side.
_ledger = HiveClient(HIVE_ACCOUNT, nodes=HIVE_NODES, timeout=HIVE_TIMEOUT)


def get_store() -> ScoreStore:
    """FastAPI dependency returning the score store bound to the default engine."""

    return _store


def get_ledger() -> Ledger:
    """FastAPI dependency returning the chain reader used by display endpoints."""

    return _ledger


__all__ = ["get_ledger", "get_store"]
