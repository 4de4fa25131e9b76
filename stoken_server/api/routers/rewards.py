"""Reward pool endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core import HIVE_ACCOUNT
from ...errors import LedgerError, StokenError
from ...ledger import Ledger
from ...services.store import ScoreStore
from ..deps import get_ledger, get_store

logger = logging.getLogger("stoken_server.api.rewards")

router = APIRouter(tags=["rewards"])


def _missing_post(permlink: str) -> Dict[str, Any]:
    return {
        "author": HIVE_ACCOUNT,
        "permlink": permlink,
        "title": "Post not found",
        "pending_payout_value": "0.000 HBD",
        "active_votes": [],
    }


@router.get("/rewardpool")
async def get_reward_pool(
    store: ScoreStore = Depends(get_store),
    ledger: Ledger = Depends(get_ledger),
) -> Dict[str, Any]:
    """The announcement post funding the current week, as ``{post, link, week}``.

    Before the first cycle there is no pointer yet and the account's latest
    post is returned as-is. When the post cannot be fetched a placeholder
    with a zero pending payout stands in for it.
    """

    try:
        pointer = store.pointer()
    except StokenError as exc:
        logger.error(f"Reward pool read failed: {exc}")
        return {}

    if not pointer:
        try:
            posts = await ledger.get_account_posts(HIVE_ACCOUNT, limit=1)
        except LedgerError as exc:
            logger.error(f"Latest post lookup failed for @{HIVE_ACCOUNT}: {exc}")
            return {}
        return posts[0] if posts else {}

    try:
        post = await ledger.get_content(HIVE_ACCOUNT, pointer.link)
    except LedgerError as exc:
        logger.warning(f"Reward pool post @{HIVE_ACCOUNT}/{pointer.link} unavailable: {exc}")
        post = _missing_post(pointer.link)

    return {"post": post, "link": pointer.link, "week": pointer.week}


__all__ = ["router"]
