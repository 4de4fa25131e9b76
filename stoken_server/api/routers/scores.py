"""Score submission and leaderboard endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ...errors import StokenError
from ...services.shares import TOP_N, rank_scores
from ...services.store import ScoreStore
from ..deps import get_store

logger = logging.getLogger("stoken_server.api.scores")

router = APIRouter(tags=["scores"])


def _score_to_dict(record) -> Dict[str, Any]:
    return {
        "username": record.username,
        "highscore": record.highscore,
        "timestamp": record.timestamp,
    }


def _by_time(records) -> List:
    return sorted(records, key=lambda r: (r.time, r.timestamp))


def _time_to_dict(record) -> Dict[str, Any]:
    return {
        "username": record.username,
        "time": record.time,
        "timestamp": record.timestamp,
    }


@router.post("/pushscore")
def push_score(body: Dict[str, Any], store: ScoreStore = Depends(get_store)):
    """Store a player's latest high score and/or completion time."""

    username = (body.get("username") or "").strip()
    if not username:
        raise HTTPException(400, "Username required")

    try:
        highscore = float(body.get("highscore") or 0)
        time = int(body.get("time") or 0)
    except (TypeError, ValueError):
        raise HTTPException(400, "highscore and time must be numbers") from None
    if highscore < 0 or time < 0:
        raise HTTPException(400, "highscore and time must not be negative")

    try:
        return store.submit(username, highscore=highscore, time=time)
    except StokenError as exc:
        logger.error(f"Score submission failed for {username}: {exc}")
        raise HTTPException(503, "Score store unavailable") from exc


@router.get("/leaderboard")
def get_leaderboard(store: ScoreStore = Depends(get_store)) -> List[Dict[str, Any]]:
    """Top 15 high scores, best first. Empty when the store is unreachable."""

    try:
        return [_score_to_dict(r) for r in rank_scores(store.scores())]
    except StokenError as exc:
        logger.error(f"Leaderboard read failed: {exc}")
        return []


@router.get("/times")
def get_times(store: ScoreStore = Depends(get_store)) -> List[Dict[str, Any]]:
    """Top 15 completion times, fastest first. Empty when the store is unreachable."""

    try:
        return [_time_to_dict(r) for r in _by_time(store.times())[:TOP_N]]
    except StokenError as exc:
        logger.error(f"Times read failed: {exc}")
        return []


@router.get("/getscore")
def get_all_scores(store: ScoreStore = Depends(get_store)) -> List[Dict[str, Any]]:
    """Every high score of the week, best first."""

    try:
        scores = store.scores()
        return [_score_to_dict(r) for r in rank_scores(scores, limit=len(scores))]
    except StokenError as exc:
        logger.error(f"Score read failed: {exc}")
        return []


@router.get("/gettime")
def get_all_times(store: ScoreStore = Depends(get_store)) -> List[Dict[str, Any]]:
    """Every completion time of the week, fastest first."""

    try:
        return [_time_to_dict(r) for r in _by_time(store.times())]
    except StokenError as exc:
        logger.error(f"Time read failed: {exc}")
        return []


@router.get("/getuser/{username}")
def get_user(username: str, store: ScoreStore = Depends(get_store)) -> Dict[str, Any]:
    """A player's current score and time, zero when absent."""

    data: Dict[str, Any] = {"username": username, "highscore": 0, "time": 0}
    try:
        score = store.get_score(username)
        best = store.get_time(username)
    except StokenError as exc:
        logger.error(f"User read failed for {username}: {exc}")
        return data

    if score:
        data.update(_score_to_dict(score))
    if best:
        data["time"] = best.time
    return data


__all__ = ["router"]
