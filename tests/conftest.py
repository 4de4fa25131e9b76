"""
Shared fixtures: in-memory score store and a fake ledger recording broadcasts.
"""

import os
import tempfile

os.environ.setdefault("ACCOUNT", "stoken.quest")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="stoken-test-"))

from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from stoken_server.errors import HistoryBoundaryError, LedgerError, TransientLedgerError
from stoken_server.ledger.base import AccountBalances, Asset, HistoryEntry
from stoken_server.services.rewards import RewardCycleEngine, RewardSettings
from stoken_server.services.store import ScoreStore

ACCOUNT = "stoken.quest"

TEST_TEMPLATE = "# Weekly rewards\n\n{{table}}\n\n## Best times\n\n{{times_table}}\n"


def author_reward(sequence: int, permlink: str, hbd: str) -> HistoryEntry:
    """Build an author_reward history entry paying ``hbd`` HBD."""
    return HistoryEntry(
        sequence=sequence,
        op_type="author_reward",
        payload={
            "author": ACCOUNT,
            "permlink": permlink,
            "hbd_payout": f"{hbd} HBD",
            "hive_payout": "0.000 HIVE",
            "vesting_payout": "1000.000000 VESTS",
        },
    )


def balances(hive: str = "0.000", hbd: str = "0.000", vests: str = "0.000000") -> AccountBalances:
    return AccountBalances(
        name=ACCOUNT,
        reward_hive=Asset.parse(f"{hive} HIVE"),
        reward_hbd=Asset.parse(f"{hbd} HBD"),
        reward_vests=Asset.parse(f"{vests} VESTS"),
    )


class FakeLedger:
    """In-memory ledger. Broadcasts are recorded, history is served from a list."""

    def __init__(
        self,
        history: Optional[List[HistoryEntry]] = None,
        pending: Optional[AccountBalances] = None,
        boundary: Optional[int] = None,
    ):
        self.history = list(history or [])
        self.pending = pending or balances()
        # Requests starting above this sequence fail with a history boundary error.
        self.boundary = boundary
        self.fail_on: Dict[str, Exception] = {}
        self.fail_after_transfers: Optional[int] = None
        # Published posts served by get_content, keyed by permlink, newest last.
        self.posts: Dict[str, Dict[str, Any]] = {}

        self.history_calls: List[tuple] = []
        self.claims: List[tuple] = []
        self.transfers: List[Dict[str, Any]] = []
        self.custom_jsons: List[Dict[str, Any]] = []
        self.comments: List[Dict[str, Any]] = []
        self._tx = 0

    def _next_tx(self) -> str:
        self._tx += 1
        return f"tx{self._tx}"

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise self.fail_on[method]

    async def get_account(self, name: str) -> AccountBalances:
        self._maybe_fail("get_account")
        return self.pending

    async def get_account_history(self, name, start, limit, filter_low, filter_high):
        self.history_calls.append((start, limit))
        self._maybe_fail("get_account_history")
        if self.boundary is not None and (start < 0 or start > self.boundary):
            raise HistoryBoundaryError(self.boundary)
        eligible = sorted(
            (e for e in self.history if start < 0 or e.sequence <= start),
            key=lambda e: e.sequence,
        )
        return eligible[-limit:]

    async def get_content(self, author, permlink):
        self._maybe_fail("get_content")
        if permlink not in self.posts:
            raise LedgerError(f"Post not found: @{author}/{permlink}")
        return self.posts[permlink]

    async def get_account_posts(self, account, limit=1):
        self._maybe_fail("get_account_posts")
        return list(reversed(list(self.posts.values())))[:limit]

    async def claim_reward_balance(self, account, reward_hive, reward_hbd, reward_vests):
        self._maybe_fail("claim_reward_balance")
        self.claims.append((account, str(reward_hive), str(reward_hbd), str(reward_vests)))
        return self._next_tx()

    async def transfer(self, sender, to, amount, memo):
        self._maybe_fail("transfer")
        if self.fail_after_transfers is not None and len(self.transfers) >= self.fail_after_transfers:
            raise TransientLedgerError("node timed out")
        self.transfers.append({"from": sender, "to": to, "amount": str(amount), "memo": memo})
        return self._next_tx()

    async def custom_json(self, required_auths, required_posting_auths, app_id, payload):
        self._maybe_fail("custom_json")
        self.custom_jsons.append(
            {
                "required_auths": list(required_auths),
                "required_posting_auths": list(required_posting_auths),
                "id": app_id,
                "json": payload,
            }
        )
        return self._next_tx()

    async def post_comment(
        self, parent_author, parent_permlink, author, permlink, title, body, json_metadata
    ):
        self._maybe_fail("post_comment")
        self.comments.append(
            {
                "parent_author": parent_author,
                "parent_permlink": parent_permlink,
                "author": author,
                "permlink": permlink,
                "title": title,
                "body": body,
                "json_metadata": json_metadata,
            }
        )
        self.posts[permlink] = {
            "author": author,
            "permlink": permlink,
            "title": title,
            "pending_payout_value": "0.000 HBD",
            "active_votes": [],
        }
        return self._next_tx()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Score store on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    score_store = ScoreStore(engine)
    score_store.create_tables()
    return score_store


@pytest.fixture
def ledger():
    return FakeLedger(history=[author_reward(100, "stoken-quest-week-3", "100.000")])


@pytest.fixture
def settings():
    return RewardSettings(
        account=ACCOUNT,
        tags=["hive-173115", "hivegaming"],
        images=[],
        history_page_size=30,
        history_max_pages=5,
        history_boundary_retries=2,
    )


@pytest.fixture
def reward_engine(ledger, store, settings):
    return RewardCycleEngine(ledger, store, settings, template=TEST_TEMPLATE)


def seed_scores(store: ScoreStore, scores: Dict[str, float], start_ts: int = 1_700_000_000_000) -> None:
    for offset, (username, highscore) in enumerate(scores.items()):
        store.submit(username, highscore=highscore, timestamp=start_ts + offset)


def seed_times(store: ScoreStore, times: Dict[str, int], start_ts: int = 1_700_000_000_000) -> None:
    for offset, (username, seconds) in enumerate(times.items()):
        store.submit(username, time=seconds, timestamp=start_ts + offset)
