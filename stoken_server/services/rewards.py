"""
Weekly reward cycle.

One cycle:
1. Claim the account's pending author/curation rewards
2. Find the payout of the previous announcement post (the reward pool)
3. Rank the week's high scores and best times
4. Pay the top 15 scorers their share of the pool, then send the token awards
5. Publish the new announcement post
6. Point at the new post and wipe the weekly tables

Any ledger or store failure ends the cycle without touching stored state;
payouts already broadcast are not rolled back.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core import config, require_env
from ..core.time import epoch_ms
from ..errors import (
    EmptyLeaderboard,
    HistoryBoundaryError,
    LedgerError,
    PersistenceError,
    PoolUnresolved,
)
from ..ledger.base import AUTHOR_REWARD_FILTER, Asset, Ledger
from .post import format_number, load_template, post_metadata, render_post
from .shares import ShareEntry, TimeWinner, allocate_rewards, calculate_shares, rank_times
from .store import ScoreStore

logger = logging.getLogger("stoken_server.services.rewards")

CURRENCY = "HBD"


class CyclePhase(Enum):
    """Phases of a reward cycle."""
    IDLE = "idle"
    CLAIMING = "claiming"
    LOCATING_POOL = "locating_pool"
    RANKING = "ranking"
    DISPATCHING = "dispatching"
    PUBLISHING = "publishing"
    ROTATED = "rotated"                  # Terminal: state moved to the next week
    RETRY_SCHEDULED = "retry_scheduled"  # Terminal: nothing stored, try again later


class CycleResult(Enum):
    """Why a cycle ended."""
    ROTATED = "rotated"
    POOL_UNRESOLVED = "pool_unresolved"
    EMPTY_LEADERBOARD = "empty_leaderboard"
    FAILED = "failed"


@dataclass(frozen=True)
class RewardPool:
    """Payout of the previous announcement post."""
    amount: Decimal
    week: int
    permlink: Optional[str] = None
    sequence: Optional[int] = None


@dataclass
class RewardSettings:
    """Everything the engine needs besides its ledger and store."""

    account: str
    community_tag: str = config.COMMUNITY_TAG
    title: str = config.POST_TITLE
    template_path: Path = config.POST_TEMPLATE
    tags: List[str] = field(default_factory=lambda: list(config.POST_TAGS))
    images: List[str] = field(default_factory=lambda: list(config.POST_IMAGES))
    app_name: str = config.APP_NAME
    game_name: str = config.GAME_NAME
    token_symbol: str = config.TOKEN_SYMBOL
    token_quantity: str = config.TOKEN_QUANTITY
    token_label: str = config.TOKEN_LABEL
    token_contract_id: str = config.TOKEN_CONTRACT_ID
    history_page_size: int = config.HISTORY_PAGE_SIZE
    history_max_pages: int = config.HISTORY_MAX_PAGES
    history_boundary_retries: int = config.HISTORY_BOUNDARY_RETRIES

    @classmethod
    def from_env(cls) -> "RewardSettings":
        return cls(account=require_env("ACCOUNT"))

    def permlink(self, week: int) -> str:
        # Permlinks only allow lowercase letters, digits and hyphens.
        slug = self.account.lower().replace(".", "-")
        return f"{slug}-week-{week}"


@dataclass
class CycleReport:
    """Outcome of one call to :meth:`RewardCycleEngine.run_cycle`."""

    result: CycleResult
    phase: CyclePhase
    started_at: int
    week: Optional[int] = None
    pool: Optional[RewardPool] = None
    rewards: List[ShareEntry] = field(default_factory=list)
    time_winners: List[TimeWinner] = field(default_factory=list)
    transfers: List[Dict[str, Any]] = field(default_factory=list)
    token_batches: List[Optional[str]] = field(default_factory=list)
    permlink: Optional[str] = None
    post_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def rotated(self) -> bool:
        return self.result is CycleResult.ROTATED

    @property
    def terminal_phase(self) -> CyclePhase:
        return CyclePhase.ROTATED if self.rotated else CyclePhase.RETRY_SCHEDULED

    def to_dict(self) -> dict:
        return {
            'result': self.result.value,
            'phase': self.phase.value,
            'started_at': self.started_at,
            'week': self.week,
            'pool': str(self.pool.amount) if self.pool else None,
            'rewards': [
                {
                    'username': e.username,
                    'highscore': e.highscore,
                    'share': str(e.share),
                    'reward': str(e.reward),
                }
                for e in self.rewards
            ],
            'time_winners': [{'username': w.username, 'time': w.time} for w in self.time_winners],
            'transfers': list(self.transfers),
            'token_batches': list(self.token_batches),
            'permlink': self.permlink,
            'post_id': self.post_id,
            'error': self.error,
        }


class RewardCycleEngine:
    """
    Runs reward cycles against an injected ledger and score store.

    Only one cycle runs at a time; a second caller waits for the first.
    """

    def __init__(
        self,
        ledger: Ledger,
        store: ScoreStore,
        settings: RewardSettings,
        template: Optional[str] = None,
    ):
        self.ledger = ledger
        self.store = store
        self.settings = settings
        self.template = template if template is not None else load_template(settings.template_path)
        self._phase = CyclePhase.IDLE
        self._lock = asyncio.Lock()

    @property
    def phase(self) -> CyclePhase:
        return self._phase

    def _enter(self, report: CycleReport, phase: CyclePhase) -> None:
        self._phase = phase
        report.phase = phase

    # ========================================================================
    # CYCLE
    # ========================================================================

    async def run_cycle(self) -> CycleReport:
        """Run one full cycle and report how it ended. Never raises for ledger/store errors."""

        async with self._lock:
            report = CycleReport(
                result=CycleResult.FAILED,
                phase=CyclePhase.IDLE,
                started_at=epoch_ms(),
            )
            logger.info(f"Processing rewards for @{self.settings.account}")

            try:
                self._enter(report, CyclePhase.CLAIMING)
                await self.claim_rewards()

                self._enter(report, CyclePhase.LOCATING_POOL)
                report.pool = await self.locate_pool()
                report.week = report.pool.week + 1

                self._enter(report, CyclePhase.RANKING)
                self.rank(report)

                self._enter(report, CyclePhase.DISPATCHING)
                await self.dispatch(report)

                self._enter(report, CyclePhase.PUBLISHING)
                await self.publish(report)

                self.rotate(report)
                self._enter(report, CyclePhase.ROTATED)
                report.result = CycleResult.ROTATED
            except PoolUnresolved as exc:
                logger.info(f"Reward pool not available yet: {exc}")
                report.result = CycleResult.POOL_UNRESOLVED
                report.error = str(exc)
            except EmptyLeaderboard as exc:
                logger.info(f"No high scores found: {exc}")
                report.result = CycleResult.EMPTY_LEADERBOARD
                report.error = str(exc)
            except (LedgerError, PersistenceError) as exc:
                logger.exception(f"Reward cycle failed while {report.phase.value}: {exc}")
                if report.transfers:
                    logger.warning(
                        f"{len(report.transfers)} transfer(s) were already broadcast this cycle"
                    )
                report.result = CycleResult.FAILED
                report.error = str(exc)

            self._phase = report.terminal_phase
            return report

    # ========================================================================
    # PHASES
    # ========================================================================

    async def claim_rewards(self) -> bool:
        """Claim pending rewards. Returns False when there was nothing to claim."""

        account = self.settings.account
        balances = await self.ledger.get_account(account)
        if not balances.has_pending:
            logger.info(f"@{account} has no pending rewards")
            return False

        await self.ledger.claim_reward_balance(
            account,
            balances.reward_hive,
            balances.reward_hbd,
            balances.reward_vests,
        )
        logger.info(
            f"@{account} claimed {balances.reward_hbd} {balances.reward_hive} {balances.reward_vests}"
        )
        return True

    async def locate_pool(self) -> RewardPool:
        """
        Find the author reward of the post the pointer names.

        Without a pointer the most recent author reward is used with week 0.
        History is scanned backward page by page; a history boundary restarts
        the page at the sequence the node reports, a bounded number of times.

        Raises:
            PoolUnresolved: No matching author reward in the scanned history
        """

        account = self.settings.account
        pointer = self.store.pointer()
        link = pointer.link if pointer else None

        start = -1
        pages = 0
        boundary_retries = 0
        while pages < self.settings.history_max_pages:
            limit = self.settings.history_page_size
            if start >= 0:
                limit = min(limit, start + 1)
            try:
                history = await self.ledger.get_account_history(
                    account, start, limit, *AUTHOR_REWARD_FILTER
                )
            except HistoryBoundaryError as exc:
                if boundary_retries >= self.settings.history_boundary_retries:
                    logger.warning(f"Giving up after {boundary_retries} history boundary retries")
                    break
                boundary_retries += 1
                logger.info(f"History ends at sequence {exc.resume_sequence}, resuming there")
                start = exc.resume_sequence
                continue
            pages += 1

            rewards = sorted(
                (e for e in history if e.op_type == "author_reward"),
                key=lambda e: e.sequence,
                reverse=True,
            )
            if pointer is None and rewards:
                return self._pool_from(rewards[0], week=0)
            for entry in rewards:
                if entry.permlink == link:
                    return self._pool_from(entry, week=pointer.week)

            if not history:
                break
            oldest = min(e.sequence for e in history)
            if oldest <= 0:
                break
            start = oldest - 1

        raise PoolUnresolved(link)

    def _pool_from(self, entry, week: int) -> RewardPool:
        payout = Asset.parse(entry.payload.get("hbd_payout", f"0.000 {CURRENCY}"))
        logger.info(f"Reward pool is {payout} for @{self.settings.account}/{entry.permlink}")
        return RewardPool(
            amount=payout.amount,
            week=week,
            permlink=entry.permlink,
            sequence=entry.sequence,
        )

    def rank(self, report: CycleReport) -> None:
        """Compute the rewards table and the time winners.

        Raises:
            EmptyLeaderboard: No score was recorded this week
        """

        scores = self.store.scores()
        if not scores:
            raise EmptyLeaderboard("the users table is empty")

        report.rewards = allocate_rewards(calculate_shares(scores), report.pool.amount)
        report.time_winners = rank_times(self.store.times())

        logger.info("Rewards table")
        for rank, entry in enumerate(report.rewards, start=1):
            logger.info(
                f"  {rank:>2} @{entry.username} {format_number(entry.highscore)} "
                f"{entry.share:.2f}% {entry.reward:.3f} {CURRENCY}"
            )
        logger.info(f"{len(report.time_winners)} best time(s) this week")

    def _token_transfer(self, to: str, memo: str) -> Dict[str, Any]:
        return {
            "contractName": "tokens",
            "contractAction": "transfer",
            "contractPayload": {
                "symbol": self.settings.token_symbol,
                "to": to,
                "quantity": self.settings.token_quantity,
                "memo": memo,
            },
        }

    async def dispatch(self, report: CycleReport) -> None:
        """Currency transfers one by one, then the score and time token batches."""

        account = self.settings.account
        symbol = self.settings.token_symbol

        for entry in report.rewards:
            if not entry.payable:
                continue
            amount = Asset(amount=entry.reward, symbol=CURRENCY)
            memo = f"@{account} weekly reward for high score of {format_number(entry.highscore)}"
            tx_id = await self.ledger.transfer(account, entry.username, amount, memo)
            report.transfers.append({"to": entry.username, "amount": str(amount), "tx_id": tx_id})
            logger.info(f"Sent {amount} to @{entry.username} - {tx_id}")

        score_batch = [
            self._token_transfer(
                entry.username,
                f"@{account} {symbol} reward for highscore of {format_number(entry.highscore)}",
            )
            for entry in report.rewards
        ]
        tx_id = await self.ledger.custom_json(
            [account], [], self.settings.token_contract_id, score_batch
        )
        report.token_batches.append(tx_id)
        logger.info(f"Sent {self.settings.token_quantity} {symbol} to each of the top scores - {tx_id}")

        if not report.time_winners:
            return
        time_batch = [
            self._token_transfer(
                winner.username,
                f"@{account} {symbol} token reward for completing {self.settings.game_name} "
                f"with a time of {winner.time} seconds",
            )
            for winner in report.time_winners
        ]
        tx_id = await self.ledger.custom_json(
            [account], [], self.settings.token_contract_id, time_batch
        )
        report.token_batches.append(tx_id)
        logger.info(f"Sent {self.settings.token_quantity} {symbol} to each of the best times - {tx_id}")

    async def publish(self, report: CycleReport) -> str:
        """Broadcast the announcement post and return its permlink."""

        account = self.settings.account
        permlink = self.settings.permlink(report.week)
        body = render_post(
            self.template, report.rewards, report.time_winners, self.settings.token_label
        )
        metadata = post_metadata(
            self.settings.app_name,
            self.settings.tags,
            f"This week's {self.settings.game_name} rewards!",
            self.settings.images,
        )
        report.post_id = await self.ledger.post_comment(
            "",
            self.settings.community_tag,
            account,
            permlink,
            self.settings.title.format(week=report.week),
            body,
            metadata,
        )
        report.permlink = permlink
        logger.info(f"Posted weekly rewards @{account}/{permlink} - {report.post_id}")
        return permlink

    def rotate(self, report: CycleReport) -> None:
        """Point at the new post, then wipe the weekly score and time tables."""

        self.store.save_pointer(report.permlink, report.week)
        logger.info(f"Updated link to {report.permlink} (week {report.week})")
        self.store.clear_leaderboards()
        logger.info("Cleared weekly scores and times")


__all__ = [
    "CURRENCY",
    "CycleReport",
    "CyclePhase",
    "CycleResult",
    "RewardCycleEngine",
    "RewardPool",
    "RewardSettings",
]
