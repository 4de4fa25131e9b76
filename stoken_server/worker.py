"""
Reward worker
Runs the weekly reward cycle against Hive and the score store.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from typing import List, Optional

from .core import (
    DB_RESET,
    HIVE_NODES,
    HIVE_TIMEOUT,
    LOG_LEVEL,
    REWARD_CYCLE_INTERVAL,
    REWARD_RETRY_DELAY,
    engine,
)
from .core import require_env
from .errors import ConfigurationError, PersistenceError
from .ledger import HiveClient
from .services import CycleResult, RewardCycleEngine, RewardScheduler, RewardSettings, ScoreStore

logger = logging.getLogger("stoken_server.worker")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quest For Stoken weekly reward worker")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Log verbosity (default from LOG_LEVEL)")
    parser.add_argument("--interval", type=float, default=REWARD_CYCLE_INTERVAL,
                        help="Seconds to wait after a rotated cycle")
    parser.add_argument("--retry-delay", type=float, default=REWARD_RETRY_DELAY,
                        help="Seconds to wait after any other outcome")
    return parser.parse_args(argv)


def build_engine() -> RewardCycleEngine:
    """Wire the Hive client, score store and settings from the environment."""

    settings = RewardSettings.from_env()
    ledger = HiveClient(
        account=settings.account,
        posting_key=require_env("POSTING_KEY"),
        active_key=require_env("ACTIVE_KEY"),
        nodes=HIVE_NODES,
        timeout=HIVE_TIMEOUT,
    )
    store = ScoreStore(engine)
    store.create_tables(reset=DB_RESET)
    return RewardCycleEngine(ledger, store, settings)


async def run(args: argparse.Namespace) -> int:
    reward_engine = build_engine()

    if args.once:
        report = await reward_engine.run_cycle()
        logger.info(f"Cycle result: {report.result.value}")
        return 1 if report.result is CycleResult.FAILED else 0

    scheduler = RewardScheduler(reward_engine, interval=args.interval, retry_delay=args.retry_delay)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except NotImplementedError:  # pragma: no cover - Windows event loop
            pass
    await scheduler.run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except ConfigurationError as exc:
        logger.error(str(exc))
        return 2
    except PersistenceError as exc:
        logger.error(f"Score store unavailable: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
