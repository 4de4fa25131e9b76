"""Drives reward cycles one after another until stopped."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..core.config import REWARD_CYCLE_INTERVAL, REWARD_RETRY_DELAY
from .rewards import CycleReport, RewardCycleEngine

logger = logging.getLogger("stoken_server.services.scheduler")


class RewardScheduler:
    """Runs a cycle, waits, runs the next one.

    The wait is ``interval`` seconds after a rotation and ``retry_delay``
    seconds after any other outcome. The next cycle is never started before
    the previous one settles. :meth:`stop` ends the loop at the next wait.
    """

    def __init__(
        self,
        engine: RewardCycleEngine,
        interval: float = REWARD_CYCLE_INTERVAL,
        retry_delay: float = REWARD_RETRY_DELAY,
    ):
        self.engine = engine
        self.interval = interval
        self.retry_delay = retry_delay
        self.cycles = 0
        self.last_report: Optional[CycleReport] = None
        self._stop = asyncio.Event()

    def next_delay(self, report: CycleReport) -> float:
        return self.interval if report.rotated else self.retry_delay

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Loop until :meth:`stop` is called or ``max_cycles`` cycles have run."""

        while not self._stop.is_set():
            report = await self.engine.run_cycle()
            self.cycles += 1
            self.last_report = report

            if max_cycles is not None and self.cycles >= max_cycles:
                break

            delay = self.next_delay(report)
            logger.info(f"Cycle ended ({report.result.value}); next attempt in {delay}s")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Reward scheduler stopped after {self.cycles} cycle(s)")


__all__ = ["RewardScheduler"]
