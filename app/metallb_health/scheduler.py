"""
Fixed-rate job scheduler.

Runs one async job on every interval tick, measured from start on the
event loop clock. A tick that arrives while the previous run is still in
flight is skipped, so the job is never re-entered. Job failures are
logged and the schedule continues.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from metallb_health.utils import get_logger

logger = get_logger(__name__)


class Scheduler:
    """Runs a single job every `interval` seconds until stopped."""

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval: float = 30.0,
        name: str = "health-cycle",
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.job = job
        self.interval = interval
        self.name = name
        self.runs = 0
        self.skipped = 0
        self._stopping = asyncio.Event()
        self._current: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        """Whether a job run is in flight."""
        return self._current is not None and not self._current.done()

    def stop(self) -> None:
        """Ask the scheduler to stop after draining the in-flight run."""
        self._stopping.set()

    async def run(self) -> None:
        """Run until stop() is called. The first tick fires immediately."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        logger.info("scheduler started", job=self.name, interval=self.interval)

        try:
            while not self._stopping.is_set():
                if self.busy:
                    self.skipped += 1
                    logger.warning("previous run still in progress, skipping tick", job=self.name)
                else:
                    self._current = asyncio.create_task(self._run_job())

                now = loop.time()
                next_tick += self.interval
                while next_tick <= now:
                    next_tick += self.interval

                try:
                    await asyncio.wait_for(self._stopping.wait(), next_tick - now)
                except asyncio.TimeoutError:
                    pass

            if self.busy:
                logger.info("waiting for in-flight run to finish", job=self.name)
                await self._current
        finally:
            if self.busy:
                self._current.cancel()
                await asyncio.gather(self._current, return_exceptions=True)
            logger.info("scheduler stopped", job=self.name, runs=self.runs, skipped=self.skipped)

    async def _run_job(self) -> None:
        self.runs += 1
        try:
            await self.job()
        except Exception:
            logger.exception("scheduled job failed", job=self.name)
