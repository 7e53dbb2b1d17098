"""
Per-cycle driver.

One cycle scrapes the metrics endpoint and, if that produced a sample,
writes it to the health ConfigMap. The whole cycle runs under a single
deadline; errors are logged and reported in the CycleResult, never
retried within the cycle.
"""

import asyncio
import time

from metallb_health.cluster import HealthWriter
from metallb_health.scrape import MetricsReader
from metallb_health.types import (
    ClusterWriteError,
    CycleResult,
    CycleStatus,
    CycleTimeoutError,
    ScrapeError,
)
from metallb_health.utils import error_fields, get_logger

logger = get_logger(__name__)


class HealthBridge:
    """Couples a MetricsReader to a HealthWriter under a per-cycle deadline."""

    def __init__(
        self,
        reader: MetricsReader,
        writer: HealthWriter,
        timeout: float = 10.0,
    ):
        """
        Initialize the bridge.

        Args:
            reader: Metrics reader (async)
            writer: ConfigMap writer (blocking, run in a worker thread)
            timeout: Deadline in seconds covering scrape and write
        """
        self.reader = reader
        self.writer = writer
        self.timeout = timeout

    async def run_cycle(self) -> CycleResult:
        """
        Run one scrape-and-write cycle.

        Returns:
            CycleResult describing the outcome
        """
        started = time.monotonic()
        deadline = started + self.timeout

        try:
            result = await asyncio.wait_for(self._cycle(deadline), self.timeout)
        except (asyncio.TimeoutError, CycleTimeoutError):
            error = CycleTimeoutError(self.timeout)
            logger.error("cycle deadline exceeded", **error_fields(error))
            result = CycleResult(status=CycleStatus.TIMEOUT, error=error)

        result.duration = time.monotonic() - started
        return result

    async def _cycle(self, deadline: float) -> CycleResult:
        # deadline is on the time.monotonic() clock; the writer checks it
        # again before every API call it sends from its worker thread
        try:
            sample = await self.reader.read()
        except ScrapeError as e:
            logger.error("unable to get metrics", **error_fields(e))
            return CycleResult(status=CycleStatus.SCRAPE_ERROR, error=e)

        logger.info(
            "retrieved metrics",
            stale=sample.config_stale,
            loaded=sample.config_loaded,
        )

        try:
            operation = await asyncio.to_thread(self.writer.write, sample, deadline)
        except ClusterWriteError as e:
            logger.error("unable to write to health config map", **error_fields(e))
            return CycleResult(status=CycleStatus.WRITE_ERROR, sample=sample, error=e)

        logger.info("successfully wrote health to config map", operation=operation.value)
        return CycleResult(
            status=CycleStatus.SUCCESS,
            sample=sample,
            operation=operation,
        )
