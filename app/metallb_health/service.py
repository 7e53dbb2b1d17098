"""
Service wiring.

Builds the reader, writer, bridge and scheduler from configuration and
runs them until a termination signal arrives.
"""

import asyncio
import signal

import httpx
from kubernetes import client

from metallb_health import __version__
from metallb_health.bridge import HealthBridge
from metallb_health.cluster import HealthWriter
from metallb_health.config import HealthBridgeConfig
from metallb_health.scheduler import Scheduler
from metallb_health.scrape import create_reader
from metallb_health.types import CycleResult
from metallb_health.utils import get_logger

logger = get_logger(__name__)

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def build_bridge(
    config: HealthBridgeConfig,
    api: client.CoreV1Api,
    http_client: httpx.AsyncClient,
) -> HealthBridge:
    """Assemble a HealthBridge from configuration and shared clients."""
    reader = create_reader(
        endpoint=config.metrics.endpoint,
        require_success_status=config.metrics.require_success_status,
        client=http_client,
    )
    writer = HealthWriter(
        api,
        namespace=config.cluster.namespace,
        name=config.cluster.config_map,
    )
    return HealthBridge(reader, writer, timeout=config.schedule.timeout_seconds)


def install_signal_handlers(scheduler: Scheduler) -> None:
    """Stop the scheduler on SIGTERM/SIGINT."""
    loop = asyncio.get_running_loop()

    def handle_stop(signame: str) -> None:
        logger.info("received signal, shutting down", signal=signame)
        scheduler.stop()

    for sig in STOP_SIGNALS:
        try:
            loop.add_signal_handler(sig, handle_stop, sig.name)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or not in the main thread
            logger.debug("signal handler not installed", signal=sig.name)


def remove_signal_handlers() -> None:
    loop = asyncio.get_running_loop()
    for sig in STOP_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
        except (NotImplementedError, RuntimeError):
            pass


async def run_service(config: HealthBridgeConfig, api: client.CoreV1Api) -> None:
    """Run cycles on schedule until SIGTERM/SIGINT."""
    async with httpx.AsyncClient(timeout=config.schedule.timeout_seconds) as http_client:
        bridge = build_bridge(config, api, http_client)
        scheduler = Scheduler(bridge.run_cycle, interval=config.schedule.interval_seconds)

        logger.info(
            "starting health bridge",
            version=__version__,
            endpoint=config.metrics.endpoint,
            namespace=config.cluster.namespace,
            config_map=config.cluster.config_map,
        )

        install_signal_handlers(scheduler)
        try:
            await scheduler.run()
        finally:
            remove_signal_handlers()


async def run_once(config: HealthBridgeConfig, api: client.CoreV1Api) -> CycleResult:
    """Run a single cycle and return its result."""
    async with httpx.AsyncClient(timeout=config.schedule.timeout_seconds) as http_client:
        bridge = build_bridge(config, api, http_client)
        return await bridge.run_cycle()
