#!/usr/bin/env python3
"""
Functional tests for the per-cycle driver.

A real MetricsReader (mocked transport) and a real HealthWriter (fake
CoreV1Api) are wired through HealthBridge to verify whole cycles:
happy path, missing metrics, preservation, transport failure, deadlines
and cluster write failures, including the log records each one emits.
"""

import asyncio
import time

import httpx
import pytest
from kubernetes.client.rest import ApiException
from structlog.testing import capture_logs

from metallb_health.bridge import HealthBridge
from metallb_health.cluster import HealthWriter
from metallb_health.scrape import CONFIG_STALE_METRIC, MetricsReader
from metallb_health.types import (
    ClusterForbiddenError,
    CycleStatus,
    CycleTimeoutError,
    HealthSample,
    MetricMissingError,
    OperationResult,
    TransportError,
)

NS = "metallb-system"
NAME = "health"


def make_bridge(handler, api, timeout: float = 10.0) -> HealthBridge:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reader = MetricsReader(client)
    writer = HealthWriter(api)
    return HealthBridge(reader, writer, timeout=timeout)


def visible(logs: list[dict]) -> list[dict]:
    return [entry for entry in logs if entry["log_level"] != "debug"]


def events(logs: list[dict]) -> list[tuple[str, str]]:
    return [(entry["log_level"], entry["event"]) for entry in visible(logs)]


class TestCycle:
    """Whole-cycle scenarios."""

    @pytest.mark.asyncio
    async def test_happy_path(self, fake_api):
        body = (
            "metallb_k8s_client_config_loaded_bool 1\n"
            "metallb_k8s_client_config_stale_bool 0\n"
        )
        bridge = make_bridge(lambda request: httpx.Response(200, text=body), fake_api)

        with capture_logs() as logs:
            result = await bridge.run_cycle()

        assert result.status == CycleStatus.SUCCESS
        assert result.success
        assert result.sample == HealthSample(config_loaded=True, config_stale=False)
        assert result.operation == OperationResult.CREATED
        assert result.duration >= 0
        assert fake_api.get(NS, NAME).data == {
            "configLoaded": "true",
            "configStale": "false",
        }

        assert events(logs) == [
            ("info", "retrieved metrics"),
            ("info", "successfully wrote health to config map"),
        ]
        assert visible(logs)[0]["loaded"] is True
        assert visible(logs)[0]["stale"] is False

    @pytest.mark.asyncio
    async def test_missing_metric_writes_nothing(self, fake_api):
        body = "metallb_k8s_client_config_loaded_bool 1\n"
        bridge = make_bridge(lambda request: httpx.Response(200, text=body), fake_api)

        with capture_logs() as logs:
            result = await bridge.run_cycle()

        assert result.status == CycleStatus.SCRAPE_ERROR
        assert isinstance(result.error, MetricMissingError)
        assert result.error.name == CONFIG_STALE_METRIC
        assert fake_api.calls == []

        assert events(logs) == [("error", "unable to get metrics")]
        assert visible(logs)[0]["error_kind"] == "MetricMissingError"
        assert CONFIG_STALE_METRIC in logs[0]["error"]

    @pytest.mark.asyncio
    async def test_comments_and_blanks(self, fake_api):
        body = (
            "# HELP metallb_k8s_client_config_loaded_bool loaded\n"
            "\n"
            "  metallb_k8s_client_config_loaded_bool   true  \n"
            "metallb_k8s_client_config_stale_bool false\n"
        )
        bridge = make_bridge(lambda request: httpx.Response(200, text=body), fake_api)

        result = await bridge.run_cycle()

        assert result.success
        assert result.sample == HealthSample(True, False)

    @pytest.mark.asyncio
    async def test_preserves_existing_keys(self, fake_api):
        fake_api.seed(NS, NAME, {"foo": "bar"})
        body = (
            "metallb_k8s_client_config_loaded_bool 1\n"
            "metallb_k8s_client_config_stale_bool 1\n"
        )
        bridge = make_bridge(lambda request: httpx.Response(200, text=body), fake_api)

        result = await bridge.run_cycle()

        assert result.operation == OperationResult.UPDATED
        assert fake_api.get(NS, NAME).data == {
            "foo": "bar",
            "configLoaded": "true",
            "configStale": "true",
        }

    @pytest.mark.asyncio
    async def test_back_to_back_cycles_are_idempotent(self, fake_api, happy_exposition):
        bridge = make_bridge(
            lambda request: httpx.Response(200, text=happy_exposition), fake_api
        )

        first = await bridge.run_cycle()
        data = dict(fake_api.get(NS, NAME).data)
        second = await bridge.run_cycle()

        assert first.success and second.success
        assert second.operation == OperationResult.UNCHANGED
        assert fake_api.get(NS, NAME).data == data

    @pytest.mark.asyncio
    async def test_later_cycle_overwrites_earlier(self, fake_api):
        bodies = iter(
            [
                "metallb_k8s_client_config_loaded_bool 1\nmetallb_k8s_client_config_stale_bool 0\n",
                "metallb_k8s_client_config_loaded_bool 1\nmetallb_k8s_client_config_stale_bool 1\n",
            ]
        )
        bridge = make_bridge(
            lambda request: httpx.Response(200, text=next(bodies)), fake_api
        )

        await bridge.run_cycle()
        await bridge.run_cycle()

        assert fake_api.get(NS, NAME).data["configStale"] == "true"

    @pytest.mark.asyncio
    async def test_transport_failure(self, fake_api):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        bridge = make_bridge(handler, fake_api)

        with capture_logs() as logs:
            result = await bridge.run_cycle()

        assert result.status == CycleStatus.SCRAPE_ERROR
        assert isinstance(result.error, TransportError)
        assert fake_api.calls == []
        assert events(logs) == [("error", "unable to get metrics")]
        assert visible(logs)[0]["error_kind"] == "TransportError"

    @pytest.mark.asyncio
    async def test_deadline_then_recovery(self, fake_api, happy_exposition):
        stalled = True

        async def handler(request: httpx.Request) -> httpx.Response:
            if stalled:
                await asyncio.sleep(30)
            return httpx.Response(200, text=happy_exposition)

        bridge = make_bridge(handler, fake_api, timeout=0.2)

        started = time.monotonic()
        with capture_logs() as logs:
            result = await bridge.run_cycle()
        elapsed = time.monotonic() - started

        assert result.status == CycleStatus.TIMEOUT
        assert isinstance(result.error, CycleTimeoutError)
        assert elapsed < 2.0
        assert fake_api.calls == []
        assert events(logs) == [("error", "cycle deadline exceeded")]

        stalled = False
        result = await bridge.run_cycle()

        assert result.success
        assert fake_api.get(NS, NAME).data["configLoaded"] == "true"

    @pytest.mark.asyncio
    async def test_write_receives_remaining_deadline(self, fake_api, happy_exposition):
        bridge = make_bridge(
            lambda request: httpx.Response(200, text=happy_exposition),
            fake_api,
            timeout=5.0,
        )

        await bridge.run_cycle()

        read_timeout, create_timeout = fake_api.request_timeouts
        assert 0 < create_timeout <= read_timeout <= 5.0

    @pytest.mark.asyncio
    async def test_stalled_cluster_read_never_writes_after_deadline(
        self, fake_api, happy_exposition
    ):
        fake_api.read_delay = 0.4
        bridge = make_bridge(
            lambda request: httpx.Response(200, text=happy_exposition),
            fake_api,
            timeout=0.3,
        )

        with capture_logs() as logs:
            result = await bridge.run_cycle()

        assert result.status == CycleStatus.TIMEOUT
        assert events(logs)[-1] == ("error", "cycle deadline exceeded")

        # Let the abandoned worker thread finish its stalled read
        await asyncio.sleep(0.4)

        assert fake_api.writes == []
        assert fake_api.objects == {}

    @pytest.mark.asyncio
    async def test_cluster_write_failure(self, fake_api, happy_exposition):
        def forbidden(*args, **kwargs):
            raise ApiException(status=403, reason="Forbidden")

        fake_api.read_namespaced_config_map = forbidden
        bridge = make_bridge(
            lambda request: httpx.Response(200, text=happy_exposition), fake_api
        )

        with capture_logs() as logs:
            result = await bridge.run_cycle()

        assert result.status == CycleStatus.WRITE_ERROR
        assert result.sample == HealthSample(True, False)
        assert isinstance(result.error, ClusterForbiddenError)
        assert events(logs) == [
            ("info", "retrieved metrics"),
            ("error", "unable to write to health config map"),
        ]
        assert visible(logs)[1]["error_kind"] == "ClusterForbiddenError"
