"""
Pytest configuration and shared fixtures.
"""

import copy
import logging
import sys
import time
from pathlib import Path

import pytest
import structlog
from kubernetes import client
from kubernetes.client.rest import ApiException


# Add app directory to path
APP_DIR = Path(__file__).parent.parent / "app"
sys.path.insert(0, str(APP_DIR))


HAPPY_EXPOSITION = (
    "# HELP metallb_k8s_client_config_loaded_bool 1 if the MetalLB configuration was successfully loaded at least once.\n"
    "# TYPE metallb_k8s_client_config_loaded_bool gauge\n"
    "metallb_k8s_client_config_loaded_bool 1\n"
    "# HELP metallb_k8s_client_config_stale_bool 1 if running on a stale configuration, because the latest config failed to load.\n"
    "# TYPE metallb_k8s_client_config_stale_bool gauge\n"
    "metallb_k8s_client_config_stale_bool 0\n"
    'metallb_allocator_addresses_in_use_total{pool="default"} 3\n'
)


class FakeCoreV1Api:
    """
    In-memory stand-in for the ConfigMap endpoints of CoreV1Api.

    Objects are deep-copied on the way in and out like a real API server,
    and replace enforces resourceVersion so stale writes get 409.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str], client.V1ConfigMap] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.request_timeouts: list = []
        self.read_delay = 0.0
        self._version = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def seed(self, namespace: str, name: str, data=None) -> client.V1ConfigMap:
        obj = client.V1ConfigMap(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                resource_version=self._next_version(),
            ),
            data=data,
        )
        self.objects[(namespace, name)] = obj
        return obj

    def get(self, namespace: str, name: str) -> client.V1ConfigMap:
        return self.objects[(namespace, name)]

    @property
    def writes(self) -> list[tuple[str, str, str]]:
        return [c for c in self.calls if c[0] in ("create", "replace")]

    def read_namespaced_config_map(self, name, namespace, **kwargs):
        self.calls.append(("read", namespace, name))
        self.request_timeouts.append(kwargs.get("_request_timeout"))
        if self.read_delay:
            time.sleep(self.read_delay)
        if (namespace, name) not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(self.objects[(namespace, name)])

    def create_namespaced_config_map(self, namespace, body, **kwargs):
        name = body.metadata.name
        self.calls.append(("create", namespace, name))
        self.request_timeouts.append(kwargs.get("_request_timeout"))
        if (namespace, name) in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        stored = copy.deepcopy(body)
        stored.metadata.resource_version = self._next_version()
        self.objects[(namespace, name)] = stored
        return copy.deepcopy(stored)

    def replace_namespaced_config_map(self, name, namespace, body, **kwargs):
        self.calls.append(("replace", namespace, name))
        self.request_timeouts.append(kwargs.get("_request_timeout"))
        current = self.objects.get((namespace, name))
        if current is None:
            raise ApiException(status=404, reason="Not Found")
        if body.metadata.resource_version != current.metadata.resource_version:
            raise ApiException(status=409, reason="Conflict")
        stored = copy.deepcopy(body)
        stored.metadata.resource_version = self._next_version()
        self.objects[(namespace, name)] = stored
        return copy.deepcopy(stored)


@pytest.fixture
def fake_api() -> FakeCoreV1Api:
    return FakeCoreV1Api()


@pytest.fixture
def reset_logging():
    """Undo setup_logging() after a test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    structlog.reset_defaults()


@pytest.fixture
def happy_exposition() -> str:
    return HAPPY_EXPOSITION
