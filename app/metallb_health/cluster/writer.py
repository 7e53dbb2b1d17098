"""
Health ConfigMap writer.

Implements a declarative create-or-update against the Kubernetes API:
read the object, build an empty one if it does not exist, apply a mutation,
then create it or replace it (carrying the read resourceVersion so a
concurrent modification is rejected with 409 Conflict).
"""

import copy
import time
from collections.abc import Callable
from typing import Optional

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from metallb_health.types import (
    ClusterConflictError,
    ClusterForbiddenError,
    ClusterUnknownError,
    ClusterUnreachableError,
    ClusterWriteError,
    CycleTimeoutError,
    HealthSample,
    OperationResult,
)
from metallb_health.utils import get_logger

logger = get_logger(__name__)

DEFAULT_NAMESPACE = "metallb-system"
DEFAULT_CONFIG_MAP = "health"


def translate_api_error(error: Exception) -> ClusterWriteError:
    """Map a Kubernetes SDK failure onto the cluster error taxonomy."""
    if isinstance(error, ApiException):
        status = error.status or None
        message = f"{error.status} {error.reason}"
        if status in (401, 403):
            return ClusterForbiddenError(message, status)
        if status == 409:
            return ClusterConflictError(message, status)
        if status is None:
            return ClusterUnreachableError(f"api server unreachable: {error.reason}")
        return ClusterUnknownError(message, status)

    if isinstance(error, (urllib3.exceptions.HTTPError, ConnectionError)):
        return ClusterUnreachableError(f"api server unreachable: {error}")

    return ClusterUnknownError(f"{type(error).__name__}: {error}")


def _request_kwargs(deadline: Optional[float]) -> dict:
    """
    SDK keyword arguments for one call made before `deadline`.

    The request timeout is the time left until the deadline (time.monotonic()
    clock), recomputed for every call.

    Raises:
        CycleTimeoutError: If the deadline has already passed
    """
    if deadline is None:
        return {}
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise CycleTimeoutError()
    return {"_request_timeout": remaining}


def _read_config_map(
    api: client.CoreV1Api,
    namespace: str,
    name: str,
    deadline: Optional[float],
) -> Optional[client.V1ConfigMap]:
    """Read a ConfigMap, returning None if it does not exist."""
    try:
        return api.read_namespaced_config_map(name, namespace, **_request_kwargs(deadline))
    except ApiException as e:
        if e.status == 404:
            return None
        raise


def create_or_update(
    api: client.CoreV1Api,
    namespace: str,
    name: str,
    mutate: Callable[[client.V1ConfigMap], None],
    deadline: Optional[float] = None,
) -> OperationResult:
    """
    Create or update a ConfigMap.

    Args:
        api: CoreV1Api to talk to
        namespace: ConfigMap namespace
        name: ConfigMap name
        mutate: Called with the current (or freshly built) object; edits it in place
        deadline: Absolute time.monotonic() deadline; no call is sent after it
            and each call's request timeout is the time left until it

    Returns:
        OperationResult: CREATED, UPDATED, or UNCHANGED if the mutation
        left the data as it was

    Raises:
        ClusterWriteError: On any API failure
        CycleTimeoutError: If the deadline passes before a call is sent
    """
    try:
        config_map = _read_config_map(api, namespace, name, deadline)
        if config_map is None:
            config_map = client.V1ConfigMap(
                api_version="v1",
                kind="ConfigMap",
                metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            )
            mutate(config_map)
            api.create_namespaced_config_map(
                namespace, config_map, **_request_kwargs(deadline)
            )
            return OperationResult.CREATED

        before = copy.deepcopy(config_map.data)
        mutate(config_map)
        if config_map.data == before:
            return OperationResult.UNCHANGED

        api.replace_namespaced_config_map(
            name, namespace, config_map, **_request_kwargs(deadline)
        )
        return OperationResult.UPDATED
    except (ApiException, urllib3.exceptions.HTTPError, ConnectionError) as e:
        raise translate_api_error(e) from e


class HealthWriter:
    """
    Publishes HealthSamples into the health ConfigMap.

    Only the configLoaded and configStale keys are touched; any other
    entries in the ConfigMap are preserved.
    """

    def __init__(
        self,
        api: client.CoreV1Api,
        namespace: str = DEFAULT_NAMESPACE,
        name: str = DEFAULT_CONFIG_MAP,
    ):
        self.api = api
        self.namespace = namespace
        self.name = name

    def write(
        self,
        sample: HealthSample,
        deadline: Optional[float] = None,
    ) -> OperationResult:
        """
        Write a sample (blocking).

        Args:
            sample: Sample to publish
            deadline: Absolute time.monotonic() deadline for the whole upsert

        Raises:
            ClusterWriteError: On any API failure; never retried here
            CycleTimeoutError: If the deadline passes before the write is sent
        """

        def mutate(config_map: client.V1ConfigMap) -> None:
            if config_map.data is None:
                config_map.data = {}
            config_map.data.update(sample.to_data())

        result = create_or_update(
            self.api,
            self.namespace,
            self.name,
            mutate,
            deadline=deadline,
        )
        logger.debug(
            "health config map upserted",
            namespace=self.namespace,
            name=self.name,
            operation=result.value,
        )
        return result
