"""
Type definitions for the health bridge.

This module defines the data structures and exceptions shared by the
metrics reader, the ConfigMap writer and the cycle driver.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class HealthSample:
    """
    Configuration health observed in a single scrape.

    Attributes:
        config_loaded: Value of metallb_k8s_client_config_loaded_bool
        config_stale: Value of metallb_k8s_client_config_stale_bool
    """

    config_loaded: bool
    config_stale: bool

    def to_data(self) -> dict[str, str]:
        """Render the sample as ConfigMap data entries."""
        return {
            "configLoaded": format_bool(self.config_loaded),
            "configStale": format_bool(self.config_stale),
        }


def format_bool(value: bool) -> str:
    """Canonical string form written to the ConfigMap."""
    return "true" if value else "false"


class OperationResult(str, Enum):
    """Outcome of a create-or-update against the cluster."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class CycleStatus(str, Enum):
    """Status of one scrape-and-write cycle."""

    SUCCESS = "success"
    SCRAPE_ERROR = "scrape_error"
    WRITE_ERROR = "write_error"
    TIMEOUT = "timeout"


@dataclass
class CycleResult:
    """
    Result of a cycle.

    Attributes:
        status: Cycle status
        sample: The scraped sample (None if the scrape failed)
        operation: What the upsert did (None unless the write succeeded)
        error: The error that ended the cycle, if any
        duration: Wall time spent in the cycle, in seconds
    """

    status: CycleStatus
    sample: Optional[HealthSample] = None
    operation: Optional[OperationResult] = None
    error: Optional[Exception] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == CycleStatus.SUCCESS


class HealthBridgeError(Exception):
    """Base exception for health bridge errors."""

    pass


# Scrape errors


class ScrapeError(HealthBridgeError):
    """Raised when the metrics endpoint cannot produce a sample."""

    pass


class RequestBuildError(ScrapeError):
    """Raised when the metrics request cannot be built (bad URL etc.)."""

    pass


class TransportError(ScrapeError):
    """Raised when the request to the metrics endpoint fails."""

    pass


class BodyReadError(ScrapeError):
    """Raised when the response body cannot be read."""

    pass


class BadStatusError(ScrapeError):
    """Raised for non-2xx responses when status checking is enabled."""

    def __init__(self, status_code: int):
        super().__init__(f"metrics endpoint returned HTTP {status_code}")
        self.status_code = status_code


class MetricMissingError(ScrapeError):
    """Raised when a required metric is absent from the exposition."""

    def __init__(self, name: str):
        super().__init__(f"metric not found in response: {name!r}")
        self.name = name


class MetricUnparseableError(ScrapeError):
    """Raised when a required metric's value is not a boolean."""

    def __init__(self, name: str, value: str):
        super().__init__(f"unable to parse bool for {name!r}: {value!r}")
        self.name = name
        self.value = value


# Cluster errors


class ClusterConfigError(HealthBridgeError):
    """Raised when no usable cluster client configuration can be found."""

    pass


class ClusterWriteError(HealthBridgeError):
    """Base exception for failures writing the health ConfigMap."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ClusterUnreachableError(ClusterWriteError):
    """Raised when the API server cannot be reached."""

    pass


class ClusterForbiddenError(ClusterWriteError):
    """Raised when the API server rejects our credentials."""

    pass


class ClusterConflictError(ClusterWriteError):
    """Raised when the ConfigMap changed between read and write."""

    pass


class ClusterUnknownError(ClusterWriteError):
    """Raised for any other API failure."""

    pass


class CycleTimeoutError(HealthBridgeError):
    """Raised when a cycle exceeds its deadline."""

    def __init__(self, timeout: Optional[float] = None):
        if timeout is None:
            super().__init__("cycle deadline exceeded")
        else:
            super().__init__(f"cycle deadline exceeded after {timeout}s")
        self.timeout = timeout
