"""
Pydantic models for bridge configuration.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetricsSettings(BaseModel):
    """Metrics endpoint settings."""

    endpoint: str = Field(
        default="http://localhost:7472/metrics",
        description="Prometheus endpoint exposing the MetalLB gauges",
    )
    require_success_status: bool = Field(
        default=False,
        description="Reject non-2xx responses instead of parsing any body",
    )


class ClusterSettings(BaseModel):
    """Target ConfigMap and client discovery settings."""

    namespace: str = Field(
        default="metallb-system",
        min_length=1,
        description="Namespace of the health ConfigMap",
    )
    config_map: str = Field(
        default="health",
        min_length=1,
        description="Name of the health ConfigMap",
    )
    kubeconfig: Optional[str] = Field(
        default=None,
        description="Explicit kubeconfig path (skips in-cluster discovery)",
    )
    context: Optional[str] = Field(
        default=None,
        description="Kubeconfig context to use",
    )


class ScheduleSettings(BaseModel):
    """Cycle timing."""

    interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Time between cycle starts",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline covering the scrape and the write of one cycle",
    )


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level",
    )


class HealthBridgeConfig(BaseModel):
    """
    Main configuration container.

    Loaded from YAML files and environment variables, then passed to the
    bridge components explicitly.
    """

    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    cluster: ClusterSettings = Field(default_factory=ClusterSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Allow extra fields to be ignored (forward compatibility)
    model_config = ConfigDict(extra="ignore")
