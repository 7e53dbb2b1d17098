"""
Configuration system for the health bridge.

Exports:
    HealthBridgeConfig: Main configuration container
    load_config: Load configuration from YAML/env
"""

from metallb_health.config.models import (
    ClusterSettings,
    HealthBridgeConfig,
    LoggingSettings,
    MetricsSettings,
    ScheduleSettings,
)
from metallb_health.config.loader import load_config

__all__ = [
    "HealthBridgeConfig",
    "MetricsSettings",
    "ClusterSettings",
    "ScheduleSettings",
    "LoggingSettings",
    "load_config",
]
