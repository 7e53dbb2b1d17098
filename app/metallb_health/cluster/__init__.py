"""
Cluster access.

This module handles:
- Discovering cluster credentials (in-cluster or kubeconfig)
- Create-or-update of the health ConfigMap
"""

from metallb_health.cluster.client import create_core_api, load_cluster_config
from metallb_health.cluster.writer import (
    DEFAULT_CONFIG_MAP,
    DEFAULT_NAMESPACE,
    HealthWriter,
    create_or_update,
    translate_api_error,
)

__all__ = [
    "DEFAULT_CONFIG_MAP",
    "DEFAULT_NAMESPACE",
    "HealthWriter",
    "create_core_api",
    "create_or_update",
    "load_cluster_config",
    "translate_api_error",
]
