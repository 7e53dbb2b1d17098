"""
Kubernetes client construction.

Configuration is discovered the way in-cluster workloads expect: the
service-account token and CA mounted into the pod when running inside the
cluster, otherwise a kubeconfig (KUBECONFIG or ~/.kube/config).
"""

from typing import Optional

from kubernetes import client, config

from metallb_health.types import ClusterConfigError
from metallb_health.utils import get_logger

logger = get_logger(__name__)


def load_cluster_config(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> client.ApiClient:
    """
    Build an API client from ambient configuration.

    An explicit kubeconfig path skips in-cluster discovery.

    Raises:
        ClusterConfigError: If no usable configuration is found
    """
    configuration = client.Configuration()

    if kubeconfig is None:
        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.info("using in-cluster configuration")
            return client.ApiClient(configuration)
        except config.ConfigException:
            logger.debug("not running in cluster, falling back to kubeconfig")

    try:
        config.load_kube_config(
            config_file=kubeconfig,
            context=context,
            client_configuration=configuration,
        )
    except (config.ConfigException, OSError) as e:
        raise ClusterConfigError(f"unable to create kubernetes client: {e}") from e

    logger.info("using kubeconfig", kubeconfig=kubeconfig, context=context)
    return client.ApiClient(configuration)


def create_core_api(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> client.CoreV1Api:
    """Create a CoreV1Api bound to the discovered cluster."""
    return client.CoreV1Api(load_cluster_config(kubeconfig, context))
