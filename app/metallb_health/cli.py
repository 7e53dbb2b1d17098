"""
Command line entry point.
"""

import argparse
import asyncio
from typing import Optional

from pydantic import ValidationError

from metallb_health import __version__
from metallb_health.cluster import create_core_api
from metallb_health.config import load_config
from metallb_health.service import run_once, run_service
from metallb_health.types import ClusterConfigError
from metallb_health.utils import error_fields, get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Publish MetalLB configuration health into a ConfigMap",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run continuously (in-cluster)
  metallb-health

  # Single cycle against a local cluster
  KUBECONFIG=~/.kube/config metallb-health --once
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"metallb-health {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        help="Configuration directory path (default: /etc/metallb-health/)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (overrides config)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit non-zero if it failed",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config_dir)
    except ValidationError as e:
        setup_logging(args.log_level or "info")
        logger.error("invalid configuration", **error_fields(e))
        return 1

    setup_logging(args.log_level or config.logging.level)

    try:
        api = create_core_api(config.cluster.kubeconfig, config.cluster.context)
    except ClusterConfigError as e:
        logger.error("unable to create kubernetes client", **error_fields(e))
        return 1

    try:
        if args.once:
            result = asyncio.run(run_once(config, api))
            return 0 if result.success else 1

        asyncio.run(run_service(config, api))
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        api.api_client.close()

    return 0
