"""
Configuration loader with YAML and environment variable support.

Priority (highest to lowest):
1. Environment variables: METALLB_HEALTH_SCHEDULE__INTERVAL_SECONDS=15
2. User config: --config-dir path / /etc/metallb-health/config.yaml
3. Built-in defaults: metallb_health/config/defaults/settings.yaml
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from metallb_health.config.models import HealthBridgeConfig
from metallb_health.utils import get_logger

logger = get_logger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path("/etc/metallb-health")
PACKAGE_DEFAULTS_DIR = Path(__file__).parent / "defaults"

# Environment variable prefix
ENV_PREFIX = "METALLB_HEALTH_"
ENV_DELIMITER = "__"


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or malformed."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if isinstance(content, dict) else {}
    except yaml.YAMLError as e:
        logger.warning("failed to parse config file", path=str(path), error=str(e))
        return {}


def _get_env_overrides(environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Environment variables are expected in the format:
    METALLB_HEALTH_SECTION__KEY=value

    METALLB_HEALTH_METRICS__ENDPOINT=http://10.0.0.1:7472/metrics
        -> {"metrics": {"endpoint": "http://10.0.0.1:7472/metrics"}}

    Values stay strings; the pydantic models coerce them to the field types.
    """
    overrides: dict[str, Any] = {}
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        key_path = key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER)
        if not all(key_path):
            continue

        current = overrides
        for part in key_path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[key_path[-1]] = value

    return overrides


def load_config(
    config_dir: Optional[str | Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> HealthBridgeConfig:
    """
    Load configuration from multiple sources.

    Args:
        config_dir: Optional path to configuration directory.
                   If not provided, uses /etc/metallb-health/
        environ: Environment to read overrides from (defaults to os.environ)

    Returns:
        HealthBridgeConfig: Validated configuration object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    config_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "settings.yaml")

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    user_config = _load_yaml_file(user_config_dir / "config.yaml")
    config_data = _deep_merge(config_data, user_config)

    config_data = _deep_merge(config_data, _get_env_overrides(environ))

    return HealthBridgeConfig.model_validate(config_data)
