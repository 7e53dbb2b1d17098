"""
Metrics scraping.

This module handles:
- Fetching the exposition from the metrics endpoint
- Indexing it by metric name
- Projecting the configuration gauges to a HealthSample
"""

from metallb_health.scrape.parser import (
    CONFIG_LOADED_METRIC,
    CONFIG_STALE_METRIC,
    build_metric_index,
    extract_health_sample,
    parse_bool,
    parse_exposition,
)
from metallb_health.scrape.reader import (
    DEFAULT_METRICS_ENDPOINT,
    MetricsReader,
    create_reader,
)

__all__ = [
    "CONFIG_LOADED_METRIC",
    "CONFIG_STALE_METRIC",
    "DEFAULT_METRICS_ENDPOINT",
    "build_metric_index",
    "extract_health_sample",
    "parse_bool",
    "parse_exposition",
    "MetricsReader",
    "create_reader",
]
