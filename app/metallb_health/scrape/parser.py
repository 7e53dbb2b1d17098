"""
Minimal Prometheus text exposition parser.

Only bare `name value` samples are understood. Labels, timestamps, types
and help text are of no interest here: the bridge consults exactly two
unlabelled boolean gauges, so the exposition is reduced to a
last-write-wins mapping of metric name to raw value token.
"""

from metallb_health.types import (
    HealthSample,
    MetricMissingError,
    MetricUnparseableError,
)

CONFIG_LOADED_METRIC = "metallb_k8s_client_config_loaded_bool"
CONFIG_STALE_METRIC = "metallb_k8s_client_config_stale_bool"

TRUE_TOKENS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_TOKENS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def build_metric_index(text: str) -> dict[str, str]:
    """
    Index an exposition by metric name.

    Each line is stripped, comments and blank lines are skipped, and the
    line is cut at the first space into name and value. Lines without a
    space are ignored. Later samples of the same name win.

    Args:
        text: Exposition body

    Returns:
        Mapping of metric name to the raw remainder of its line
    """
    index: dict[str, str] = {}

    for line in text.split("\n"):
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        name, sep, value = line.partition(" ")
        if not sep:
            continue

        index[name] = value

    return index


def parse_bool(token: str) -> bool:
    """
    Parse a boolean token.

    Accepts 1, t, T, TRUE, true, True and 0, f, F, FALSE, false, False.

    Raises:
        ValueError: If the token is none of those
    """
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise ValueError(f"invalid boolean token: {token!r}")


def read_bool_metric(index: dict[str, str], name: str) -> bool:
    """Resolve a boolean metric from an index built by build_metric_index."""
    try:
        raw = index[name]
    except KeyError:
        raise MetricMissingError(name) from None

    try:
        return parse_bool(raw.strip())
    except ValueError:
        raise MetricUnparseableError(name, raw) from None


def extract_health_sample(index: dict[str, str]) -> HealthSample:
    """
    Project the two configuration gauges into a HealthSample.

    The loaded gauge is resolved first, so when both are absent the error
    names the loaded gauge.
    """
    config_loaded = read_bool_metric(index, CONFIG_LOADED_METRIC)
    config_stale = read_bool_metric(index, CONFIG_STALE_METRIC)
    return HealthSample(config_loaded=config_loaded, config_stale=config_stale)


def parse_exposition(text: str) -> HealthSample:
    """Parse an exposition body straight into a HealthSample."""
    return extract_health_sample(build_metric_index(text))
