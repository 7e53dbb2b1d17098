"""
MetalLB Health Bridge.

Scrapes the MetalLB controller/speaker metrics endpoint and publishes the
configuration health gauges into a ConfigMap so cluster tooling can read
them without talking to Prometheus.
"""

__version__ = "0.1.0"
