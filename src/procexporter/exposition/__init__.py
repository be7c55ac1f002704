"""
Prometheus exposition of process group metrics.

Renders aggregation results as prometheus_client metric families and
serves them over HTTP.
"""

from .metrics import ProcMetricsCollector
from .server import make_exporter_app, make_exporter_server

__all__ = [
    "ProcMetricsCollector",
    "make_exporter_app",
    "make_exporter_server",
]
