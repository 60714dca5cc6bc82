"""
Performance Monitoring
Prometheus-based metrics collection for contract generation
"""

from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "MetricsCollector",
    "metrics_collector",
]
