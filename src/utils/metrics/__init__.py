"""
Prometheus metrics for statmerge

Usage:
    from utils.metrics import MergeMetrics, MetricsPublisher

    metrics = MergeMetrics()
    MetricsPublisher(port=9108).start()
    metrics.record_table_merge("statistics", imported=120, duplicates=3, dropped=0)
"""

from .merge import MergeMetrics
from .publisher import MetricsPublisher

__all__ = [
    "MergeMetrics",
    "MetricsPublisher",
]
