"""Metrics derived from invocation records."""

from lmp_details.metrics.deriver import (
    AggregateStats,
    InvocationMetrics,
    InvocationMetricsDeriver,
    MetricPoint,
    derive_metrics,
)

__all__ = [
    "AggregateStats",
    "InvocationMetrics",
    "InvocationMetricsDeriver",
    "MetricPoint",
    "derive_metrics",
]
