"""Data toolkit for the LMP details panel of an LMP observability dashboard."""

from lmp_details.metrics.deriver import (
    AggregateStats,
    InvocationMetrics,
    InvocationMetricsDeriver,
    MetricPoint,
    derive_metrics,
)
from lmp_details.panel.assembler import LMPDetailsPanel, PanelAssembler, load_panel
from lmp_details.records.invocations import InvocationRecord, Invocations
from lmp_details.records.lmps import LMP

__all__ = [
    "LMP",
    "AggregateStats",
    "InvocationMetrics",
    "InvocationMetricsDeriver",
    "InvocationRecord",
    "Invocations",
    "LMPDetailsPanel",
    "MetricPoint",
    "PanelAssembler",
    "derive_metrics",
    "load_panel",
]

__version__ = "0.1.0"
