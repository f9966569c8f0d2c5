"""Panel assembly and display formatting."""

from lmp_details.panel.assembler import (
    LMPDetailsPanel,
    MetricChart,
    NavLink,
    PanelAssembler,
    StatItem,
    VersionBadge,
    VersionEntry,
    filter_uses,
    load_panel,
    version_labels,
)
from lmp_details.panel.formatting import format_latency, time_ago

__all__ = [
    "LMPDetailsPanel",
    "MetricChart",
    "NavLink",
    "PanelAssembler",
    "StatItem",
    "VersionBadge",
    "VersionEntry",
    "filter_uses",
    "format_latency",
    "load_panel",
    "time_ago",
    "version_labels",
]
