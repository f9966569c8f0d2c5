"""Assemble the renderable LMP details panel from records and derived metrics."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import pandas as pd

from lmp_details.config import ChartConfig, PanelConfig
from lmp_details.metrics.deriver import (
    InvocationMetrics,
    InvocationMetricsDeriver,
    MetricPoint,
    derive_metrics,
)
from lmp_details.panel.formatting import format_latency, time_ago
from lmp_details.records.invocations import InvocationRecord
from lmp_details.records.lmps import LMP

if TYPE_CHECKING:
    from lmp_details.sources import InvocationSource

logger = logging.getLogger(__name__)

NO_DEPENDENCIES = "No dependencies"


@dataclass(frozen=True)
class NavLink:
    """Navigable identity of an LMP version, with its one-based version number."""

    name: str
    lmp_id: str
    path: str
    version: int

    @classmethod
    def for_lmp(cls, lmp: LMP) -> NavLink:
        return cls(
            name=lmp.name,
            lmp_id=lmp.lmp_id,
            path=lmp.path,
            version=lmp.version_number + 1,
        )


@dataclass(frozen=True)
class VersionBadge:
    """Version badge content: one-based version number and the version hash."""

    version: int
    hash: str


@dataclass(frozen=True)
class StatItem:
    label: str
    value: str


@dataclass(frozen=True)
class MetricChart:
    """One chart: which series field to plot and how to present it.

    Attributes:
        data_key: `MetricPoint` field plotted on the value axis
            (`"count"` or `"latency_ms"`).
        config: Color, title and axis label for the renderer.
        series: Time-ordered points shared by every chart of the panel.
    """

    data_key: str
    config: ChartConfig
    series: tuple[MetricPoint, ...]

    def to_dataframe(self) -> pd.DataFrame:
        """Two-column (`timestamp`, `data_key`) frame for plotting."""
        return pd.DataFrame(
            {
                "timestamp": [p.timestamp for p in self.series],
                self.data_key: [getattr(p, self.data_key) for p in self.series],
            },
            columns=["timestamp", self.data_key],
        )


@dataclass(frozen=True)
class VersionEntry:
    """One row of the version-history list.

    Attributes:
        label: Positional label, `v{len(history) - index}`.
        version: Stored one-based version number, independent of position.
        link: Where the row navigates to.
        created: Relative creation time, e.g. `"2 days ago"`.
        commit_message: Change summary, if recorded.
        is_current: Whether this row is the version the panel is showing.
    """

    label: str
    version: int
    link: NavLink
    created: str
    commit_message: str | None
    is_current: bool


@dataclass(frozen=True)
class LMPDetailsPanel:
    """Everything the details side panel renders, already shaped for display."""

    lmp: LMP
    version_badge: VersionBadge
    stats: tuple[StatItem, ...]
    lm_kwargs_json: str | None
    uses: tuple[NavLink, ...]
    uses_placeholder: str | None
    charts: tuple[MetricChart, ...]
    version_history: tuple[VersionEntry, ...]
    metrics: InvocationMetrics

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable view of the panel."""
        return {
            "name": self.lmp.name,
            "lmp_id": self.lmp.lmp_id,
            "version_badge": {
                "version": self.version_badge.version,
                "hash": self.version_badge.hash,
            },
            "stats": [{"label": s.label, "value": s.value} for s in self.stats],
            "lm_kwargs_json": self.lm_kwargs_json,
            "uses": [
                {"name": u.name, "lmp_id": u.lmp_id, "path": u.path, "version": u.version}
                for u in self.uses
            ],
            "uses_placeholder": self.uses_placeholder,
            "charts": [
                {
                    "data_key": c.data_key,
                    "color_hex": c.config.color_hex,
                    "title": c.config.title,
                    "y_axis_label": c.config.y_axis_label,
                    "points": [
                        {"timestamp": p.timestamp.isoformat(), "value": getattr(p, c.data_key)}
                        for p in c.series
                    ],
                }
                for c in self.charts
            ],
            "version_history": [
                {
                    "label": v.label,
                    "version": v.version,
                    "path": v.link.path,
                    "created": v.created,
                    "commit_message": v.commit_message,
                    "is_current": v.is_current,
                }
                for v in self.version_history
            ],
        }


def filter_uses(uses: Iterable[LMP | None] | None) -> list[LMP]:
    """Drop absent dependency entries, keeping order and duplicates."""
    return [u for u in (uses or ()) if u is not None]


def version_labels(history_length: int) -> list[str]:
    """Positional labels for a newest-first history: `v{n}` down to `v1`."""
    return [f"v{history_length - index}" for index in range(history_length)]


class PanelAssembler:
    """Compose the details panel for one LMP.

    Args:
        config: Presentation settings; defaults to `PanelConfig()`.
        deriver: Metrics deriver; defaults to the shared process-wide one.
        format_time: Relative-time formatter for `created` values.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        *,
        deriver: InvocationMetricsDeriver | None = None,
        format_time: Callable[[datetime], str] = time_ago,
    ) -> None:
        self.config = config or PanelConfig()
        self._derive = deriver.derive if deriver is not None else derive_metrics
        self._format_time = format_time

    def assemble(
        self,
        lmp: LMP,
        *,
        uses: Sequence[LMP | None] | None = None,
        version_history: Sequence[LMP] | None = None,
        invocations: Iterable[InvocationRecord] | None = None,
    ) -> LMPDetailsPanel:
        """Build the panel.

        Args:
            lmp: The version being shown.
            uses: Dependencies; `None` entries are dropped.
            version_history: All versions, newest first.
            invocations: Recent invocation records in any order.
        """
        metrics = self._derive(invocations)
        stats = metrics.stats

        stat_items = (
            StatItem("Created", self._format_time(lmp.created_at)),
            StatItem("Is LMP", "Yes" if lmp.is_lm else "No"),
            StatItem("Total Invocations", str(stats.total_invocations)),
            StatItem(
                "Avg. Latency",
                format_latency(stats.avg_latency_ms, self.config.latency_decimals),
            ),
        )

        lm_kwargs_json = None
        if lmp.lm_kwargs:
            lm_kwargs_json = json.dumps(dict(lmp.lm_kwargs), indent=2, default=str)

        dependencies = tuple(NavLink.for_lmp(u) for u in filter_uses(uses))

        charts = (
            MetricChart("count", self.config.count_chart, metrics.series),
            MetricChart("latency_ms", self.config.latency_chart, metrics.series),
        )

        history = list(version_history or ())
        entries = tuple(
            VersionEntry(
                label=label,
                version=version.version_number + 1,
                link=NavLink.for_lmp(version),
                created=self._format_time(version.created_at),
                commit_message=version.commit_message,
                is_current=version.lmp_id == lmp.lmp_id,
            )
            for label, version in zip(version_labels(len(history)), history)
        )

        logger.info(
            "Assembled panel for %s (%s): %d invocations, %d uses, %d versions",
            lmp.name,
            lmp.lmp_id,
            stats.total_invocations,
            len(dependencies),
            len(entries),
        )
        return LMPDetailsPanel(
            lmp=lmp,
            version_badge=VersionBadge(version=lmp.version_number + 1, hash=lmp.lmp_id),
            stats=stat_items,
            lm_kwargs_json=lm_kwargs_json,
            uses=dependencies,
            uses_placeholder=None if dependencies else NO_DEPENDENCIES,
            charts=charts,
            version_history=entries,
            metrics=metrics,
        )


def load_panel(
    lmp: LMP,
    source: InvocationSource,
    *,
    uses: Sequence[LMP | None] | None = None,
    version_history: Sequence[LMP] | None = None,
    config: PanelConfig | None = None,
) -> LMPDetailsPanel:
    """Fetch the first page of invocations for `lmp` and assemble its panel."""
    assembler = PanelAssembler(config)
    records = source.invocations(
        lmp.name, lmp.lmp_id, offset=0, limit=assembler.config.page_size
    )
    return assembler.assemble(
        lmp, uses=uses, version_history=version_history, invocations=records
    )
