"""Derived invocation metrics: chart series plus count/latency aggregates."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

import numpy as np
import pandas as pd

from lmp_details.records.invocations import InvocationRecord

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ("timestamp", "count", "latency_ms")


@dataclass(frozen=True)
class MetricPoint:
    """One chart point per invocation.

    Attributes:
        timestamp: Invocation creation time.
        count: Always 1; charts sum it per time bucket.
        latency_ms: Invocation latency in milliseconds.
    """

    timestamp: datetime
    latency_ms: float
    count: int = 1


@dataclass(frozen=True)
class AggregateStats:
    """Scalar summary of an invocation collection.

    Attributes:
        total_invocations: Number of input records.
        avg_latency_ms: Arithmetic mean latency, `0.0` when there are no records.
    """

    total_invocations: int
    avg_latency_ms: float


@dataclass(frozen=True)
class InvocationMetrics:
    """Result of deriving metrics from a set of invocation records."""

    series: tuple[MetricPoint, ...]
    stats: AggregateStats

    def to_dataframe(self) -> pd.DataFrame:
        """Return the series as a DataFrame with `timestamp`, `count`, `latency_ms`."""
        if not self.series:
            return pd.DataFrame(columns=list(SERIES_COLUMNS))
        return pd.DataFrame(
            {
                "timestamp": [p.timestamp for p in self.series],
                "count": [p.count for p in self.series],
                "latency_ms": [p.latency_ms for p in self.series],
            }
        )

    def latency_percentiles_ms(self) -> dict[str, float]:
        """p50/p90/p95/p99 latency in milliseconds; empty dict without records."""
        if not self.series:
            return {}
        arr = np.asarray([p.latency_ms for p in self.series], dtype=float)
        return {
            "p50_latency_ms": float(np.percentile(arr, 50)),
            "p90_latency_ms": float(np.percentile(arr, 90)),
            "p95_latency_ms": float(np.percentile(arr, 95)),
            "p99_latency_ms": float(np.percentile(arr, 99)),
        }


def _compute(records: tuple[InvocationRecord, ...]) -> InvocationMetrics:
    total = len(records)
    logger.debug("Deriving invocation metrics for %d records", total)
    latencies = tuple(float(r.latency_ms) for r in records)
    avg = float(np.mean(latencies)) if total else 0.0

    # sorted() is stable, so equal timestamps keep their input order.
    ordered = sorted(records, key=lambda r: r.created_at)
    series = tuple(
        MetricPoint(timestamp=r.created_at, latency_ms=float(r.latency_ms)) for r in ordered
    )
    return InvocationMetrics(
        series=series,
        stats=AggregateStats(total_invocations=total, avg_latency_ms=avg),
    )


class InvocationMetricsDeriver:
    """Turn invocation records into a time-ordered series and aggregates.

    Results are memoized on the content of the input: records are frozen and
    hashable, so the input tuple itself is the cache key. Re-supplying an
    equal collection (by the same or a new reference) hits the cache, and a
    changed collection can never be served a stale result. The cache is the
    only state the deriver holds and `functools.lru_cache` is thread-safe.

    Args:
        maxsize: Number of distinct inputs to remember.
    """

    def __init__(self, maxsize: int = 128) -> None:
        self._cached = lru_cache(maxsize=maxsize)(_compute)

    def derive(self, records: Iterable[InvocationRecord] | None) -> InvocationMetrics:
        """Derive metrics; `None` is treated as an empty collection."""
        key = tuple(records) if records is not None else ()
        return self._cached(key)

    def cache_clear(self) -> None:
        """Forget all memoized results."""
        self._cached.cache_clear()


_default_deriver = InvocationMetricsDeriver()


def derive_metrics(records: Iterable[InvocationRecord] | None) -> InvocationMetrics:
    """Derive metrics with the process-wide deriver."""
    return _default_deriver.derive(records)
