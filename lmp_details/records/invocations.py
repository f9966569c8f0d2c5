"""Invocation records and their immutable collection type."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import pandas as pd

if TYPE_CHECKING:
    from lmp_details.metrics.deriver import InvocationMetrics

logger = logging.getLogger(__name__)


def coerce_datetime(value: object) -> datetime:
    """Convert a timestamp-like value into a timezone-aware UTC datetime.

    Accepts `datetime` (naive values are taken to be UTC), ISO-8601 strings,
    epoch seconds, and pandas `Timestamp`s.
    """
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Unparseable timestamp: {value!r}") from None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class InvocationRecord:
    """A single recorded execution of an LMP.

    Attributes:
        created_at: When the invocation was recorded (UTC).
        latency_ms: End-to-end latency in milliseconds.
        id: Invocation identifier, if the source provides one.
        lmp_id: Identifier of the LMP version that was invoked.
    """

    created_at: datetime
    latency_ms: float
    id: str | None = None
    lmp_id: str | None = None

    def __post_init__(self) -> None:
        # Equal records always hold identical UTC timestamps.
        object.__setattr__(self, "created_at", coerce_datetime(self.created_at))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> InvocationRecord:
        """Build a record from a mapping (e.g. a JSON object or DataFrame row).

        Args:
            d: Mapping with `created_at` and `latency_ms`, and optionally
                `id` and `lmp_id`.
        """
        for key in ("created_at", "latency_ms"):
            if d.get(key) is None:
                raise ValueError(f"Invocation record is missing required field {key!r}")
        raw_id = d.get("id")
        raw_lmp_id = d.get("lmp_id")
        return cls(
            created_at=coerce_datetime(d["created_at"]),
            latency_ms=float(d["latency_ms"]),
            id=(str(raw_id) if raw_id is not None else None),
            lmp_id=(str(raw_lmp_id) if raw_lmp_id is not None else None),
        )


class Invocations:
    """Immutable collection of invocation records.

    Derived values are cached on the collection, which is safe because the
    underlying tuple never changes:

        invs = Invocations.from_records(rows)
        invs.metrics.stats.avg_latency_ms
        invs.since(cutoff).metrics.series

    Iteration yields records in the order they were supplied; only the
    derived `metrics.series` is time-ordered.
    """

    def __init__(self, records: Sequence[InvocationRecord] | None = None) -> None:
        self._records = tuple(records or ())
        self._cache: dict[str, Any] = {}

    @classmethod
    def from_records(cls, rows: Sequence[Mapping[str, Any]] | None) -> Invocations:
        """Build a collection from mapping rows (see `InvocationRecord.from_dict`)."""
        return cls([InvocationRecord.from_dict(r) for r in (rows or ())])

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> Invocations:
        """Build a collection from a DataFrame with `created_at` and `latency_ms` columns."""
        missing = {"created_at", "latency_ms"} - set(df.columns)
        if missing:
            raise ValueError(f"Invocation table is missing columns: {sorted(missing)}")
        rows: list[dict[str, Any]] = df.to_dict(orient="records")
        for row in rows:
            for k, v in row.items():
                if not isinstance(v, (list, dict)) and pd.isna(v):
                    row[k] = None
        return cls.from_records(rows)

    def where(self, predicate: Callable[[InvocationRecord], bool]) -> Invocations:
        """Filter records by an arbitrary predicate."""
        return Invocations([r for r in self._records if predicate(r)])

    def since(self, cutoff: datetime) -> Invocations:
        """Keep records created at or after `cutoff`."""
        key = f"_since_{cutoff.isoformat()}"
        if key not in self._cache:
            when = coerce_datetime(cutoff)
            self._cache[key] = self.where(lambda r: r.created_at >= when)
        return self._cache[key]

    @property
    def metrics(self) -> InvocationMetrics:
        """Series and aggregate statistics for this collection."""
        from lmp_details.metrics.deriver import derive_metrics

        key = "_metrics"
        if key not in self._cache:
            self._cache[key] = derive_metrics(self._records)
        return self._cache[key]

    def __iter__(self) -> Iterator[InvocationRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> InvocationRecord:
        return self._records[index]

    def __bool__(self) -> bool:
        return len(self._records) > 0

    def __add__(self, other: Invocations) -> Invocations:
        return Invocations(list(self._records) + list(other._records))

    def __repr__(self) -> str:
        return f"Invocations({len(self._records)} records)"

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per record, in input order."""
        if not self._records:
            return pd.DataFrame(columns=[f.name for f in dataclasses.fields(InvocationRecord)])
        return pd.DataFrame([dataclasses.asdict(r) for r in self._records])
