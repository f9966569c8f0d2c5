"""Invocation source abstractions feeding the details panel."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import pandas as pd

from lmp_details.records.invocations import InvocationRecord, Invocations, coerce_datetime

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
_REQUIRED_COLUMNS = frozenset({"lmp_id", "created_at", "latency_ms"})


class InvocationSource(Protocol):
    """Common interface for anything that can supply invocations of an LMP."""

    def invocations(
        self,
        lmp_name: str,
        lmp_id: str,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[InvocationRecord]:
        """Return one page of invocation records for the given LMP version."""
        ...


def _check_page(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


class StaticInvocationSource:
    """In-memory source.

    Records that carry an `lmp_id` are matched against the requested one;
    records without it are assumed to belong to any LMP. Pages are taken in
    the order the records were given.
    """

    def __init__(self, records: Sequence[InvocationRecord] | Invocations) -> None:
        self._records = tuple(records)

    def invocations(
        self,
        lmp_name: str,
        lmp_id: str,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[InvocationRecord]:
        _check_page(offset, limit)
        matching = [r for r in self._records if r.lmp_id is None or r.lmp_id == lmp_id]
        return matching[offset : offset + limit]


class TableInvocationSource:
    """Source backed by an invocation table.

    The table needs `lmp_id`, `created_at` and `latency_ms` columns. If a
    `name` column is present it must match the requested LMP name too. Pages
    are returned most recent first, like the dashboard backend.
    """

    def __init__(self, df: pd.DataFrame) -> None:
        missing = _REQUIRED_COLUMNS - set(df.columns)
        if missing:
            raise ValueError(f"Invocation table is missing columns: {sorted(missing)}")
        df = df.copy()
        df["created_at"] = [coerce_datetime(v) for v in df["created_at"]]
        self._df = df

    @classmethod
    def from_parquet(cls, path: str | Path) -> TableInvocationSource:
        """Load an invocation table from a parquet file."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Invocation table does not exist: {p}")
        df = pd.read_parquet(p)
        logger.info("Loaded %d invocations from %s", len(df), p)
        return cls(df)

    @classmethod
    def from_json(cls, path: str | Path) -> TableInvocationSource:
        """Load an invocation table from a records-oriented JSON array."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Invocation table does not exist: {p}")
        df = pd.read_json(p, orient="records", dtype=False, convert_dates=False)
        if df.empty and len(df.columns) == 0:
            # An empty array carries no column names.
            df = pd.DataFrame(columns=sorted(_REQUIRED_COLUMNS))
        logger.info("Loaded %d invocations from %s", len(df), p)
        return cls(df)

    def invocations(
        self,
        lmp_name: str,
        lmp_id: str,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[InvocationRecord]:
        _check_page(offset, limit)
        df = self._df[self._df["lmp_id"] == lmp_id]
        if "name" in df.columns:
            df = df[df["name"] == lmp_name]
        df = df.sort_values("created_at", ascending=False, kind="stable")
        page = df.iloc[offset : offset + limit]
        records = list(Invocations.from_dataframe(page))
        logger.debug(
            "Fetched %d invocations for %s (%s) offset=%d limit=%d",
            len(records),
            lmp_name,
            lmp_id,
            offset,
            limit,
        )
        return records
