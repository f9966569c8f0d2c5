from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pandas as pd
import pytest

from lmp_details.records.invocations import InvocationRecord
from lmp_details.sources import StaticInvocationSource, TableInvocationSource

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload))


def _table_rows() -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for i in range(6):
        rows.append(
            {
                "id": f"inv-{i}",
                "lmp_id": "abc",
                "name": "summarize",
                "created_at": (T0 + timedelta(minutes=i)).isoformat(),
                "latency_ms": float(10 * i),
            }
        )
    rows.append(
        {
            "id": "other",
            "lmp_id": "def",
            "name": "summarize",
            "created_at": T0.isoformat(),
            "latency_ms": 1.0,
        }
    )
    return rows


def test_static_source_pages_in_given_order() -> None:
    records = [
        InvocationRecord(T0, 1.0, lmp_id="abc"),
        InvocationRecord(T0, 2.0, lmp_id="def"),
        InvocationRecord(T0, 3.0),
        InvocationRecord(T0, 4.0, lmp_id="abc"),
    ]
    source = StaticInvocationSource(records)
    assert [r.latency_ms for r in source.invocations("x", "abc")] == [1.0, 3.0, 4.0]
    assert [r.latency_ms for r in source.invocations("x", "abc", offset=1, limit=1)] == [3.0]
    assert source.invocations("x", "abc", offset=10) == []

    with pytest.raises(ValueError, match="offset"):
        source.invocations("x", "abc", offset=-1)


def test_table_source_returns_most_recent_first() -> None:
    source = TableInvocationSource(pd.DataFrame(_table_rows()))

    page = source.invocations("summarize", "abc", limit=3)
    assert [r.id for r in page] == ["inv-5", "inv-4", "inv-3"]
    assert all(r.created_at.tzinfo is not None for r in page)

    nxt = source.invocations("summarize", "abc", offset=3, limit=3)
    assert [r.id for r in nxt] == ["inv-2", "inv-1", "inv-0"]

    assert source.invocations("other-name", "abc") == []


def test_table_source_from_json(tmp_path: Path) -> None:
    p = tmp_path / "invocations.json"
    _write_json(p, _table_rows())

    source = TableInvocationSource.from_json(p)
    page = source.invocations("summarize", "def")
    assert len(page) == 1
    assert page[0].created_at == T0
    assert page[0].latency_ms == 1.0


def test_table_source_from_parquet(tmp_path: Path) -> None:
    df = pd.DataFrame(_table_rows())
    df["created_at"] = pd.to_datetime(df["created_at"])
    p = tmp_path / "invocations.parquet"
    df.to_parquet(p, index=False)

    source = TableInvocationSource.from_parquet(p)
    page = source.invocations("summarize", "abc", limit=100)
    assert len(page) == 6
    assert page[-1].created_at == T0


def test_table_source_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        TableInvocationSource.from_parquet(tmp_path / "missing.parquet")
    with pytest.raises(FileNotFoundError):
        TableInvocationSource.from_json(tmp_path / "missing.json")
    with pytest.raises(ValueError, match="missing columns"):
        TableInvocationSource(pd.DataFrame({"lmp_id": ["abc"], "latency_ms": [1.0]}))


def test_table_source_from_empty_json_array(tmp_path: Path) -> None:
    p = tmp_path / "invocations.json"
    _write_json(p, [])

    source = TableInvocationSource.from_json(p)
    assert source.invocations("summarize", "abc") == []
