from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from lmp_details.records.invocations import InvocationRecord, Invocations, coerce_datetime
from lmp_details.records.lmps import LMP, parse_lmp_list

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _rows() -> list[dict[str, object]]:
    return [
        {"id": "i3", "lmp_id": "abc", "created_at": "2024-05-01T12:03:00Z", "latency_ms": 100},
        {"id": "i1", "lmp_id": "abc", "created_at": "2024-05-01T12:01:00", "latency_ms": 50},
        {"id": "i2", "lmp_id": "abc", "created_at": T0 + timedelta(minutes=2), "latency_ms": 150.0},
    ]


def test_coerce_datetime_normalizes_to_utc() -> None:
    assert coerce_datetime("2024-05-01T12:00:00") == T0
    assert coerce_datetime("2024-05-01T14:00:00+02:00") == T0
    assert coerce_datetime(T0.timestamp()) == T0
    assert coerce_datetime(pd.Timestamp("2024-05-01 12:00:00")) == T0
    assert coerce_datetime(datetime(2024, 5, 1, 12, 0)).tzinfo is timezone.utc

    with pytest.raises(ValueError, match="Unparseable"):
        coerce_datetime("yesterday")
    with pytest.raises(ValueError, match="Unsupported"):
        coerce_datetime(None)


def test_invocation_record_from_dict() -> None:
    rec = InvocationRecord.from_dict(_rows()[0])
    assert rec.created_at == T0 + timedelta(minutes=3)
    assert rec.latency_ms == 100.0
    assert rec.id == "i3"
    assert rec.lmp_id == "abc"

    with pytest.raises(ValueError, match="latency_ms"):
        InvocationRecord.from_dict({"created_at": "2024-05-01T12:00:00"})
    with pytest.raises(ValueError, match="created_at"):
        InvocationRecord.from_dict({"latency_ms": 1.0})


def test_invocations_collection_basics() -> None:
    invs = Invocations.from_records(_rows())
    assert len(invs) == 3
    assert bool(invs)
    assert invs[0].id == "i3"
    assert [r.id for r in invs] == ["i3", "i1", "i2"]
    assert repr(invs) == "Invocations(3 records)"

    empty = Invocations.from_records(None)
    assert not empty
    assert len(empty + invs) == 3


def test_invocations_metrics_are_cached_on_collection() -> None:
    invs = Invocations.from_records(_rows())
    metrics = invs.metrics
    assert invs.metrics is metrics
    assert [p.latency_ms for p in metrics.series] == [50.0, 150.0, 100.0]
    assert metrics.stats.total_invocations == 3
    assert metrics.stats.avg_latency_ms == 100.0


def test_invocations_since_and_where() -> None:
    invs = Invocations.from_records(_rows())
    recent = invs.since(T0 + timedelta(minutes=2))
    assert sorted(r.id for r in recent) == ["i2", "i3"]
    assert invs.since(T0 + timedelta(minutes=2)) is recent

    slow = invs.where(lambda r: r.latency_ms > 75)
    assert slow.metrics.stats.avg_latency_ms == 125.0


def test_invocations_dataframe_round_trip() -> None:
    invs = Invocations.from_records(_rows())
    df = invs.to_dataframe()
    assert list(df["id"]) == ["i3", "i1", "i2"]

    again = Invocations.from_dataframe(df)
    assert list(again) == list(invs)

    assert Invocations().to_dataframe().empty
    with pytest.raises(ValueError, match="missing columns"):
        Invocations.from_dataframe(pd.DataFrame({"latency_ms": [1.0]}))


def test_lmp_from_dict() -> None:
    lmp = LMP.from_dict(
        {
            "name": "summarize",
            "lmp_id": "abc",
            "version_number": 4,
            "created_at": "2024-05-01T12:00:00",
            "is_lm": True,
            "lm_kwargs": {"temperature": 0.2},
            "commit_message": "Tighten prompt",
        }
    )
    assert lmp.version_number == 4
    assert lmp.created_at == T0
    assert lmp.is_lm is True
    assert lmp.lm_kwargs == {"temperature": 0.2}
    assert lmp.path == "/lmp/summarize/abc"

    minimal = LMP.from_dict({"name": "n", "lmp_id": "x", "created_at": T0})
    assert minimal.version_number == 0
    assert minimal.is_lm is False
    assert minimal.lm_kwargs is None

    with pytest.raises(ValueError, match="lmp_id"):
        LMP.from_dict({"name": "n", "created_at": T0})
    with pytest.raises(ValueError, match="lm_kwargs"):
        LMP.from_dict({"name": "n", "lmp_id": "x", "created_at": T0, "lm_kwargs": [1]})


def test_parse_lmp_list_keeps_absent_entries() -> None:
    rows = [
        {"name": "a", "lmp_id": "1", "created_at": T0},
        None,
        {"name": "b", "lmp_id": "2", "created_at": T0},
    ]
    parsed = parse_lmp_list(rows)
    assert parsed[1] is None
    assert [p.name for p in parsed if p is not None] == ["a", "b"]
    assert parse_lmp_list(None) == []


def test_invocation_record_normalizes_timestamp_on_construction() -> None:
    naive = InvocationRecord(datetime(2024, 5, 1, 12, 0), 1.0)
    shifted = InvocationRecord(datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))), 1.0)
    assert naive.created_at.tzinfo is timezone.utc
    assert shifted.created_at.tzinfo is timezone.utc
    assert naive == shifted
    assert InvocationRecord("2024-05-01T12:00:00Z", 1.0).created_at == T0
