"""Display formatting helpers for the details panel."""

from __future__ import annotations

from datetime import datetime, timezone

from lmp_details.records.invocations import coerce_datetime

_UNITS: tuple[tuple[str, float], ...] = (
    ("year", 365 * 86400.0),
    ("month", 30 * 86400.0),
    ("day", 86400.0),
    ("hour", 3600.0),
    ("minute", 60.0),
)


def time_ago(then: datetime, now: datetime | None = None) -> str:
    """Render `then` relative to `now`, e.g. `"3 hours ago"`.

    Anything under a minute old, or in the future, reads `"just now"`.
    """
    then_utc = coerce_datetime(then)
    now_utc = coerce_datetime(now) if now is not None else datetime.now(timezone.utc)
    seconds = (now_utc - then_utc).total_seconds()
    for unit, size in _UNITS:
        n = int(seconds // size)
        if n >= 1:
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"


def format_latency(avg_latency_ms: float, decimals: int = 2) -> str:
    """Format an average latency for display, e.g. `"100.00ms"`."""
    return f"{avg_latency_ms:.{decimals}f}ms"
