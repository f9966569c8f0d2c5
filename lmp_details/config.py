"""Panel configuration loaded from YAML."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LMP_DETAILS_CONFIG"


@dataclass(frozen=True)
class ChartConfig:
    """Presentation parameters handed to the chart renderer.

    Attributes:
        color_hex: Line/bar color, e.g. `"#8884d8"`.
        title: Chart heading.
        y_axis_label: Label for the value axis.
    """

    color_hex: str
    title: str
    y_axis_label: str


@dataclass(frozen=True)
class PanelConfig:
    """Settings for assembling an LMP details panel.

    Attributes:
        page_size: Number of recent invocations fetched for the metrics.
        latency_decimals: Decimal places shown for the average latency.
        count_chart: Chart config for the invocation-count series.
        latency_chart: Chart config for the latency series.
    """

    page_size: int = 100
    latency_decimals: int = 2
    count_chart: ChartConfig = field(
        default_factory=lambda: ChartConfig("#8884d8", "Invocations", "Count")
    )
    latency_chart: ChartConfig = field(
        default_factory=lambda: ChartConfig("#82ca9d", "Latency", "ms")
    )


_PANEL_KEYS = frozenset(f.name for f in fields(PanelConfig))
_CHART_KEYS = frozenset(f.name for f in fields(ChartConfig))


def _chart_from_raw(base: ChartConfig, raw: Any, *, where: str) -> ChartConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"{where} must be a mapping, got {type(raw).__name__}")
    unknown = set(raw) - _CHART_KEYS
    if unknown:
        raise ValueError(f"Unknown keys in {where}: {sorted(unknown)}")
    for k, v in raw.items():
        if not isinstance(v, str):
            raise ValueError(f"{where}.{k} must be a string, got {type(v).__name__}")
    return replace(base, **raw)


def config_from_dict(raw: dict[str, Any]) -> PanelConfig:
    """Build a `PanelConfig` from a parsed mapping, overriding defaults."""
    unknown = set(raw) - _PANEL_KEYS
    if unknown:
        raise ValueError(f"Unknown panel config keys: {sorted(unknown)}")
    cfg = PanelConfig()
    overrides: dict[str, Any] = {}
    for key in ("page_size", "latency_decimals"):
        if key in raw:
            value = raw[key]
            if isinstance(value, bool):
                raise ValueError(f"{key} must be an integer")
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer") from None
            if value < 0 or (key == "page_size" and value == 0):
                raise ValueError(f"{key} out of range: {value}")
            overrides[key] = value
    for key in ("count_chart", "latency_chart"):
        if key in raw:
            overrides[key] = _chart_from_raw(getattr(cfg, key), raw[key], where=key)
    return replace(cfg, **overrides)


@lru_cache(maxsize=64)
def _load_config_cached(path_raw: str) -> PanelConfig:
    raw = yaml.safe_load(Path(path_raw).read_text())
    if raw is None:
        return PanelConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid panel config (not a mapping): {path_raw}")
    return config_from_dict(raw)


def load_config(path: str | Path) -> PanelConfig:
    """Load a panel config YAML file.

    Keys left out of the file keep their defaults. Results are cached per path.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Panel config does not exist: {p}")
    cfg = _load_config_cached(str(p.resolve()))
    logger.info("Loaded panel config from %s", p)
    return cfg


def resolve_config(path: str | Path | None = None) -> PanelConfig:
    """Resolve config from `path`, then `$LMP_DETAILS_CONFIG`, then defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        logger.debug("No panel config given; using defaults")
        return PanelConfig()
    return load_config(path)
