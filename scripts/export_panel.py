"""Export the details panel of one LMP version as JSON.

The LMP file is the JSON the dashboard backend serves for a version page:

    {"lmp": {...}, "uses": [{...}, null, ...], "version_history": [{...}, ...]}

The invocation table is a parquet file or a records-oriented JSON array with
`lmp_id`, `created_at` and `latency_ms` columns.

Usage::

    python scripts/export_panel.py \\
      --lmp /path/to/lmp.json \\
      --invocations /path/to/invocations.parquet \\
      --config /path/to/panel.yaml \\
      --out /path/to/panel.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from lmp_details.config import resolve_config
from lmp_details.panel.assembler import load_panel
from lmp_details.records.lmps import LMP, parse_lmp_list
from lmp_details.sources import TableInvocationSource

logger = logging.getLogger(__name__)


def _load_lmp_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"LMP file does not exist: {path}")
    raw = json.loads(path.read_text())
    if not isinstance(raw, dict) or not isinstance(raw.get("lmp"), dict):
        raise ValueError(f"LMP file must be an object with an 'lmp' object: {path}")
    return raw


def _open_source(path: Path) -> TableInvocationSource:
    if path.suffix == ".parquet":
        return TableInvocationSource.from_parquet(path)
    return TableInvocationSource.from_json(path)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Export an LMP details panel as JSON")
    parser.add_argument("--lmp", type=str, required=True, help="LMP JSON file")
    parser.add_argument(
        "--invocations",
        type=str,
        required=True,
        help="Invocation table (.parquet, or JSON records)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Panel config YAML (default: $LMP_DETAILS_CONFIG or built-in defaults)",
    )
    parser.add_argument("--out", type=str, default=None, help="Output path (default: stdout)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    raw = _load_lmp_file(Path(args.lmp))
    lmp = LMP.from_dict(raw["lmp"])
    uses = parse_lmp_list(raw.get("uses"))
    history = [v for v in parse_lmp_list(raw.get("version_history")) if v is not None]

    panel = load_panel(
        lmp,
        _open_source(Path(args.invocations)),
        uses=uses,
        version_history=history,
        config=resolve_config(args.config),
    )
    payload = json.dumps(panel.to_dict(), indent=2)

    if args.out is None:
        sys.stdout.write(payload + "\n")
    else:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload)
        logger.info("Wrote %s", out)


if __name__ == "__main__":
    main()
