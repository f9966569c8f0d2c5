"""LMP version records consumed read-only by the details panel."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from lmp_details.records.invocations import coerce_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LMP:
    """One version of a Language Model Program.

    Attributes:
        name: Program name; shared by every version.
        lmp_id: Content hash identifying this version.
        version_number: Zero-based version index as stored by the backend.
        created_at: When this version was first recorded (UTC).
        is_lm: Whether the program calls a language model directly.
        lm_kwargs: Keyword arguments passed to the language model, if any.
        commit_message: Auto-generated or user-supplied change summary.
    """

    name: str
    lmp_id: str
    version_number: int
    created_at: datetime
    is_lm: bool = False
    lm_kwargs: Mapping[str, Any] | None = None
    commit_message: str | None = None

    @property
    def path(self) -> str:
        """Navigation path for this version in the dashboard."""
        return f"/lmp/{self.name}/{self.lmp_id}"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> LMP:
        """Build an LMP from a backend JSON object.

        Args:
            d: Mapping with `name`, `lmp_id` and `created_at`; `version_number`
                defaults to 0 and `is_lm` to False.
        """
        for key in ("name", "lmp_id", "created_at"):
            if d.get(key) is None:
                raise ValueError(f"LMP record is missing required field {key!r}")
        lm_kwargs = d.get("lm_kwargs")
        if lm_kwargs is not None and not isinstance(lm_kwargs, Mapping):
            raise ValueError(f"lm_kwargs must be an object, got {type(lm_kwargs).__name__}")
        return cls(
            name=str(d["name"]),
            lmp_id=str(d["lmp_id"]),
            version_number=int(d.get("version_number") or 0),
            created_at=coerce_datetime(d["created_at"]),
            is_lm=bool(d.get("is_lm", False)),
            lm_kwargs=lm_kwargs,
            commit_message=d.get("commit_message"),
        )


def parse_lmp_list(rows: Sequence[Mapping[str, Any] | None] | None) -> list[LMP | None]:
    """Parse a list of LMP objects, keeping absent entries as `None`.

    Absent entries are preserved so the panel can drop them itself without
    shifting the remaining ones.
    """
    out: list[LMP | None] = []
    for row in rows or ():
        out.append(LMP.from_dict(row) if row is not None else None)
    logger.debug("Parsed %d LMP entries", len(out))
    return out
