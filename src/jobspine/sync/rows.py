"""
Row materialization.

Turns a raw worksheet grid into an ordered sequence of ``RowRecord`` values,
one per non-blank data row, each carrying a ``RowRef`` that points back to its
physical position in the sheet. Downstream code only ever sees ``RowRecord``;
whether the workbook library produced positional tuples or header-keyed dicts
is settled here.

Numbering:
    The first non-blank row is the header (position 0). Data rows are numbered
    from 1 by their distance to the header, so blank separator rows are dropped
    without shifting the references of the rows below them.

Examples:
    >>> grid = [("Job No", "Job Name"), (4521, "Riverside"), (None, None), ("4522.0", "Hilltop")]
    >>> [str(r.row_ref) for r in materialize_rows(grid, "Proj Data")]
    ['Proj Data:R1', 'Proj Data:R3']
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from jobspine.core.logging import get_logger
from jobspine.sync.headers import canonical_field, resolve_headers

logger = get_logger(__name__)

_FLOAT_ARTIFACT = re.compile(r"\.0$")


@dataclass(frozen=True, slots=True)
class RowRef:
    """Human-readable locator of a worksheet row (``"Proj Data:R12"``)."""

    sheet_name: str
    row_number: int

    def __str__(self) -> str:
        return f"{self.sheet_name}:R{self.row_number}"


@dataclass(frozen=True, slots=True)
class RowRecord:
    """One worksheet data row: its locator plus canonical field -> cell text."""

    row_ref: RowRef
    fields: Mapping[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        """Trimmed text of *name*, ``""`` when the column is absent."""
        return (self.fields.get(name) or "").strip()


def cell_to_text(value: Any) -> str:
    """Display text of a cell value.

    ``None`` is empty, strings are trimmed, dates render ISO-8601 and
    everything else goes through ``str`` (so ``4521.0`` stays ``"4521.0"``
    until job-number normalization strips it).
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value).strip()


def normalize_job_number(value: Any) -> str:
    """Trim and strip the trailing ``.0`` a numeric cell picks up."""
    return _FLOAT_ARTIFACT.sub("", cell_to_text(value)).strip()


def is_blank_row(row: Sequence[Any] | None) -> bool:
    if not row:
        return True
    return all(_safe_text(cell) == "" for cell in row)


def _safe_text(value: Any, *, row_ref: RowRef | None = None, field_name: str | None = None) -> str:
    """``cell_to_text`` that degrades a broken cell to ``""`` for its row only."""
    try:
        return cell_to_text(value)
    except Exception as e:
        logger.warning(
            "cell_unreadable",
            row_ref=str(row_ref) if row_ref else None,
            field=field_name,
            error=str(e),
        )
        return ""


def header_index(grid: Sequence[Sequence[Any]]) -> int | None:
    """Index of the header row (the first non-blank row), or ``None``."""
    for idx, row in enumerate(grid):
        if not is_blank_row(row):
            return idx
    return None


def materialize_rows(
    grid: Sequence[Sequence[Any]],
    sheet_name: str,
    header_map: Mapping[str, int] | None = None,
) -> list[RowRecord]:
    """Build ``RowRecord``s from a positional grid (header row included)."""
    return list(iter_rows(grid, sheet_name, header_map))


def iter_rows(
    grid: Sequence[Sequence[Any]],
    sheet_name: str,
    header_map: Mapping[str, int] | None = None,
) -> Iterator[RowRecord]:
    header_at = header_index(grid)
    if header_at is None:
        return
    if header_map is None:
        header_map = resolve_headers(grid[header_at])

    for idx in range(header_at + 1, len(grid)):
        row = grid[idx]
        if is_blank_row(row):
            continue
        row_ref = RowRef(sheet_name=sheet_name, row_number=idx - header_at)
        values: dict[str, str] = {}
        for name, col in header_map.items():
            cell = row[col] if col < len(row) else None
            values[name] = _safe_text(cell, row_ref=row_ref, field_name=name)
        yield RowRecord(row_ref=row_ref, fields=values)


def materialize_keyed_rows(
    records: Iterable[Mapping[str, Any]],
    sheet_name: str,
) -> list[RowRecord]:
    """Build ``RowRecord``s from header-keyed dicts (one dict per data row).

    Keys go through the same alias table as positional headers; within a
    record the first key mapping to a field wins.
    """
    rows: list[RowRecord] = []
    for position, record in enumerate(records, start=1):
        row_ref = RowRef(sheet_name=sheet_name, row_number=position)
        values: dict[str, str] = {}
        for key, cell in record.items():
            name = canonical_field(key)
            if name is None or name in values:
                continue
            values[name] = _safe_text(cell, row_ref=row_ref, field_name=name)
        if not any(values.values()) and is_blank_row(list(record.values())):
            continue
        rows.append(RowRecord(row_ref=row_ref, fields=values))
    return rows


__all__ = [
    "RowRef",
    "RowRecord",
    "cell_to_text",
    "normalize_job_number",
    "is_blank_row",
    "header_index",
    "materialize_rows",
    "iter_rows",
    "materialize_keyed_rows",
]
