"""
Audit summary of a reconciliation run.

``SummaryBuilder`` accumulates per-row outcomes while the engine walks the
sheet; ``build()`` freezes them into a ``BatchSummary`` and ``result()`` wraps
that with the ordered row errors into the ``SyncResult`` handed back to the
caller.

Counting rules:
    - ``rows_read`` counts data rows (header and blank rows excluded)
    - skips and protected jobs never affect ``success``
    - a dry run reports ``would_create``/``would_update`` and leaves
      ``created``/``updated`` at 0; a real run does the opposite

Examples:
    >>> builder = SummaryBuilder(file_name="jobs.xlsx", sheet_names=["Proj Data"],
    ...                          sheet_name="Proj Data", dry_run=False)
    >>> builder.row_read(); builder.record_write(was_created=True)
    >>> builder.result().summary.created
    1
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from jobspine.core.enums import PolicyOutcome

FATAL_ROW_REF = "N/A"


@dataclass(frozen=True, slots=True)
class RowError:
    """A row whose processing raised an unexpected failure."""

    row_ref: str
    message: str
    job_number: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {"row_ref": self.row_ref, "message": self.message}
        if self.job_number is not None:
            result["job_number"] = self.job_number
        return result


@dataclass(frozen=True, slots=True)
class BatchSummary:
    """Counters of one reconciliation run."""

    file_name: str
    sheet_names: tuple[str, ...]
    sheet_name: str
    rows_read: int = 0
    rows_skipped: int = 0
    skipped_below_min: int = 0
    created: int = 0
    updated: int = 0
    protected: int = 0
    errors: int = 0
    dry_run: bool = False
    would_create: int = 0
    would_update: int = 0

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["sheet_names"] = list(self.sheet_names)
        return result


@dataclass(frozen=True, slots=True)
class SyncResult:
    """What a run returns: overall success, the summary and the row errors.

    ``summary`` is ``None`` only for batch-fatal failures, in which case
    ``errors`` holds exactly one top-level entry.
    """

    success: bool
    summary: BatchSummary | None
    errors: tuple[RowError, ...] = field(default_factory=tuple)

    @classmethod
    def fatal(cls, message: str) -> SyncResult:
        return cls(
            success=False,
            summary=None,
            errors=(RowError(row_ref=FATAL_ROW_REF, message=message),),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "summary": self.summary.to_dict() if self.summary else None,
            "errors": [e.to_dict() for e in self.errors],
        }


class SummaryBuilder:
    """Mutable counters for one run; not shared between runs."""

    def __init__(
        self,
        *,
        file_name: str,
        sheet_names: list[str] | tuple[str, ...],
        sheet_name: str,
        dry_run: bool,
    ):
        self.file_name = file_name
        self.sheet_names = tuple(sheet_names)
        self.sheet_name = sheet_name
        self.dry_run = dry_run

        self.rows_read = 0
        self.rows_skipped = 0
        self.skipped_below_min = 0
        self.created = 0
        self.updated = 0
        self.protected = 0
        self.would_create = 0
        self.would_update = 0
        self._errors: list[RowError] = []

    @property
    def errors(self) -> list[RowError]:
        return list(self._errors)

    def row_read(self) -> None:
        self.rows_read += 1

    def skip(self) -> None:
        self.rows_skipped += 1

    def skip_below_min(self) -> None:
        self.skipped_below_min += 1

    def protect(self) -> None:
        self.protected += 1

    def record_simulated(self, outcome: PolicyOutcome) -> None:
        """Count a dry-run decision; PROTECTED goes through ``protect()``."""
        if outcome == PolicyOutcome.CREATE:
            self.would_create += 1
        elif outcome == PolicyOutcome.UPDATE:
            self.would_update += 1

    def record_write(self, *, was_created: bool) -> None:
        if was_created:
            self.created += 1
        else:
            self.updated += 1

    def record_error(self, row_ref: str, message: str, job_number: str | None = None) -> RowError:
        error = RowError(row_ref=row_ref, message=message, job_number=job_number or None)
        self._errors.append(error)
        return error

    def build(self) -> BatchSummary:
        return BatchSummary(
            file_name=self.file_name,
            sheet_names=self.sheet_names,
            sheet_name=self.sheet_name,
            rows_read=self.rows_read,
            rows_skipped=self.rows_skipped,
            skipped_below_min=self.skipped_below_min,
            created=0 if self.dry_run else self.created,
            updated=0 if self.dry_run else self.updated,
            protected=self.protected,
            errors=len(self._errors),
            dry_run=self.dry_run,
            would_create=self.would_create if self.dry_run else 0,
            would_update=self.would_update if self.dry_run else 0,
        )

    def result(self) -> SyncResult:
        return SyncResult(
            success=not self._errors,
            summary=self.build(),
            errors=tuple(self._errors),
        )


__all__ = [
    "FATAL_ROW_REF",
    "RowError",
    "BatchSummary",
    "SyncResult",
    "SummaryBuilder",
]
