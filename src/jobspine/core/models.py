"""Store-facing value objects.

Manifesto:
    The reconciliation engine talks to the record store through small typed
    values instead of ORM instances, so it never holds a live mapped object
    across rows and any store that returns these shapes can stand in for the
    SQLAlchemy one.

Tags:
    job-spine, models, dataclasses, record-store

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from jobspine.core.enums import JobSource


@dataclass(frozen=True, slots=True)
class ExistingRecord:
    """What the conflict policy needs to know about a stored job."""

    id: str
    source: JobSource
    manager_id: str | None = None
    supplier_id: str | None = None


@dataclass(frozen=True, slots=True)
class UpsertOutcome:
    """Result of an idempotent upsert keyed by job number."""

    id: str
    was_created: bool


@dataclass(slots=True)
class JobFields:
    """Writable job fields for an upsert.

    ``source`` decides whether the write counts as a feed import or as an
    application edit; feed provenance is only meaningful for EXCEL writes.
    """

    site_name: str
    client: str | None = None
    manager_id: str | None = None
    manager_name_raw: str | None = None
    supplier_id: str | None = None
    specs_received: bool | None = None
    source: JobSource = JobSource.EXCEL
    excel_file_name: str | None = None
    excel_sheet_name: str | None = None
    excel_row_ref: str | None = None
    imported_at: datetime | None = None

    def to_columns(self) -> dict[str, Any]:
        """Column/value mapping for the ``jobs`` table.

        ``supplier_id`` and ``specs_received`` are left out when unknown so an
        update does not clear a value the worksheet never carried.
        """
        columns: dict[str, Any] = {
            "site_name": self.site_name,
            "client": self.client,
            "manager_id": self.manager_id,
            "manager_name_raw": self.manager_name_raw,
            "source": self.source.value,
            "excel_file_name": self.excel_file_name,
            "excel_sheet_name": self.excel_sheet_name,
            "excel_row_ref": self.excel_row_ref,
            "imported_at": self.imported_at,
        }
        if self.supplier_id is not None:
            columns["supplier_id"] = self.supplier_id
        if self.specs_received is not None:
            columns["specs_received"] = self.specs_received
        return columns


__all__ = [
    "ExistingRecord",
    "UpsertOutcome",
    "JobFields",
]
