"""
Job extraction without writes.

Reads a workbook through the same header resolver and row materializer as
the reconciliation engine and returns the jobs it would import, normalized
and validated, without touching the record store. Used to preview a feed
(``jobspine sync extract``) and to build the payload a remote agent pushes
to :func:`jobspine.sync.receiver.apply_incoming_jobs`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from jobspine.core.errors import ValidationError
from jobspine.core.logging import get_logger
from jobspine.core.protocols import ManagerDirectory
from jobspine.core.text import normalize_name
from jobspine.framework.sources.workbook import WorkbookSource
from jobspine.sync.engine import meets_minimum, specs_flag, validate_row
from jobspine.sync.headers import CLIENT, MANAGER_NAME
from jobspine.sync.managers import NO_MANAGER, ManagerResolver
from jobspine.sync.rows import iter_rows

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class IncomingJob:
    """A validated job as read from the feed (or pushed by an agent)."""

    job_number: str
    site_name: str
    client: str | None = None
    manager_name_raw: str | None = None
    manager_id: str | None = None
    supplier_id: str | None = None
    specs_received: bool | None = None
    excel_file_name: str | None = None
    excel_sheet_name: str | None = None
    excel_row_ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> IncomingJob:
        """Build from a JSON object; unknown keys are ignored.

        Missing ``job_number``/``site_name`` are kept as ``""`` so the
        receiver can report them per job instead of rejecting the batch.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Incoming job must be an object", value=payload)
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in payload.items() if k in known}
        values["job_number"] = str(values.get("job_number") or "").strip()
        values["site_name"] = str(values.get("site_name") or "").strip()
        return cls(**values)


def _as_source(source: WorkbookSource | str | Path | bytes) -> WorkbookSource:
    if isinstance(source, WorkbookSource):
        return source
    if isinstance(source, bytes):
        return WorkbookSource.from_bytes(source)
    return WorkbookSource.from_path(source)


def extract_jobs(
    source: WorkbookSource | str | Path | bytes,
    sheet_name: str | None = None,
    directory: ManagerDirectory | None = None,
    *,
    min_job_number: int = 0,
) -> list[IncomingJob]:
    """
    Read the jobs a sync would import, in worksheet order.

    Rows failing validation or the minimum job number are left out. When a
    *directory* is given, manager names are resolved to ids.

    Raises:
        SourceError: The workbook cannot be read (see ``WorkbookSource.read_sheet``)
    """
    sheet = _as_source(source).read_sheet(sheet_name)
    resolver = ManagerResolver(directory) if directory is not None else None

    jobs: list[IncomingJob] = []
    for record in iter_rows(sheet.rows, sheet.sheet_name):
        valid = validate_row(record)
        if valid is None or not meets_minimum(valid[0], min_job_number):
            logger.debug("row_not_extracted", row_ref=str(record.row_ref))
            continue
        job_number, site_name = valid

        manager_name = normalize_name(record.get(MANAGER_NAME)) or None
        match = resolver.resolve(manager_name) if resolver else NO_MANAGER
        jobs.append(
            IncomingJob(
                job_number=job_number,
                site_name=site_name,
                client=record.get(CLIENT) or None,
                manager_name_raw=match.raw_name or manager_name,
                manager_id=match.manager_id,
                specs_received=specs_flag(record),
                excel_file_name=sheet.file_name,
                excel_sheet_name=sheet.sheet_name,
                excel_row_ref=str(record.row_ref),
            )
        )

    logger.info(
        "jobs_extracted",
        file_name=sheet.file_name,
        sheet_name=sheet.sheet_name,
        count=len(jobs),
    )
    return jobs


__all__ = [
    "IncomingJob",
    "extract_jobs",
]
