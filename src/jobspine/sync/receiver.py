"""
Push path for jobs extracted elsewhere.

A remote agent that can reach the worksheet (but not the database) runs
:func:`jobspine.sync.extract.extract_jobs` and ships the result here.
Differences from the workbook engine:

    - a job without a job number or site name is an error entry, not a skip
    - an update keeps a ``manager_id``/``supplier_id`` the store already has
    - there is no dry run and no minimum job number

The conflict policy is the same: application-authored jobs are left alone
and counted as protected.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from jobspine.core.enums import JobSource, PolicyOutcome
from jobspine.core.errors import JobSpineError
from jobspine.core.logging import get_logger
from jobspine.core.models import JobFields
from jobspine.core.protocols import RecordStore
from jobspine.core.timestamps import Clock, utc_now
from jobspine.sync.extract import IncomingJob
from jobspine.sync.policy import ConflictPolicy
from jobspine.sync.rows import normalize_job_number
from jobspine.sync.summary import FATAL_ROW_REF, RowError

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Missing job_number or site_name"


@dataclass(frozen=True, slots=True)
class ReceiveResult:
    success: bool
    created: int = 0
    updated: int = 0
    protected: int = 0
    errors: tuple[RowError, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "created": self.created,
            "updated": self.updated,
            "protected": self.protected,
            "errors": [e.to_dict() for e in self.errors],
        }


def apply_incoming_jobs(
    jobs: Iterable[IncomingJob],
    *,
    store: RecordStore,
    policy: ConflictPolicy,
    clock: Clock | None = None,
) -> ReceiveResult:
    """Upsert each incoming job; failures are isolated per job."""
    imported_at = (clock or utc_now)()
    created = updated = protected = 0
    errors: list[RowError] = []

    for job in jobs:
        job_number = normalize_job_number(job.job_number)
        row_ref = job.excel_row_ref or FATAL_ROW_REF
        if not job_number or not (job.site_name or "").strip():
            errors.append(RowError(row_ref=row_ref, message=MISSING_FIELDS_MESSAGE, job_number=job_number or None))
            continue

        try:
            existing = store.find_record_by_natural_key(job_number)
            if policy.evaluate(existing) == PolicyOutcome.PROTECTED:
                protected += 1
                logger.info("job_protected", job_number=job_number)
                continue

            manager_id = job.manager_id
            supplier_id = job.supplier_id
            if existing is not None:
                manager_id = existing.manager_id or manager_id
                supplier_id = existing.supplier_id or supplier_id

            outcome = store.upsert_record(
                job_number,
                JobFields(
                    site_name=job.site_name.strip(),
                    client=job.client or None,
                    manager_id=manager_id,
                    manager_name_raw=job.manager_name_raw or None,
                    supplier_id=supplier_id,
                    specs_received=job.specs_received,
                    source=JobSource.EXCEL,
                    excel_file_name=job.excel_file_name,
                    excel_sheet_name=job.excel_sheet_name,
                    excel_row_ref=job.excel_row_ref,
                    imported_at=imported_at,
                ),
            )
            if outcome.was_created:
                created += 1
            else:
                updated += 1
        except Exception as e:
            message = e.message if isinstance(e, JobSpineError) else str(e)
            errors.append(RowError(row_ref=row_ref, message=message or type(e).__name__, job_number=job_number))
            logger.warning("incoming_job_failed", job_number=job_number, error=message)

    result = ReceiveResult(
        success=not errors,
        created=created,
        updated=updated,
        protected=protected,
        errors=tuple(errors),
    )
    logger.info(
        "incoming_jobs_applied",
        created=created,
        updated=updated,
        protected=protected,
        errors=len(errors),
    )
    return result


__all__ = [
    "MISSING_FIELDS_MESSAGE",
    "ReceiveResult",
    "apply_incoming_jobs",
]
