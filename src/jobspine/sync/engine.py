"""
Worksheet-to-job reconciliation engine.

Manifesto:
    The worksheet is a loosely-structured feed; the job table is the
    authoritative store. The engine merges one into the other row by row,
    keyed by the job number, and never lets the feed overwrite a job that was
    authored inside the application. Every run ends with an audit summary,
    whether it wrote anything or only simulated.

Architecture:
    ::

        SyncRequest ──► WorkbookSource.read_sheet()      (batch-fatal on failure)
                             │
                             ▼
                       resolve_headers + iter_rows       (RowRecord per data row)
                             │
               ┌─────────────┴──────────────┐
               ▼                            ▼
        validate / min filter        ManagerResolver.resolve()
                                            │
                                            ▼
                                  RecordStore.find_record_by_natural_key()
                                            │
                                            ▼
                                  ConflictPolicy.evaluate()
                                            │
                              dry run ◄─────┼─────► upsert_record()
                                            ▼
                                     SummaryBuilder ──► SyncResult

Per-row outcomes:
    - invalid job number or site name: skipped, not an error
    - job number below the configured minimum: ``skipped_below_min``
    - existing application-authored job: protected, untouched
    - any failure while resolving, looking up or writing: a ``RowError``;
      the remaining rows still run

Tags:
    job-spine, reconciliation, upsert, dry-run, audit, excel

Doc-Types:
    api-reference, architecture
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jobspine.core.enums import JobSource, PolicyOutcome
from jobspine.core.errors import JobSpineError
from jobspine.core.logging import LogContext, get_logger
from jobspine.core.models import JobFields
from jobspine.core.protocols import ManagerDirectory, RecordStore
from jobspine.core.settings import JobSpineSettings, get_settings
from jobspine.core.timestamps import Clock, utc_now
from jobspine.framework.sources.workbook import SheetData, WorkbookSource
from jobspine.sync.headers import (
    CLIENT,
    JOB_NUMBER,
    MANAGER_NAME,
    SITE_NAME,
    SPECS_RECEIVED,
    resolve_headers,
)
from jobspine.sync.managers import ManagerResolver
from jobspine.sync.policy import ConflictPolicy
from jobspine.sync.rows import RowRecord, header_index, iter_rows, normalize_job_number
from jobspine.sync.summary import SummaryBuilder, SyncResult

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SyncRequest:
    """
    One reconciliation request.

    Exactly one of ``source_bytes`` (an upload) or ``source_path`` must be
    set. ``file_name`` defaults to the path's base name, else
    ``"uploaded.xlsx"``. A ``sheet_name`` missing from the workbook falls
    back to the first sheet.
    """

    source_bytes: bytes | None = None
    source_path: str | Path | None = None
    file_name: str | None = None
    sheet_name: str | None = None
    dry_run: bool = False

    def open_source(self) -> WorkbookSource:
        return WorkbookSource(
            path=self.source_path,
            data=self.source_bytes,
            file_name=self.file_name,
        )


def validate_row(record: RowRecord) -> tuple[str, str] | None:
    """Return ``(job_number, site_name)`` or ``None`` when either is empty."""
    job_number = normalize_job_number(record.get(JOB_NUMBER))
    site_name = record.get(SITE_NAME)
    if not job_number or not site_name:
        return None
    return job_number, site_name


def meets_minimum(job_number: str, minimum: int) -> bool:
    """Whether *job_number* passes the threshold (always true when it is 0)."""
    if minimum <= 0:
        return True
    try:
        return int(job_number) >= minimum
    except ValueError:
        return False


def specs_flag(record: RowRecord) -> bool | None:
    """Any text in the specs column means received; ``None`` when no column."""
    if SPECS_RECEIVED not in record.fields:
        return None
    return bool(record.get(SPECS_RECEIVED))


class ReconciliationEngine:
    """
    Merge worksheet rows into the job store.

    The engine is stateless between runs: each ``run()`` builds its own
    manager cache, summary and import timestamp. It holds no lock, so two
    runs against the same store at once race at the store level.

    Example:
        >>> engine = ReconciliationEngine(store, directory, ConflictPolicy())
        >>> result = engine.run(SyncRequest(source_path="jobs.xlsx", dry_run=True))
        >>> result.summary.would_create
    """

    def __init__(
        self,
        store: RecordStore,
        managers: ManagerDirectory,
        policy: ConflictPolicy,
        *,
        min_job_number: int = 0,
        clock: Clock | None = None,
    ):
        self.store = store
        self.managers = managers
        self.policy = policy
        self.min_job_number = min_job_number
        self._clock = clock or utc_now

    def run(self, request: SyncRequest) -> SyncResult:
        try:
            sheet = request.open_source().read_sheet(request.sheet_name)
        except JobSpineError as e:
            logger.error(
                "sync_failed",
                error=e.message,
                error_type=type(e).__name__,
                **e.context.to_dict(),
            )
            return SyncResult.fatal(e.message)

        with LogContext(
            file_name=sheet.file_name,
            sheet_name=sheet.sheet_name,
            dry_run=request.dry_run,
        ):
            result = self._reconcile(sheet, dry_run=request.dry_run)
            logger.info("sync_completed", success=result.success, **result.summary.to_dict())
        return result

    # -------------------------------------------------------------------------
    # ROW LOOP
    # -------------------------------------------------------------------------

    def _reconcile(self, sheet: SheetData, *, dry_run: bool) -> SyncResult:
        builder = SummaryBuilder(
            file_name=sheet.file_name,
            sheet_names=sheet.sheet_names,
            sheet_name=sheet.sheet_name,
            dry_run=dry_run,
        )

        header_at = header_index(sheet.rows)
        if header_at is None:
            return builder.result()
        header_map = resolve_headers(sheet.rows[header_at])
        logger.debug("headers_resolved", columns=header_map)

        resolver = ManagerResolver(self.managers)
        imported_at = self._clock()

        for record in iter_rows(sheet.rows, sheet.sheet_name, header_map):
            builder.row_read()
            row_ref = str(record.row_ref)

            valid = validate_row(record)
            if valid is None:
                builder.skip()
                logger.debug("row_skipped", row_ref=row_ref, reason="missing job number or site name")
                continue
            job_number, site_name = valid

            if not meets_minimum(job_number, self.min_job_number):
                builder.skip_below_min()
                logger.debug(
                    "row_below_min",
                    row_ref=row_ref,
                    job_number=job_number,
                    min_job_number=self.min_job_number,
                )
                continue

            try:
                match = resolver.resolve(record.get(MANAGER_NAME))
                existing = self.store.find_record_by_natural_key(job_number)
                outcome = self.policy.evaluate(existing)

                if outcome == PolicyOutcome.PROTECTED:
                    builder.protect()
                    logger.info("job_protected", row_ref=row_ref, job_number=job_number)
                    continue

                if dry_run:
                    builder.record_simulated(outcome)
                    continue

                fields = JobFields(
                    site_name=site_name,
                    client=record.get(CLIENT) or None,
                    manager_id=match.manager_id,
                    manager_name_raw=match.raw_name,
                    specs_received=specs_flag(record),
                    source=JobSource.EXCEL,
                    excel_file_name=sheet.file_name,
                    excel_sheet_name=sheet.sheet_name,
                    excel_row_ref=row_ref,
                    imported_at=imported_at,
                )
                upserted = self.store.upsert_record(job_number, fields)
                builder.record_write(was_created=upserted.was_created)
            except Exception as e:
                message = e.message if isinstance(e, JobSpineError) else str(e)
                builder.record_error(row_ref, message or type(e).__name__, job_number)
                logger.warning(
                    "row_failed",
                    row_ref=row_ref,
                    job_number=job_number,
                    error=message,
                    error_type=type(e).__name__,
                )

        return builder.result()


def sync_jobs_from_workbook(
    request: SyncRequest,
    *,
    store: RecordStore,
    directory: ManagerDirectory,
    settings: JobSpineSettings | None = None,
    clock: Clock | None = None,
) -> SyncResult:
    """
    Run one reconciliation with the configured policy.

    The overwrite override and the minimum job number are read from
    *settings* (default: :func:`get_settings`) once, at the start of the run.
    """
    settings = settings or get_settings()
    engine = ReconciliationEngine(
        store,
        directory,
        ConflictPolicy(allow_overwrite_app=settings.allow_overwrite_app_jobs),
        min_job_number=settings.min_job_number,
        clock=clock,
    )
    return engine.run(request)


__all__ = [
    "SyncRequest",
    "ReconciliationEngine",
    "validate_row",
    "meets_minimum",
    "specs_flag",
    "sync_jobs_from_workbook",
]
