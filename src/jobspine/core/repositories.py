"""SQLAlchemy-backed manager directory and job record store.

Manifesto:
    The reconciliation engine only ever needs two things from the database:
    an exact-name manager lookup and an idempotent upsert keyed by job
    number. Both live here so the engine can stay free of ORM imports.

Each ``upsert_record`` call commits (or rolls back) its own transaction, so
one failing row leaves no partial write and does not poison the session for
the rows after it.

Tags:
    job-spine, repository, sqlalchemy, upsert, natural-key

Doc-Types:
    api-reference
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobspine.core.enums import JobSource
from jobspine.core.errors import DatabaseError
from jobspine.core.logging import get_logger
from jobspine.core.models import ExistingRecord, JobFields, UpsertOutcome
from jobspine.core.orm.tables import JobTable, ManagerTable
from jobspine.core.text import normalize_name

logger = get_logger(__name__)


class SqlManagerDirectory:
    """Read-only manager lookup over the ``managers`` table."""

    def __init__(self, session: Session):
        self._session = session

    def find_manager_id_by_exact_name(
        self, name: str, case_insensitive: bool = True
    ) -> str | None:
        """Return the id of the manager named *name*.

        Stored names are compared after the same whitespace normalization as
        the input, so ``"J.  Moyo "`` in the table still matches ``"J. Moyo"``.
        """
        wanted = normalize_name(name)
        if not wanted:
            return None

        try:
            if case_insensitive:
                stmt = select(ManagerTable.id).where(
                    func.lower(ManagerTable.name) == wanted.lower()
                )
            else:
                stmt = select(ManagerTable.id).where(ManagerTable.name == wanted)
            found = self._session.execute(stmt.limit(1)).scalar_one_or_none()
            if found is not None:
                return found

            # Stored names with stray whitespace only match after normalizing
            rows = self._session.execute(select(ManagerTable.id, ManagerTable.name)).all()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise DatabaseError(
                f"Manager lookup failed: {e}", cause=e
            ).with_context(manager_name=wanted)

        target = wanted.lower() if case_insensitive else wanted
        for manager_id, stored in rows:
            candidate = normalize_name(stored)
            if case_insensitive:
                candidate = candidate.lower()
            if candidate == target:
                return manager_id
        return None


class SqlJobStore:
    """Job record store over the ``jobs`` table, keyed by ``job_number``."""

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def get_job(self, job_number: str) -> JobTable | None:
        """Load the mapped job row (for callers that need every column)."""
        return self._session.execute(
            select(JobTable).where(JobTable.job_number == job_number)
        ).scalar_one_or_none()

    def find_record_by_natural_key(self, job_number: str) -> ExistingRecord | None:
        try:
            job = self.get_job(job_number)
        except SQLAlchemyError as e:
            self._session.rollback()
            raise DatabaseError(
                f"Job lookup failed: {e}", cause=e
            ).with_context(job_number=job_number)
        if job is None:
            return None
        return ExistingRecord(
            id=job.id,
            source=JobSource(job.source),
            manager_id=job.manager_id,
            supplier_id=job.supplier_id,
        )

    def upsert_record(self, job_number: str, fields: JobFields) -> UpsertOutcome:
        """Insert or update the job in its own transaction."""
        try:
            job = self.get_job(job_number)
            was_created = job is None
            if job is None:
                job = JobTable(job_number=job_number)
                self._session.add(job)
            for column, value in fields.to_columns().items():
                setattr(job, column, value)
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise DatabaseError(
                f"Failed to upsert job {job_number}: {e}", cause=e
            ).with_context(job_number=job_number)

        logger.debug(
            "job_upserted",
            job_number=job_number,
            job_id=job.id,
            was_created=was_created,
            source=fields.source.value,
        )
        return UpsertOutcome(id=job.id, was_created=was_created)


__all__ = [
    "SqlManagerDirectory",
    "SqlJobStore",
]
