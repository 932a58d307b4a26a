"""
Canonical protocol definitions for job-spine.

Manifesto:
    The reconciliation engine depends on the *shape* of its collaborators,
    not on SQLAlchemy. Protocols keep that contract in one place:

    - **Decoupling:** The engine never imports the ORM layer
    - **Testability:** Any object matching the protocol works (fakes, mocks)
    - **Portability:** The same engine runs against another store

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── ManagerDirectory  read-only exact-name manager lookup
        └── RecordStore       natural-key lookup + idempotent upsert

    Implementations:
        jobspine.core.repositories.SqlManagerDirectory
        jobspine.core.repositories.SqlJobStore

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts - implementations go in repositories

Tags:
    protocol, typing, structural-subtyping, job-spine
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jobspine.core.models import ExistingRecord, JobFields, UpsertOutcome


@runtime_checkable
class ManagerDirectory(Protocol):
    """
    Read-only lookup of managers by display name.

    Implementations compare names exactly after whitespace normalization;
    ``case_insensitive`` relaxes only letter case, never spelling.
    """

    def find_manager_id_by_exact_name(
        self, name: str, case_insensitive: bool = True
    ) -> str | None:
        """Return the manager id for *name*, or ``None`` when unknown."""
        ...


@runtime_checkable
class RecordStore(Protocol):
    """
    Job record store keyed by the human-assigned job number.

    The store guarantees the job number is globally unique and that each
    upsert is atomic (no partial write is visible to a concurrent reader).
    """

    def find_record_by_natural_key(self, job_number: str) -> ExistingRecord | None:
        """Return the stored job for *job_number*, or ``None``."""
        ...

    def upsert_record(self, job_number: str, fields: JobFields) -> UpsertOutcome:
        """Create or update the job for *job_number* in one transaction."""
        ...


__all__ = [
    "ManagerDirectory",
    "RecordStore",
]
