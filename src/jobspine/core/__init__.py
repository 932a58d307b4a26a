"""
job-spine core primitives.

Tier-agnostic building blocks shared by the sync engine and the CLI:
errors, structured logging, settings, store protocols and value objects.
The SQLAlchemy layer lives in ``jobspine.core.orm`` and
``jobspine.core.repositories`` and is imported explicitly.
"""

from jobspine.core.enums import JobSource, PolicyOutcome
from jobspine.core.errors import (
    ConfigError,
    DatabaseError,
    ErrorCategory,
    JobSpineError,
    ParseError,
    SourceError,
    SourceNotFoundError,
    ValidationError,
)
from jobspine.core.models import ExistingRecord, JobFields, UpsertOutcome
from jobspine.core.protocols import ManagerDirectory, RecordStore

__all__ = [
    # Enums
    "JobSource",
    "PolicyOutcome",
    # Errors
    "ErrorCategory",
    "JobSpineError",
    "SourceError",
    "SourceNotFoundError",
    "ParseError",
    "ValidationError",
    "ConfigError",
    "DatabaseError",
    # Values
    "ExistingRecord",
    "UpsertOutcome",
    "JobFields",
    # Protocols
    "ManagerDirectory",
    "RecordStore",
]
