"""
Shared enums for job-spine.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class JobSource(str, Enum):
    """
    Provenance of the last write to a job record.

    APP jobs were created or edited by an operator inside the application and
    are protected from the worksheet feed. EXCEL jobs were last written by a
    feed pass and may be refreshed by the next one.
    """

    APP = "APP"
    EXCEL = "EXCEL"


class PolicyOutcome(str, Enum):
    """Decision for a single candidate row against the current store state."""

    CREATE = "create"
    UPDATE = "update"
    PROTECTED = "protected"


__all__ = [
    "JobSource",
    "PolicyOutcome",
]
