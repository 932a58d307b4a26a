"""
UTC timestamp helpers.

The reconciliation engine stamps every job it writes in one run with the
same ``imported_at``; it takes that instant from an injectable clock whose
default is :func:`utc_now`.

Tags:
    timestamps, utc, datetime, job-spine

STDLIB ONLY - NO PYDANTIC.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


__all__ = [
    "Clock",
    "utc_now",
]
