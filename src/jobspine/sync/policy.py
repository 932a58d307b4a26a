"""
Conflict policy between the application and the worksheet feed.

Decision table:

    ===============  ===============  ===================================
    Existing record  Existing source  Outcome
    ===============  ===============  ===================================
    none             -                CREATE
    exists           EXCEL            UPDATE
    exists           APP              PROTECTED (UPDATE with override)
    ===============  ===============  ===================================

A job an operator created or edited inside the application is never
overwritten by a later feed pass. The feed may create jobs and refresh the
ones it created itself. ``allow_overwrite_app`` is an operator-level escape
hatch, passed in explicitly; the policy never reads the environment.
"""

from __future__ import annotations

from dataclasses import dataclass

from jobspine.core.enums import JobSource, PolicyOutcome
from jobspine.core.models import ExistingRecord


@dataclass(frozen=True, slots=True)
class ConflictPolicy:
    allow_overwrite_app: bool = False

    def evaluate(self, existing: ExistingRecord | None) -> PolicyOutcome:
        if existing is None:
            return PolicyOutcome.CREATE
        if existing.source == JobSource.APP and not self.allow_overwrite_app:
            return PolicyOutcome.PROTECTED
        return PolicyOutcome.UPDATE


__all__ = ["ConflictPolicy"]
