"""
Worksheet-to-job reconciliation.

Usage:
    from jobspine.sync import SyncRequest, sync_jobs_from_workbook

    result = sync_jobs_from_workbook(
        SyncRequest(source_path="Contract Data.xlsx", dry_run=True),
        store=store,
        directory=directory,
    )
"""

from jobspine.sync.engine import ReconciliationEngine, SyncRequest, sync_jobs_from_workbook
from jobspine.sync.extract import IncomingJob, extract_jobs
from jobspine.sync.headers import normalize_header, resolve_headers
from jobspine.sync.managers import ManagerMatch, ManagerResolver
from jobspine.sync.policy import ConflictPolicy
from jobspine.sync.receiver import ReceiveResult, apply_incoming_jobs
from jobspine.sync.rows import RowRecord, RowRef, materialize_keyed_rows, materialize_rows
from jobspine.sync.summary import BatchSummary, RowError, SummaryBuilder, SyncResult
from jobspine.sync.watcher import SyncWatcher

__all__ = [
    # Engine
    "SyncRequest",
    "ReconciliationEngine",
    "sync_jobs_from_workbook",
    # Rows
    "normalize_header",
    "resolve_headers",
    "RowRef",
    "RowRecord",
    "materialize_rows",
    "materialize_keyed_rows",
    # Resolution / policy
    "ManagerMatch",
    "ManagerResolver",
    "ConflictPolicy",
    # Summary
    "BatchSummary",
    "RowError",
    "SummaryBuilder",
    "SyncResult",
    # Extraction / push / watch
    "IncomingJob",
    "extract_jobs",
    "ReceiveResult",
    "apply_incoming_jobs",
    "SyncWatcher",
]
