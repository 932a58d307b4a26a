"""SQLAlchemy 2.0 ORM layer for job-spine.

Modules
-------
base        JobSpineBase (declarative base) + TimestampMixin
session     Engine factory, JobSpineSession, init_database
tables      ManagerTable, SupplierTable, JobTable

Tags:
    job-spine, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from jobspine.core.orm.base import JobSpineBase, TimestampMixin
from jobspine.core.orm.session import (
    JobSpineSession,
    create_jobspine_engine,
    init_database,
    jobspine_session_factory,
)
from jobspine.core.orm.tables import JobTable, ManagerTable, SupplierTable

__all__ = [
    "JobSpineBase",
    "TimestampMixin",
    "create_jobspine_engine",
    "JobSpineSession",
    "jobspine_session_factory",
    "init_database",
    "JobTable",
    "ManagerTable",
    "SupplierTable",
]
