"""Job and manager table definitions.

``jobs.job_number`` is the natural key: unique, case-sensitive, stored
trimmed and without the ``.0`` float artifact worksheets tend to produce.

Tags:
    job-spine, orm, sqlalchemy, tables

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jobspine.core.enums import JobSource
from jobspine.core.orm.base import JobSpineBase, TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class ManagerTable(TimestampMixin, JobSpineBase):
    __tablename__ = "managers"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(Text)

    # --- relationships ---
    jobs: Mapped[list[JobTable]] = relationship("JobTable", back_populates="manager")


class SupplierTable(TimestampMixin, JobSpineBase):
    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class JobTable(TimestampMixin, JobSpineBase):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    job_number: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    site_name: Mapped[str] = mapped_column(Text, nullable=False)
    client: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str] = mapped_column(
        Text, nullable=False, default=JobSource.APP.value
    )

    manager_id: Mapped[str | None] = mapped_column(Text, ForeignKey("managers.id"))
    manager_name_raw: Mapped[str | None] = mapped_column(Text)
    supplier_id: Mapped[str | None] = mapped_column(Text, ForeignKey("suppliers.id"))
    specs_received: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- feed provenance (EXCEL jobs only) ---
    excel_file_name: Mapped[str | None] = mapped_column(Text)
    excel_sheet_name: Mapped[str | None] = mapped_column(Text)
    excel_row_ref: Mapped[str | None] = mapped_column(Text)
    imported_at: Mapped[datetime.datetime | None] = mapped_column(DateTime)

    # --- relationships ---
    manager: Mapped[ManagerTable | None] = relationship(
        "ManagerTable", back_populates="jobs"
    )


__all__ = [
    "ManagerTable",
    "SupplierTable",
    "JobTable",
]
