"""
Shared pytest fixtures and configuration for job-spine tests.

This module provides:
- Settings isolation (no stray ``JOBSPINE_*`` variables or ``.env`` files)
- In-memory SQLite engine/session with all tables created
- Store, manager directory and seeded manager/job fixtures
- An openpyxl workbook builder returning ``.xlsx`` bytes

Usage:
    def test_something(make_workbook, store, directory):
        data = make_workbook([["Job No", "Job Name"], [4521, "Riverside"]])
        ...
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog
from openpyxl import Workbook

from jobspine.core.enums import JobSource
from jobspine.core.orm import (
    JobTable,
    ManagerTable,
    create_jobspine_engine,
    init_database,
    jobspine_session_factory,
)
from jobspine.core.repositories import SqlJobStore, SqlManagerDirectory
from jobspine.core.settings import clear_settings_cache

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow", "golden"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Run every test in an empty directory with no ``JOBSPINE_*`` variables."""
    for key in list(os.environ):
        if key.startswith("JOBSPINE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration done by a test (the CLI configures on every call)."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for handler in logging.root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            logging.root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_jobspine_engine("sqlite:///:memory:")
    init_database(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    s = jobspine_session_factory(engine)()
    yield s
    s.close()


@pytest.fixture
def store(session) -> SqlJobStore:
    return SqlJobStore(session)


@pytest.fixture
def directory(session) -> SqlManagerDirectory:
    return SqlManagerDirectory(session)


@pytest.fixture
def manager(session) -> ManagerTable:
    """Manager ``J. Moyo`` in the directory."""
    m = ManagerTable(name="J. Moyo", email="j.moyo@example.com")
    session.add(m)
    session.commit()
    return m


@pytest.fixture
def add_job(session) -> Callable[..., JobTable]:
    """Insert a job directly (application-authored unless ``source`` says otherwise)."""

    def _add(job_number: str, site_name: str = "App Site", *, source: JobSource = JobSource.APP, **kwargs: Any) -> JobTable:
        job = JobTable(job_number=job_number, site_name=site_name, source=source.value, **kwargs)
        session.add(job)
        session.commit()
        return job

    return _add


# =============================================================================
# Workbook builder
# =============================================================================


def build_workbook(
    rows: Sequence[Sequence[Any]] | None = None,
    *,
    sheet_name: str = "Proj Data",
    extra_sheets: dict[str, Sequence[Sequence[Any]]] | None = None,
) -> bytes:
    """Build an ``.xlsx`` workbook in memory and return its bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for row in rows or []:
        ws.append(list(row))
    for name, sheet_rows in (extra_sheets or {}).items():
        extra = wb.create_sheet(name)
        for row in sheet_rows:
            extra.append(list(row))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_workbook() -> Callable[..., bytes]:
    return build_workbook


@pytest.fixture
def workbook_path(tmp_path) -> Callable[..., Path]:
    """Write a built workbook to ``tmp_path`` and return its path."""

    def _write(rows: Sequence[Sequence[Any]], name: str = "Contract Data.xlsx", **kwargs: Any) -> Path:
        path = tmp_path / name
        path.write_bytes(build_workbook(rows, **kwargs))
        return path

    return _write
