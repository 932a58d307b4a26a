"""
Tests for the reconciliation engine.

Covers:
- the worked example (one row, known manager, empty store)
- idempotency, protection, dry-run non-mutation, row isolation,
  header flexibility and job-number normalization
- batch-fatal inputs and the minimum job-number filter
"""

from __future__ import annotations

import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from jobspine.core.enums import JobSource
from jobspine.core.errors import DatabaseError
from jobspine.core.orm.tables import JobTable, SupplierTable
from jobspine.core.protocols import ManagerDirectory
from jobspine.core.settings import JobSpineSettings
from jobspine.sync.engine import (
    ReconciliationEngine,
    SyncRequest,
    meets_minimum,
    sync_jobs_from_workbook,
)
from jobspine.sync.policy import ConflictPolicy

IMPORTED_AT = datetime.datetime(2024, 3, 1, 8, 0)
HEADER = ["Job No", "Job Name", "Client", "Supervisor"]


def _clock():
    return IMPORTED_AT


@pytest.fixture
def engine_for(store, directory):
    def _make(*, allow_overwrite_app=False, min_job_number=0, managers=None):
        return ReconciliationEngine(
            store,
            managers or directory,
            ConflictPolicy(allow_overwrite_app=allow_overwrite_app),
            min_job_number=min_job_number,
            clock=_clock,
        )

    return _make


def _jobs(session):
    return {
        job.job_number: job
        for job in session.execute(select(JobTable).order_by(JobTable.job_number)).scalars()
    }


def _snapshot(session):
    session.expire_all()
    return {
        number: {c.name: getattr(job, c.name) for c in JobTable.__table__.columns}
        for number, job in _jobs(session).items()
    }


def _without_ids(state):
    volatile = {"id", "created_at", "updated_at"}
    return {n: {k: v for k, v in row.items() if k not in volatile} for n, row in state.items()}


# =============================================================================
# Worked example
# =============================================================================


@pytest.mark.golden
class TestExampleScenario:
    def test_single_row_with_known_manager(self, engine_for, make_workbook, manager, session):
        data = make_workbook(
            [["Job No", "Job Name", "Supervisor"], [4521, "Riverside Block A", "J. Moyo"]]
        )

        result = engine_for().run(SyncRequest(source_bytes=data, file_name="jobs.xlsx"))

        assert result.success is True
        assert result.summary.created == 1
        assert result.summary.updated == 0
        assert result.summary.errors == 0

        job = _jobs(session)["4521"]
        assert job.site_name == "Riverside Block A"
        assert job.manager_id == manager.id
        assert job.manager_name_raw == "J. Moyo"
        assert job.source == JobSource.EXCEL.value
        assert job.excel_file_name == "jobs.xlsx"
        assert job.excel_sheet_name == "Proj Data"
        assert job.excel_row_ref == "Proj Data:R1"
        assert job.imported_at == IMPORTED_AT


# =============================================================================
# Basic behaviour
# =============================================================================


class TestRun:
    def test_summary_identity(self, engine_for, make_workbook):
        data = make_workbook([HEADER, [1, "A"]], extra_sheets={"Notes": [["x"]]})
        summary = engine_for().run(SyncRequest(source_bytes=data)).summary

        assert summary.file_name == "uploaded.xlsx"
        assert summary.sheet_names == ("Proj Data", "Notes")
        assert summary.sheet_name == "Proj Data"
        assert summary.dry_run is False

    def test_file_name_from_path(self, engine_for, workbook_path):
        path = workbook_path([HEADER, [1, "A"]])
        summary = engine_for().run(SyncRequest(source_path=path)).summary
        assert summary.file_name == "Contract Data.xlsx"

    def test_invalid_rows_are_skips_not_errors(self, engine_for, make_workbook, session):
        data = make_workbook(
            [
                HEADER,
                [1, "Site A"],
                [None, "No number"],
                [3, None],
                ["   ", "  "],
                [5, "Site E"],
            ]
        )
        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.success is True
        assert result.summary.rows_read == 4
        assert result.summary.rows_skipped == 2
        assert result.summary.created == 2
        assert set(_jobs(session)) == {"1", "5"}

    def test_unknown_manager_keeps_raw_name(self, engine_for, make_workbook, session):
        data = make_workbook([HEADER, [1, "A", None, "  Somebody   Else "]])
        engine_for().run(SyncRequest(source_bytes=data))

        job = _jobs(session)["1"]
        assert job.manager_id is None
        assert job.manager_name_raw == "Somebody Else"

    def test_client_and_specs(self, engine_for, make_workbook, session):
        data = make_workbook(
            [
                ["Job", "Site", "Company", "SpecsRecieved"],
                [1, "A", "Acme", "yes"],
                [2, "B", None, None],
            ]
        )
        engine_for().run(SyncRequest(source_bytes=data))

        jobs = _jobs(session)
        assert jobs["1"].client == "Acme"
        assert jobs["1"].specs_received is True
        assert jobs["2"].client is None
        assert jobs["2"].specs_received is False

    def test_shared_import_timestamp(self, engine_for, make_workbook, session):
        data = make_workbook([HEADER, [1, "A"], [2, "B"], [3, "C"]])
        engine_for().run(SyncRequest(source_bytes=data))
        assert {job.imported_at for job in _jobs(session).values()} == {IMPORTED_AT}

    def test_requested_sheet(self, engine_for, make_workbook, session):
        data = make_workbook([["x"]], sheet_name="Summary", extra_sheets={"Proj Data": [HEADER, [7, "G"]]})
        result = engine_for().run(SyncRequest(source_bytes=data, sheet_name="Proj Data"))
        assert result.summary.sheet_name == "Proj Data"
        assert _jobs(session)["7"].excel_row_ref == "Proj Data:R1"

    def test_missing_sheet_falls_back_to_first(self, engine_for, make_workbook):
        data = make_workbook([HEADER, [1, "A"]])
        result = engine_for().run(SyncRequest(source_bytes=data, sheet_name="Nope"))
        assert result.success is True
        assert result.summary.sheet_name == "Proj Data"
        assert result.summary.created == 1

    @pytest.mark.parametrize("rows", [[], [HEADER]])
    def test_fewer_than_two_rows(self, engine_for, make_workbook, rows):
        result = engine_for().run(SyncRequest(source_bytes=make_workbook(rows)))
        assert result.success is True
        assert result.summary.rows_read == 0
        assert result.summary.created == 0
        assert result.errors == ()

    def test_blank_rows_keep_row_refs(self, engine_for, make_workbook, session):
        data = make_workbook([HEADER, [1, "A"], [None, None], [3, "C"]])
        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.summary.rows_read == 2
        assert _jobs(session)["3"].excel_row_ref == "Proj Data:R3"

    def test_update_keeps_existing_supplier(self, engine_for, make_workbook, add_job, session):
        supplier = SupplierTable(name="Acme Plumbing")
        session.add(supplier)
        session.commit()
        add_job("4521", "Old feed site", source=JobSource.EXCEL, supplier_id=supplier.id)
        data = make_workbook([["Job No", "Job Name"], [4521, "New feed site"]])

        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.summary.updated == 1
        session.expire_all()
        job = _jobs(session)["4521"]
        assert job.site_name == "New feed site"
        assert job.supplier_id == supplier.id


# =============================================================================
# Batch-fatal failures
# =============================================================================


class TestBatchFatal:
    def test_no_source(self, engine_for):
        result = engine_for().run(SyncRequest())
        assert result.success is False
        assert result.summary is None
        assert len(result.errors) == 1
        assert result.errors[0].row_ref == "N/A"

    def test_both_sources(self, engine_for, make_workbook, workbook_path):
        result = engine_for().run(
            SyncRequest(source_bytes=make_workbook([HEADER]), source_path=workbook_path([HEADER]))
        )
        assert result.summary is None

    def test_unreadable_workbook(self, engine_for, session):
        result = engine_for().run(SyncRequest(source_bytes=b"definitely not xlsx"))
        assert result.success is False
        assert result.summary is None
        assert result.errors[0].message.startswith("Failed to read Excel")
        assert _jobs(session) == {}

    def test_missing_path(self, engine_for, tmp_path):
        result = engine_for().run(SyncRequest(source_path=tmp_path / "gone.xlsx"))
        assert result.summary is None
        assert "File not found" in result.errors[0].message


# =============================================================================
# Testable properties
# =============================================================================


class TestIdempotency:
    def test_second_run_updates_same_rows(self, engine_for, make_workbook, session, manager):
        data = make_workbook([HEADER, [1, "A", "Acme", "J. Moyo"], [2, "B", None, None], [None, "skip"]])

        first = engine_for().run(SyncRequest(source_bytes=data))
        after_first = _snapshot(session)
        second = engine_for().run(SyncRequest(source_bytes=data))
        after_second = _snapshot(session)

        assert (first.summary.created, first.summary.updated) == (2, 0)
        assert (second.summary.created, second.summary.updated) == (0, 2)

        ignored = {"updated_at"}
        for number, row in after_first.items():
            assert {k: v for k, v in row.items() if k not in ignored} == {
                k: v for k, v in after_second[number].items() if k not in ignored
            }


class TestProtection:
    def test_app_job_untouched(self, engine_for, make_workbook, add_job, session):
        add_job("4521", "Hand-edited site", client="Original Client")
        before = _snapshot(session)

        data = make_workbook([HEADER, [4521, "Feed site", "Feed Client", "J. Moyo"], [4522, "New site"]])
        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.success is True
        assert result.summary.protected == 1
        assert result.summary.created == 1
        assert result.summary.updated == 0
        assert _snapshot(session)["4521"] == before["4521"]

    def test_override_updates_and_retags(self, engine_for, make_workbook, add_job, session):
        add_job("4521", "Hand-edited site")
        data = make_workbook([HEADER, [4521, "Feed site"]])

        result = engine_for(allow_overwrite_app=True).run(SyncRequest(source_bytes=data))

        assert result.summary.protected == 0
        assert result.summary.updated == 1
        session.expire_all()
        job = _jobs(session)["4521"]
        assert job.site_name == "Feed site"
        assert job.source == JobSource.EXCEL.value

    def test_excel_job_is_refreshed(self, engine_for, make_workbook, add_job, session):
        add_job("4521", "Old feed site", source=JobSource.EXCEL)
        data = make_workbook([HEADER, [4521, "New feed site"]])

        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.summary.updated == 1
        session.expire_all()
        assert _jobs(session)["4521"].site_name == "New feed site"


class TestDryRun:
    def test_no_mutation_and_matching_counts(self, engine_for, make_workbook, add_job, session):
        add_job("1", "Feed job", source=JobSource.EXCEL)
        add_job("2", "App job")
        before = _snapshot(session)

        data = make_workbook([HEADER, [1, "A"], [2, "B"], [3, "C"], [4, "D"], [None, "skip"]])
        dry = engine_for().run(SyncRequest(source_bytes=data, dry_run=True))

        assert _snapshot(session) == before
        assert dry.summary.dry_run is True
        assert (dry.summary.would_create, dry.summary.would_update) == (2, 1)
        assert (dry.summary.created, dry.summary.updated) == (0, 0)
        assert dry.summary.protected == 1
        assert dry.summary.rows_skipped == 1

        real = engine_for().run(SyncRequest(source_bytes=data))
        assert real.summary.created + real.summary.updated == dry.summary.would_create + dry.summary.would_update
        assert (real.summary.would_create, real.summary.would_update) == (0, 0)

    def test_dry_run_does_not_call_upsert(self, directory, make_workbook):
        fake_store = MagicMock()
        fake_store.find_record_by_natural_key.return_value = None
        engine = ReconciliationEngine(fake_store, directory, ConflictPolicy())

        engine.run(SyncRequest(source_bytes=make_workbook([HEADER, [1, "A"]]), dry_run=True))

        fake_store.upsert_record.assert_not_called()


class TestRowIsolation:
    def test_one_failing_lookup_among_ten_rows(self, engine_for, make_workbook, session, directory):
        def lookup(name, case_insensitive=True):
            if name == "Broken Name":
                raise DatabaseError("Manager lookup failed: database is locked")
            return directory.find_manager_id_by_exact_name(name, case_insensitive)

        flaky = MagicMock(spec=ManagerDirectory)
        flaky.find_manager_id_by_exact_name.side_effect = lookup

        rows = [HEADER] + [[n, f"Site {n}", None, "Nobody"] for n in range(1, 11)]
        rows[5][3] = "Broken Name"
        result = engine_for(managers=flaky).run(SyncRequest(source_bytes=make_workbook(rows)))

        assert result.success is False
        assert result.summary.errors == 1
        assert result.summary.created == 9
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.row_ref == "Proj Data:R5"
        assert error.job_number == "5"
        assert error.message == "Manager lookup failed: database is locked"
        assert set(_jobs(session)) == {str(n) for n in range(1, 11)} - {"5"}

    def test_failing_upsert_is_isolated(self, engine_for, make_workbook, store, session, monkeypatch):
        real_upsert = store.upsert_record

        def upsert(job_number, fields):
            if job_number == "2":
                raise RuntimeError("disk full")
            return real_upsert(job_number, fields)

        monkeypatch.setattr(store, "upsert_record", upsert)
        data = make_workbook([HEADER, [1, "A"], [2, "B"], [3, "C"]])
        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.summary.created == 2
        assert [(e.row_ref, e.message) for e in result.errors] == [("Proj Data:R2", "disk full")]


class TestHeaderFlexibility:
    def test_alias_sets_give_identical_results(self, make_workbook, session, manager, engine_for):
        body = [[4521, "Riverside Block A", "J. Moyo"], [4522, "Hilltop", "Nobody"]]
        first = make_workbook([["Job No", "Job Name", "Supervisor"]] + body)
        second = make_workbook([["Job #", "Project", "Manager Name"]] + body)

        r1 = engine_for().run(SyncRequest(source_bytes=first, file_name="jobs.xlsx"))
        state1 = _snapshot(session)
        session.query(JobTable).delete()
        session.commit()
        r2 = engine_for().run(SyncRequest(source_bytes=second, file_name="jobs.xlsx"))
        state2 = _snapshot(session)

        assert r1.summary == r2.summary
        assert _without_ids(state1) == _without_ids(state2)


class TestJobNumberNormalization:
    def test_float_artifact_matches_existing(self, engine_for, make_workbook, add_job, session):
        add_job("4521", "Old", source=JobSource.EXCEL)
        data = make_workbook([HEADER, ["4521.0", "New"]])

        result = engine_for().run(SyncRequest(source_bytes=data))

        assert result.summary.updated == 1
        assert result.summary.created == 0
        session.expire_all()
        assert set(_jobs(session)) == {"4521"}

    def test_float_artifact_stored_clean(self, engine_for, make_workbook, session):
        engine_for().run(SyncRequest(source_bytes=make_workbook([HEADER, ["4521.0", "A"]])))
        assert set(_jobs(session)) == {"4521"}


# =============================================================================
# Minimum job number
# =============================================================================


class TestMinimumJobNumber:
    @pytest.mark.parametrize(
        ("job_number", "minimum", "expected"),
        [
            ("4521", 0, True),
            ("A-17", 0, True),
            ("4521", 4000, True),
            ("4000", 4000, True),
            ("3999", 4000, False),
            ("A-17", 4000, False),
        ],
    )
    def test_meets_minimum(self, job_number, minimum, expected):
        assert meets_minimum(job_number, minimum) is expected

    def test_filtered_rows_counted_separately(self, engine_for, make_workbook, session):
        data = make_workbook([HEADER, [3999, "Old"], ["X-1", "Odd"], [4000, "Edge"], [None, "skip"]])
        result = engine_for(min_job_number=4000).run(SyncRequest(source_bytes=data))

        assert result.summary.skipped_below_min == 2
        assert result.summary.rows_skipped == 1
        assert result.summary.created == 1
        assert set(_jobs(session)) == {"4000"}


# =============================================================================
# Settings entry point
# =============================================================================


class TestSyncJobsFromWorkbook:
    def test_reads_override_from_settings(self, make_workbook, add_job, store, directory, session):
        add_job("1", "App")
        data = make_workbook([HEADER, [1, "Feed"]])

        protected = sync_jobs_from_workbook(SyncRequest(source_bytes=data), store=store, directory=directory)
        assert protected.summary.protected == 1

        settings = JobSpineSettings(allow_overwrite_app_jobs=True)
        result = sync_jobs_from_workbook(
            SyncRequest(source_bytes=data), store=store, directory=directory, settings=settings
        )
        assert result.summary.updated == 1

    def test_reads_min_job_number_from_environment(self, monkeypatch, make_workbook, store, directory):
        monkeypatch.setenv("JOBSPINE_MIN_JOB_NUMBER", "10")
        data = make_workbook([HEADER, [5, "A"], [15, "B"]])
        result = sync_jobs_from_workbook(SyncRequest(source_bytes=data), store=store, directory=directory)
        assert result.summary.skipped_below_min == 1
        assert result.summary.created == 1
