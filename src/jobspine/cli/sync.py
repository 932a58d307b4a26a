"""
CLI: ``jobspine sync``: worksheet reconciliation commands.

    jobspine sync run "Contract Data.xlsx" --sheet "Proj Data" --dry-run
    jobspine sync extract "Contract Data.xlsx" > jobs.json
    jobspine sync receive jobs.json
    jobspine sync watch --interval 120
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from sqlalchemy.exc import SQLAlchemyError

from jobspine.cli.utils import (
    console,
    fail,
    open_session,
    print_json,
    print_row_errors,
    print_sync_result,
)
from jobspine.core.errors import ConfigError, JobSpineError, ValidationError
from jobspine.core.logging import get_logger
from jobspine.core.repositories import SqlJobStore, SqlManagerDirectory
from jobspine.core.settings import JobSpineSettings, get_settings
from jobspine.sync.engine import SyncRequest, sync_jobs_from_workbook
from jobspine.sync.extract import IncomingJob, extract_jobs
from jobspine.sync.policy import ConflictPolicy
from jobspine.sync.receiver import apply_incoming_jobs
from jobspine.sync.summary import SyncResult
from jobspine.sync.watcher import SyncWatcher

app = typer.Typer(no_args_is_help=True)

logger = get_logger(__name__)


def _resolve_path(path: Path | None, settings: JobSpineSettings) -> Path:
    try:
        return settings.require_excel_path(path)
    except ConfigError as e:
        raise fail(e.message) from e


def _run_sync(
    path: Path,
    *,
    sheet: str | None,
    dry_run: bool,
    database: str | None,
    settings: JobSpineSettings,
) -> SyncResult:
    try:
        with open_session(database) as session:
            return sync_jobs_from_workbook(
                SyncRequest(source_path=path, sheet_name=sheet, dry_run=dry_run),
                store=SqlJobStore(session),
                directory=SqlManagerDirectory(session),
                settings=settings,
            )
    except SQLAlchemyError as e:
        raise fail(f"Database unavailable: {e}") from e


@app.command()
def run(
    path: Path | None = typer.Argument(None, help="Workbook (.xlsx); defaults to JOBSPINE_EXCEL_PATH"),
    sheet: str | None = typer.Option(None, "--sheet", "-s", help="Worksheet name (falls back to the first sheet)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without writing"),
    allow_overwrite_app: bool = typer.Option(
        False, "--allow-overwrite-app", help="Overwrite jobs authored in the application"
    ),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when any row failed"),
) -> None:
    """Reconcile a workbook into the job store."""
    settings = get_settings()
    if allow_overwrite_app:
        settings = settings.model_copy(update={"allow_overwrite_app_jobs": True})

    result = _run_sync(
        _resolve_path(path, settings),
        sheet=sheet or settings.sheet_name,
        dry_run=dry_run,
        database=database,
        settings=settings,
    )

    if json_out:
        print_json(result.to_dict())
    else:
        print_sync_result(result)

    if result.summary is None or (strict and result.errors):
        raise typer.Exit(code=1)


@app.command()
def extract(
    path: Path | None = typer.Argument(None, help="Workbook (.xlsx); defaults to JOBSPINE_EXCEL_PATH"),
    sheet: str | None = typer.Option(None, "--sheet", "-s", help="Worksheet name"),
    database: str | None = typer.Option(
        None, "--database", "-d", help="Resolve manager names against this database"
    ),
) -> None:
    """Print the jobs a sync would import, as JSON, without writing."""
    settings = get_settings()
    workbook = _resolve_path(path, settings)
    try:
        if database:
            with open_session(database) as session:
                jobs = extract_jobs(
                    workbook,
                    sheet or settings.sheet_name,
                    SqlManagerDirectory(session),
                    min_job_number=settings.min_job_number,
                )
        else:
            jobs = extract_jobs(workbook, sheet or settings.sheet_name, min_job_number=settings.min_job_number)
    except JobSpineError as e:
        raise fail(e.message) from e

    print_json({"jobs": [job.to_dict() for job in jobs]})


@app.command()
def receive(
    payload: Path = typer.Argument(..., help='JSON file: {"jobs": [...]} as printed by `sync extract`'),
    allow_overwrite_app: bool = typer.Option(False, "--allow-overwrite-app"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Apply previously extracted jobs to the job store."""
    try:
        body = json.loads(payload.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise fail(f"Cannot read {payload}: {e}") from e

    raw_jobs = body.get("jobs") if isinstance(body, dict) else body
    if not isinstance(raw_jobs, list) or not raw_jobs:
        raise fail("Payload must be {\"jobs\": [...]} with at least one job")
    try:
        jobs = [IncomingJob.from_dict(item) for item in raw_jobs]
    except ValidationError as e:
        raise fail(e.message) from e

    settings = get_settings()
    policy = ConflictPolicy(allow_overwrite_app=allow_overwrite_app or settings.allow_overwrite_app_jobs)
    with open_session(database) as session:
        result = apply_incoming_jobs(jobs, store=SqlJobStore(session), policy=policy)

    if json_out:
        print_json(result.to_dict())
        return
    console.print(
        f"created [green]{result.created}[/green]  updated [green]{result.updated}[/green]  "
        f"protected [yellow]{result.protected}[/yellow]  errors [red]{len(result.errors)}[/red]"
    )
    if result.errors:
        print_row_errors(result.errors)


@app.command()
def watch(
    path: Path | None = typer.Argument(None, help="Workbook (.xlsx); defaults to JOBSPINE_EXCEL_PATH"),
    sheet: str | None = typer.Option(None, "--sheet", "-s", help="Worksheet name"),
    interval: float | None = typer.Option(
        None, "--interval", "-i", min=1.0, help="Re-sync interval in seconds (default 120)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without writing"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    once: bool = typer.Option(False, "--once", help="Run a single sync and exit"),
) -> None:
    """Re-sync whenever the workbook changes and on a fixed interval."""
    settings = get_settings()
    workbook = _resolve_path(path, settings)

    def _sync(target: Path) -> None:
        result = _run_sync(
            target,
            sheet=sheet or settings.sheet_name,
            dry_run=dry_run,
            database=database,
            settings=settings,
        )
        print_sync_result(result)

    watcher = SyncWatcher(
        workbook,
        _sync,
        interval_seconds=interval or settings.watch_interval_seconds,
    )

    if once:
        watcher.run_once(force=True)
        return

    console.print(f"Watching [cyan]{workbook}[/cyan] (Ctrl+C to stop)")
    watcher.start()
    try:
        watcher.wait()
    except KeyboardInterrupt:
        logger.info("watch_interrupted", path=str(workbook))
    finally:
        watcher.stop()
