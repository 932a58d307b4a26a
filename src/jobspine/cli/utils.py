"""
CLI utility helpers: output formatting and database sessions.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.json import JSON
from rich.table import Table
from sqlalchemy.engine import Engine

from jobspine.core.orm import create_jobspine_engine, init_database, jobspine_session_factory
from jobspine.core.orm.session import JobSpineSession
from jobspine.core.settings import get_settings
from jobspine.sync.summary import RowError, SyncResult

console = Console()
err_console = Console(stderr=True)


# ── Database helpers ─────────────────────────────────────────────────────


def get_engine(database: str | None = None) -> Engine:
    """Engine for *database*, defaulting to ``JOBSPINE_DATABASE_URL``."""
    settings = get_settings()
    return create_jobspine_engine(
        database or settings.database_url,
        echo=settings.database_echo,
    )


@contextmanager
def open_session(database: str | None = None, *, create_tables: bool = True) -> Iterator[JobSpineSession]:
    """Yield a session on *database*, creating missing tables first."""
    engine = get_engine(database)
    if create_tables:
        init_database(engine)
    session = jobspine_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    # soft_wrap keeps long paths on one line so the output stays parseable
    console.print(JSON(json.dumps(payload, default=str)), soft_wrap=True)


def print_sync_result(result: SyncResult) -> None:
    """Render a ``SyncResult`` as a summary table plus an error table."""
    summary = result.summary
    if summary is None:
        for error in result.errors:
            err_console.print(f"[bold red]Error[/bold red]: {error.message}")
        return

    mode = "[yellow]dry run[/yellow]" if summary.dry_run else "[green]applied[/green]"
    table = Table(title=f"{summary.file_name} / {summary.sheet_name} ({mode})", show_lines=False)
    table.add_column("metric", style="cyan")
    table.add_column("count", justify="right")

    counts = [
        ("rows read", summary.rows_read),
        ("skipped", summary.rows_skipped),
        ("skipped below min", summary.skipped_below_min),
        ("protected", summary.protected),
    ]
    if summary.dry_run:
        counts += [("would create", summary.would_create), ("would update", summary.would_update)]
    else:
        counts += [("created", summary.created), ("updated", summary.updated)]
    counts.append(("errors", summary.errors))

    for label, value in counts:
        table.add_row(label, str(value))
    console.print(table)

    if result.errors:
        print_row_errors(result.errors)


def print_row_errors(errors: tuple[RowError, ...] | list[RowError]) -> None:
    table = Table(title="Row errors", show_lines=False, pad_edge=False)
    table.add_column("row", style="cyan")
    table.add_column("job")
    table.add_column("message", overflow="fold")
    for error in errors:
        table.add_row(error.row_ref, error.job_number or "", error.message)
    err_console.print(table)


def fail(message: str, code: int = 1) -> typer.Exit:
    """Print *message* to stderr and return the ``typer.Exit`` to raise."""
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    return typer.Exit(code=code)
