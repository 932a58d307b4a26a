"""
Root Typer application for the job-spine CLI.

The callback configures structured logging from settings (overridable per
invocation) before any sub-command runs.
"""

from __future__ import annotations

import typer
from typer import Typer

from jobspine import __version__
from jobspine.core.logging import configure_logging
from jobspine.core.settings import get_settings

app = Typer(
    name="jobspine",
    help="job-spine: reconcile the job worksheet into the job store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"job-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override JOBSPINE_LOG_LEVEL."),
    log_format: str | None = typer.Option(None, "--log-format", help="json or console."),
) -> None:
    """job-spine CLI: sync the job worksheet, preview it, watch it."""
    settings = get_settings()
    fmt = (log_format or settings.log_format).lower()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=fmt == "json",
    )


# ── Sub-command registration ─────────────────────────────────────────────

from jobspine.cli.db import app as db_app  # noqa: E402
from jobspine.cli.sync import app as sync_app  # noqa: E402

app.add_typer(sync_app, name="sync", help="Worksheet reconciliation.")
app.add_typer(db_app, name="db", help="Database operations.")
