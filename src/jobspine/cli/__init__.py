"""
CLI layer for job-spine.

Provides a Typer application whose sub-commands delegate to
``jobspine.sync``. All reconciliation logic lives there; this package only
handles terminal transport: argument parsing, coloured output and tables.

Entry point::

    jobspine --help
"""

from jobspine.cli.app import app

__all__ = ["app"]
