"""
CLI: ``jobspine db``: database management commands.
"""

from __future__ import annotations

import typer
from sqlalchemy.exc import SQLAlchemyError

from jobspine.cli.utils import console, fail, get_engine, print_json
from jobspine.core.orm import init_database

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Initialise database schema (create tables)."""
    engine = get_engine(database)
    try:
        tables = init_database(engine)
    except SQLAlchemyError as e:
        raise fail(f"Database init failed: {e}") from e
    finally:
        engine.dispose()

    if json_out:
        print_json({"tables": tables})
        return
    console.print("[bold]Database Init[/bold]")
    for name in tables:
        console.print(f"  [cyan]{name}[/cyan]")
