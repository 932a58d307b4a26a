"""SQLAlchemy engine factory and session helpers.

This module provides:

* ``create_jobspine_engine``  -- Create a SA engine from a URL.
* ``JobSpineSession``         -- A pre-configured ``Session`` subclass.
* ``jobspine_session_factory``-- ``sessionmaker`` producing ``JobSpineSession``.
* ``init_database``           -- Create every job-spine table.

Tags:
    job-spine, orm, sqlalchemy, session, engine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobspine.core.orm.base import JobSpineBase


def create_jobspine_engine(
    url: str = "sqlite:///jobspine.db",
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if not url.startswith("sqlite"):
        return _sa_create_engine(url, echo=echo, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    # One shared connection, otherwise every session sees its own empty :memory: db
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs.setdefault("poolclass", StaticPool)

    engine = _sa_create_engine(url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class JobSpineSession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Prevents lazy-load surprises after the per-row commits of a sync run.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def jobspine_session_factory(engine: Engine) -> sessionmaker[JobSpineSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``JobSpineSession`` instances."""
    return sessionmaker(bind=engine, class_=JobSpineSession)


def init_database(engine: Engine) -> list[str]:
    """Create all job-spine tables that do not exist yet.

    Returns the names of the tables known to the metadata.
    """
    # Register the mapped classes on the metadata before create_all
    from jobspine.core.orm import tables  # noqa: F401

    JobSpineBase.metadata.create_all(engine)
    return sorted(JobSpineBase.metadata.tables)
