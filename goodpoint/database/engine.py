"""
goodpoint.database.engine — Database Connection & Async Helper
===============================================================

The Slack endpoint is an ``async`` FastAPI route, while SQLAlchemy +
psycopg2 is synchronous.  Ledger calls are shipped to a worker thread with
:func:`run_db` so the event loop never waits on the database.

SQLite engines (local development, tests) issue their own ``BEGIN``.
Connections carrying the :data:`WRITE_LOCK_OPTION` execution option (every
atomic unit) start with ``BEGIN IMMEDIATE`` and take the database write lock
up front, so two read-modify-write units can never interleave.  Plain reads
start with a deferred ``BEGIN`` and keep reading while a unit is open.

Usage::

    from goodpoint.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async route:
    result = await run_db(service.grant, sender_id, receiver_id, reason)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session

from goodpoint.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Connection execution option: start the SQLite transaction with BEGIN IMMEDIATE.
WRITE_LOCK_OPTION = "goodpoint_write_lock"


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None, **kwargs) -> Engine:
    """Build a SQLAlchemy :class:`Engine`.

    *url* defaults to the ``DATABASE_URL`` env var.  Server databases get a
    small pool (the ledger is a workgroup tool, not a firehose):

    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Passing ``poolclass`` (e.g. ``NullPool`` for migrations) skips these.
    Extra *kwargs* are forwarded to :func:`sqlalchemy.create_engine`.

    Raises
    ------
    RuntimeError
        If neither *url* nor ``DATABASE_URL`` is set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=False, **kwargs)
        enable_sqlite_immediate_transactions(engine)
    else:
        if "poolclass" not in kwargs:
            kwargs = {
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 10,
                "pool_recycle": 3600,
                **kwargs,
            }
        engine = create_engine(
            url,
            echo=False,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            **kwargs,
        )
    logger.info("Database engine created → %s", engine.url.render_as_string())
    return engine


def enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """Start write transactions with ``BEGIN IMMEDIATE`` on SQLite.

    pysqlite otherwise defers ``BEGIN`` until the first write, which lets two
    units read the same aggregate before either one writes it.  Connections
    without :data:`WRITE_LOCK_OPTION` get a plain deferred ``BEGIN``.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create the ledger tables if they do not exist.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained for dev/test environments.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Wraps :func:`asyncio.to_thread`, which schedules *func* on the default
    ``ThreadPoolExecutor``.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
