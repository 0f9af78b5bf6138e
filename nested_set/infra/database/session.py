"""Async engine creation from settings.

SQLite note: the pysqlite/aiosqlite driver defers ``BEGIN`` until the first
INSERT, UPDATE or DELETE, so the reads a mutation makes at the start of its
transaction would otherwise run outside it. ``enable_sqlite_transactions()``
hands transaction control back to SQLAlchemy and opens mutation transactions
with ``BEGIN IMMEDIATE``, which takes the database write lock up front.
Engines built by ``create_engine_from_settings()`` get this automatically;
engines created elsewhere must call it before their first connection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from nested_set.core.settings import get_database_settings

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

    from nested_set.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)

# Execution option set by atomic() on connections that will write
WRITE_LOCK_OPTION = "nested_set_write_lock"


def create_engine_from_settings(
    settings: DatabaseSettings | None = None,
    **overrides: Any,
) -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        settings: Database settings; loaded via get_database_settings() if omitted
        **overrides: Extra create_async_engine() kwargs (e.g. poolclass in tests)

    Returns:
        AsyncEngine bound to ``settings.database_url``

    Example:
        engine = create_engine_from_settings()
        tree = NestedSet.from_settings(engine)
    """
    settings = settings or get_database_settings()
    engine = create_async_engine(settings.database_url, **{**settings.engine_kwargs(), **overrides})
    _instrument_pool(engine)
    if engine.dialect.name == "sqlite":
        enable_sqlite_transactions(engine)

    logger.info(
        "Database engine created",
        extra={"dialect": engine.dialect.name, "table": settings.table_name},
    )
    return engine


def enable_sqlite_transactions(engine: AsyncEngine) -> None:
    """Make SQLite transactions start where SQLAlchemy begins them.

    Disables the driver's own deferred ``BEGIN`` and emits ``BEGIN`` from
    SQLAlchemy's ``begin`` event instead. Connections marked by ``atomic()``
    get ``BEGIN IMMEDIATE`` so concurrent mutations serialize on the write
    lock before reading any positions.

    Args:
        engine: A SQLite engine that has not opened a connection yet

    Raises:
        ValueError: If the engine is not a SQLite engine
    """
    if engine.dialect.name != "sqlite":
        msg = f"enable_sqlite_transactions() needs a SQLite engine, got {engine.dialect.name!r}"
        raise ValueError(msg)

    sync_engine = engine.sync_engine
    if event.contains(sync_engine, "begin", _emit_begin):
        return

    event.listen(sync_engine, "connect", _disable_driver_transactions)
    event.listen(sync_engine, "begin", _emit_begin)
    logger.debug("SQLite transaction control enabled", extra={"url": str(engine.url)})


def _disable_driver_transactions(dbapi_conn: Any, connection_record: Any) -> None:
    _ = connection_record
    dbapi_conn.isolation_level = None


def _emit_begin(conn: Connection) -> None:
    if conn.get_execution_options().get(WRITE_LOCK_OPTION):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
    else:
        conn.exec_driver_sql("BEGIN")


def _instrument_pool(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine.pool, "connect")
    def _receive_connect(dbapi_conn: Any, connection_record: Any) -> None:
        _ = dbapi_conn, connection_record
        logger.debug("Database connection established")

    @event.listens_for(engine.sync_engine.pool, "close")
    def _receive_close(dbapi_conn: Any, connection_record: Any) -> None:
        _ = dbapi_conn, connection_record
        logger.debug("Database connection closed")
