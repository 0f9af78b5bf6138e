"""Scoped transactions for multi-statement tree mutations.

Every structural mutation is a sequence of range updates that leaves the
tree inconsistent between statements. ``atomic()`` runs such a sequence on
one connection inside one transaction: it commits only when the block
finishes normally and rolls back on any exception, including task
cancellation, before re-raising that exception unchanged.

On SQLite engines prepared by ``enable_sqlite_transactions()`` the
transaction starts with ``BEGIN IMMEDIATE``.

Example:
    async with atomic(engine, isolation_level="SERIALIZABLE", operation="move") as conn:
        await conn.execute(update(table).where(...).values(...))
        await conn.execute(update(table).where(...).values(...))
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from nested_set.infra.database.session import WRITE_LOCK_OPTION

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(
    engine: AsyncEngine,
    *,
    isolation_level: str | None = None,
    operation: str = "mutation",
) -> AsyncIterator[AsyncConnection]:
    """Open a connection and run the enclosed block in one transaction.

    Args:
        engine: Engine to take the connection from
        isolation_level: Isolation level for this transaction (None = driver default)
        operation: Name used in log records

    Yields:
        AsyncConnection with an open transaction

    Raises:
        Whatever the enclosed block raises, after the transaction is rolled back
    """
    async with engine.connect() as conn:
        options: dict[str, Any] = {WRITE_LOCK_OPTION: True}
        if isolation_level is not None:
            options["isolation_level"] = isolation_level
        await conn.execution_options(**options)
        started = time.perf_counter()
        trans = await conn.begin()
        try:
            yield conn
        except BaseException as exc:
            await trans.rollback()
            logger.warning(
                "Transaction rolled back",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            raise
        await trans.commit()
        logger.debug(
            "Transaction committed",
            extra={
                "operation": operation,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
