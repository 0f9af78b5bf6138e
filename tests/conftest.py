"""Pytest configuration and shared fixtures.

Organization:
    - Database Fixtures: in-memory SQLite engine and tree table
    - Tree Fixtures: empty and pre-populated NestedSet instances
    - Settings Fixtures: settings cache isolation

Every test gets a fresh in-memory database. ``StaticPool`` keeps the one
SQLite connection alive for the engine's lifetime so that all connections
checked out by the code under test see the same database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from nested_set.core.settings import clear_all_caches
from nested_set.infra.database import enable_sqlite_transactions
from nested_set.storage import NestedSet, NestedSetSchema
from tests.utils import FIXTURE_ROWS, REVISION, key

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from nested_set.core.node import Node

TABLE_NAME = "tree"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async engine; disposed after the test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    enable_sqlite_transactions(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def schema(engine: AsyncEngine) -> NestedSetSchema:
    """Create the tree table and return its schema helper."""
    schema = NestedSetSchema(engine, TABLE_NAME)
    await schema.create()
    return schema


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
def tree(engine: AsyncEngine, schema: NestedSetSchema) -> NestedSet:
    """NestedSet over an empty tree table."""
    return NestedSet(engine, schema.table_name)


@pytest.fixture
async def loaded_tree(tree: NestedSet) -> NestedSet:
    """NestedSet holding the 11-node reference tree from tests.utils."""
    rows = [
        {"id": id_, "revision_id": REVISION, "left_pos": left, "right_pos": right, "depth": depth}
        for id_, left, right, depth in FIXTURE_ROWS
    ]
    async with tree.engine.begin() as conn:
        await conn.execute(insert(tree.table), rows)
    return tree


@pytest.fixture
def get_node(loaded_tree: NestedSet) -> Callable[[int], Awaitable[Node]]:
    """Fetch the current stored position of a reference-tree node.

    Example:
        async def test_move(loaded_tree, get_node):
            node = await get_node(7)
    """

    async def _get(id_: int) -> Node:
        node = await loaded_tree.get_node(key(id_))
        assert node is not None, f"node {id_} missing"
        return node

    return _get


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear settings caches and NESTED_SET_/LOG_ environment variables."""
    import os

    for name in list(os.environ):
        if name.startswith(("NESTED_SET_", "LOG_")):
            monkeypatch.delenv(name)
    clear_all_caches()
    yield
    clear_all_caches()
