"""Integration tests for concurrent mutations on a file database.

Each mutation opens its own connection (``NullPool``), so concurrent calls
really compete for the SQLite write lock instead of sharing one connection.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.pool import NullPool

from nested_set.core.exceptions import StaleNodeError
from nested_set.core.node import Node
from nested_set.core.settings import DatabaseSettings
from nested_set.infra.database import create_engine_from_settings
from nested_set.storage import NestedSet, NestedSetSchema
from tests.utils import key, positions

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

pytestmark = pytest.mark.integration

WRITERS = 5


@pytest.fixture
async def file_tree(tmp_path: Path) -> AsyncGenerator[NestedSet]:
    """NestedSet over a SQLite file with one connection per checkout."""
    settings = DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'tree.db'}")
    engine = create_engine_from_settings(settings, poolclass=NullPool)
    await NestedSetSchema(engine, "tree").create()
    try:
        yield NestedSet(engine, "tree")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_roots_get_distinct_slots(file_tree: NestedSet) -> None:
    await asyncio.gather(*(file_tree.add_root_node(key(i)) for i in range(1, WRITERS + 1)))

    await file_tree.check_integrity()
    roots = await file_tree.find_roots()
    assert sorted((n.left, n.right) for n in roots) == [(1, 2), (3, 4), (5, 6), (7, 8), (9, 10)]


@pytest.mark.asyncio
async def test_concurrent_inserts_with_one_snapshot_allow_one_writer(file_tree: NestedSet) -> None:
    root = await file_tree.add_root_node(key(1))

    results = await asyncio.gather(
        *(file_tree.add_node_below(root, key(i)) for i in range(2, WRITERS + 2)),
        return_exceptions=True,
    )

    inserted = [r for r in results if isinstance(r, Node)]
    stale = [r for r in results if isinstance(r, StaleNodeError)]
    assert len(inserted) == 1
    assert len(stale) == WRITERS - 1
    await file_tree.check_integrity()
    assert positions(await file_tree.get_tree())[1] == (1, 4, 0)
    assert await file_tree.count_nodes() == 2


@pytest.mark.asyncio
async def test_concurrent_inserts_retrying_on_stale_snapshot(file_tree: NestedSet) -> None:
    await file_tree.add_root_node(key(1))

    async def add_child(id_: int) -> Node:
        while True:
            root = await file_tree.get_node(key(1))
            try:
                return await file_tree.add_node_below(root, key(id_))
            except StaleNodeError:
                await asyncio.sleep(0)

    await asyncio.gather(*(add_child(i) for i in range(2, WRITERS + 2)))

    await file_tree.check_integrity()
    assert positions(await file_tree.get_tree())[1] == (1, 2 * WRITERS + 2, 0)
    children = await file_tree.find_children(key(1))
    assert len(children) == WRITERS
    assert {n.depth for n in children} == {1}
