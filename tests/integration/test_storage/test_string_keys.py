"""Integration tests for trees keyed by string identifiers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import String

from nested_set.core.node import NodeKey
from nested_set.storage import NestedSet, NestedSetSchema
from tests.utils import ids

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

pytestmark = pytest.mark.integration


@pytest.fixture
async def labels(engine: AsyncEngine) -> NestedSet:
    await NestedSetSchema(engine, "labels", id_type=String(64)).create()
    return NestedSet(engine, "labels", id_type=String(64))


@pytest.mark.asyncio
async def test_string_keys(labels: NestedSet) -> None:
    root = await labels.add_root_node(NodeKey("catalog", "v1"))
    books = await labels.add_node_below(root, NodeKey("books", "v1"))
    await labels.add_node_after(books, NodeKey("music", "v1"))
    await labels.add_node_below(books, NodeKey("fiction", "v1"))

    assert ids(await labels.get_tree()) == ["catalog", "books", "fiction", "music"]
    assert ids(await labels.find_ancestors(NodeKey("fiction", "v1"))) == ["catalog", "books"]
    await labels.check_integrity()


@pytest.mark.asyncio
async def test_revisions_are_distinct_nodes(labels: NestedSet) -> None:
    first = await labels.add_root_node(NodeKey("catalog", "v1"))
    second = await labels.add_root_node(NodeKey("catalog", "v2"))

    assert first.node_key != second.node_key
    assert ids(await labels.find_roots()) == ["catalog", "catalog"]
    assert (await labels.get_node(NodeKey("catalog", "v2"))).left == 3


@pytest.mark.asyncio
async def test_trees_in_separate_tables_are_independent(engine: AsyncEngine, labels: NestedSet) -> None:
    other = NestedSet(engine, "other_labels", id_type=String(64))
    await NestedSetSchema(engine, "other_labels", id_type=String(64)).create()

    await labels.add_root_node(NodeKey("a", "1"))
    node = await other.add_root_node(NodeKey("a", "1"))

    assert (node.left, node.right) == (1, 2)
    assert await labels.count_nodes() == 1
    assert await other.count_nodes() == 1
