"""Integration tests for node insertion."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import IntegrityError

from nested_set.core.exceptions import NodeNotFoundError, StaleNodeError
from nested_set.core.node import Node
from tests.utils import fixture_node, ids, key, positions

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from nested_set.storage import NestedSet

pytestmark = pytest.mark.integration


# ============================================================================
# Roots
# ============================================================================


class TestAddRootNode:
    @pytest.mark.asyncio
    async def test_first_root_of_empty_tree(self, tree: NestedSet) -> None:
        node = await tree.add_root_node(key(1))

        assert node == Node.create(1, 1, 1, 2, 0)
        assert await tree.get_node(key(1)) == node

    @pytest.mark.asyncio
    async def test_root_appended_after_existing_tree(self, loaded_tree: NestedSet) -> None:
        node = await loaded_tree.add_root_node(key(12))

        assert (node.left, node.right, node.depth) == (23, 24, 0)
        assert (await loaded_tree.get_node(key(1))).right == 22
        await loaded_tree.check_integrity()

    @pytest.mark.asyncio
    async def test_build_tree_from_scratch(self, tree: NestedSet) -> None:
        root = await tree.add_root_node(key(1))
        first = await tree.add_node_below(root, key(2))
        root = await tree.get_node(key(1))
        second = await tree.add_node_below(root, key(3))
        await tree.add_node_before(first, key(4))

        assert ids(await tree.find_children(key(1))) == [4, 2, 3]
        assert second == Node.create(3, 1, 4, 5, 1)
        await tree.check_integrity()


# ============================================================================
# Relative insertion
# ============================================================================


class TestAddNodeBelow:
    @pytest.mark.asyncio
    async def test_below_leaf(self, loaded_tree: NestedSet, get_node: Callable[[int], Awaitable[Node]]) -> None:
        node = await loaded_tree.add_node_below(fixture_node(6), key(12))

        assert (node.left, node.right, node.depth) == (7, 8, 4)
        assert (await get_node(6)).right == 9
        assert positions([await get_node(6)])[6] == (6, 9, 3)
        await loaded_tree.check_integrity()

    @pytest.mark.asyncio
    async def test_below_node_with_children_becomes_last_child(
        self,
        loaded_tree: NestedSet,
        get_node: Callable[[int], Awaitable[Node]],
    ) -> None:
        node = await loaded_tree.add_node_below(fixture_node(3), key(12))

        assert (node.left, node.right, node.depth) == (21, 22, 2)
        assert ids(await loaded_tree.find_children(key(3))) == [7, 8, 9, 12]
        assert positions([await get_node(3), await get_node(1)]) == {3: (10, 23, 1), 1: (1, 24, 0)}
        await loaded_tree.check_integrity()

    @pytest.mark.asyncio
    async def test_round_trip(self, loaded_tree: NestedSet) -> None:
        parent = fixture_node(4)
        await loaded_tree.add_node_below(parent, key(12))

        stored = await loaded_tree.get_node(key(12))
        assert stored.depth == parent.depth + 1
        assert stored.left == parent.right

    @pytest.mark.asyncio
    async def test_nodes_before_insertion_point_untouched(self, loaded_tree: NestedSet) -> None:
        await loaded_tree.add_node_below(fixture_node(9), key(12))

        after = positions(await loaded_tree.get_tree())
        for id_ in (2, 4, 5, 6, 7, 8, 10, 11):
            assert after[id_] == positions([fixture_node(id_)])[id_]


class TestAddNodeBeforeAfter:
    @pytest.mark.asyncio
    async def test_before(self, loaded_tree: NestedSet) -> None:
        node = await loaded_tree.add_node_before(fixture_node(4), key(12))

        assert (node.left, node.right, node.depth) == (3, 4, 2)
        after = positions(await loaded_tree.get_tree())
        assert after[4] == (5, 10, 2)
        assert after[5] == (6, 7, 3)
        assert after[2] == (2, 11, 1)
        assert ids(await loaded_tree.find_children(key(2))) == [12, 4]
        await loaded_tree.check_integrity()

    @pytest.mark.asyncio
    async def test_after(self, loaded_tree: NestedSet) -> None:
        node = await loaded_tree.add_node_after(fixture_node(4), key(12))

        assert (node.left, node.right, node.depth) == (9, 10, 2)
        after = positions(await loaded_tree.get_tree())
        assert after[4] == (3, 8, 2)
        assert after[2] == (2, 11, 1)
        assert after[3] == (12, 23, 1)
        assert ids(await loaded_tree.find_children(key(2))) == [4, 12]
        await loaded_tree.check_integrity()

    @pytest.mark.asyncio
    async def test_sibling_of_root_creates_new_root(self, loaded_tree: NestedSet) -> None:
        node = await loaded_tree.add_node_before(fixture_node(1), key(12))

        assert (node.left, node.right, node.depth) == (1, 2, 0)
        assert ids(await loaded_tree.find_roots()) == [12, 1]
        await loaded_tree.check_integrity()


# ============================================================================
# Rejected insertions
# ============================================================================


class TestRejectedInsertions:
    @pytest.mark.asyncio
    async def test_duplicate_key_rolls_back(self, loaded_tree: NestedSet) -> None:
        before = await loaded_tree.get_tree()

        with pytest.raises(IntegrityError):
            await loaded_tree.add_node_below(fixture_node(3), key(7))

        assert await loaded_tree.get_tree() == before

    @pytest.mark.asyncio
    async def test_stale_target(self, loaded_tree: NestedSet) -> None:
        await loaded_tree.add_node_below(fixture_node(2), key(12))
        before = await loaded_tree.get_tree()

        with pytest.raises(StaleNodeError) as exc_info:
            await loaded_tree.add_node_below(fixture_node(3), key(13))

        assert exc_info.value.current == Node.create(3, 1, 12, 23, 1)
        assert await loaded_tree.get_tree() == before

    @pytest.mark.asyncio
    async def test_missing_target(self, loaded_tree: NestedSet) -> None:
        with pytest.raises(NodeNotFoundError):
            await loaded_tree.add_node_after(Node.create(99, 1, 30, 31, 0), key(12))

        assert await loaded_tree.count_nodes() == 11
