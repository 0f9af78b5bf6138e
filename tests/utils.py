"""Test utilities and helper functions.

This module provides the reference tree used across the suite and small
helpers for comparing stored positions.

Usage:
    from tests.utils import FIXTURE_ROWS, key, positions

    node = await tree.get_node(key(7))
    assert positions(await tree.get_tree())[7] == (11, 16, 2)

Reference tree (id: left, right, depth):

    1: 1..22 (0)
    ├── 2: 2..9 (1)
    │   └── 4: 3..8 (2)
    │       ├── 5: 4..5 (3)
    │       └── 6: 6..7 (3)
    └── 3: 10..21 (1)
        ├── 7: 11..16 (2)
        │   ├── 10: 12..13 (3)
        │   └── 11: 14..15 (3)
        ├── 8: 17..18 (2)
        └── 9: 19..20 (2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nested_set.core.node import Node, NodeKey

if TYPE_CHECKING:
    from collections.abc import Iterable

REVISION = 1

# (id, left, right, depth)
FIXTURE_ROWS: tuple[tuple[int, int, int, int], ...] = (
    (1, 1, 22, 0),
    (2, 2, 9, 1),
    (3, 10, 21, 1),
    (4, 3, 8, 2),
    (5, 4, 5, 3),
    (6, 6, 7, 3),
    (7, 11, 16, 2),
    (8, 17, 18, 2),
    (9, 19, 20, 2),
    (10, 12, 13, 3),
    (11, 14, 15, 3),
)


# ============================================================================
# Builders
# ============================================================================


def key(id_: int | str, revision_id: int | str = REVISION) -> NodeKey:
    """Build a NodeKey with the fixture revision by default."""
    return NodeKey(id_, revision_id)


def fixture_nodes() -> list[Node]:
    """Reference tree as Node objects (not ordered by position)."""
    return [Node.create(id_, REVISION, left, right, depth) for id_, left, right, depth in FIXTURE_ROWS]


def fixture_node(id_: int) -> Node:
    """Single node of the reference tree, at its initial position."""
    for row_id, left, right, depth in FIXTURE_ROWS:
        if row_id == id_:
            return Node.create(row_id, REVISION, left, right, depth)
    msg = f"No fixture node {id_}"
    raise KeyError(msg)


# ============================================================================
# Assertions
# ============================================================================


def positions(nodes: Iterable[Node]) -> dict[int | str, tuple[int, int, int]]:
    """Map node id to ``(left, right, depth)``."""
    return {n.id: (n.left, n.right, n.depth) for n in nodes}


def ids(nodes: Iterable[Node]) -> list[int | str]:
    """Node ids in the given order."""
    return [n.id for n in nodes]
