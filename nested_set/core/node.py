"""Immutable value objects for node identity and nested-set position.

A ``NodeKey`` identifies a logical entity revision. A ``Node`` pairs that key
with the ``left``/``right``/``depth`` numbers that encode its place in the
tree. Both are snapshots: storage owns the persisted positions, and a Node
held by a caller goes stale as soon as another mutation renumbers the tree.

Example:
    >>> key = NodeKey(7, 1)
    >>> node = Node(key, left=11, right=16, depth=2)
    >>> node.width
    6
    >>> node.contains(Node(NodeKey(10, 1), 12, 13, 3))
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nested_set.core.exceptions import InvalidNodeError

if TYPE_CHECKING:
    from typing import Any

type Identifier = int | str


def _identifier_rank(value: Identifier) -> tuple[int, Any]:
    # ints sort before strings so mixed keys still have a total order
    if isinstance(value, str):
        return (1, value)
    return (0, value)


@dataclass(slots=True, frozen=True)
class NodeKey:
    """Identity of a node: entity id plus revision id.

    Attributes:
        id: Entity identifier (int or str)
        revision_id: Revision identifier (int or str)
    """

    id: Identifier
    revision_id: Identifier

    @property
    def sort_key(self) -> tuple[tuple[int, Any], tuple[int, Any]]:
        """Ordering key that is well defined for mixed int/str identifiers."""
        return (_identifier_rank(self.id), _identifier_rank(self.revision_id))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NodeKey):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __le__(self, other: object) -> bool:
        if not isinstance(other, NodeKey):
            return NotImplemented
        return self.sort_key <= other.sort_key

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, NodeKey):
            return NotImplemented
        return self.sort_key > other.sort_key

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, NodeKey):
            return NotImplemented
        return self.sort_key >= other.sort_key

    def __str__(self) -> str:
        return f"{self.id}:{self.revision_id}"


@dataclass(slots=True, frozen=True)
class Node:
    """A node's identity and its position in the nested-set numbering.

    Attributes:
        node_key: Identity of the node
        left: Left boundary (>= 1)
        right: Right boundary (>= 1)
        depth: Distance from the root (root = 0)

    Raises:
        InvalidNodeError: If a boundary is below 1 or depth is negative

    Note:
        ``right > left`` and an odd ``right - left`` are tree invariants,
        checked by ``nested_set.core.integrity`` rather than here.
    """

    node_key: NodeKey
    left: int
    right: int
    depth: int

    def __post_init__(self) -> None:
        if not isinstance(self.node_key, NodeKey):
            raise InvalidNodeError("Node key must be a NodeKey", field="node_key")
        if self.left < 1:
            raise InvalidNodeError("Left value must be > 0", field="left", value=self.left)
        if self.right < 1:
            raise InvalidNodeError("Right value must be > 0", field="right", value=self.right)
        if self.depth < 0:
            raise InvalidNodeError("Depth value must be >= 0", field="depth", value=self.depth)

    @classmethod
    def create(
        cls,
        id: Identifier,  # noqa: A002
        revision_id: Identifier,
        left: int,
        right: int,
        depth: int,
    ) -> Node:
        """Build a node from raw column values."""
        return cls(NodeKey(id, revision_id), left, right, depth)

    @property
    def id(self) -> Identifier:
        return self.node_key.id

    @property
    def revision_id(self) -> Identifier:
        return self.node_key.revision_id

    @property
    def width(self) -> int:
        """Position units taken by this node and its descendants."""
        return self.right - self.left + 1

    @property
    def is_leaf(self) -> bool:
        return self.right == self.left + 1

    @property
    def is_root(self) -> bool:
        """True when depth is 0. Does not query storage."""
        return self.depth == 0

    def contains(self, other: Node) -> bool:
        """Check whether ``other`` lies strictly inside this node's interval."""
        return self.left < other.left and other.right < self.right

    def encloses_position(self, position: int) -> bool:
        """Check whether a position falls within ``[left, right]``."""
        return self.left <= position <= self.right

    def same_position(self, other: Node) -> bool:
        return (self.left, self.right, self.depth) == (other.left, other.right, other.depth)


__all__ = [
    "Identifier",
    "Node",
    "NodeKey",
]
