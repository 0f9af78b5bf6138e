"""Position arithmetic for nested-set mutations.

Pure functions that turn a target node and a relative placement into the
numbers a mutation needs: where a new 2-wide slot opens for an insert, and
how a block of rows shifts for a move. Nothing here touches storage; the
storage layer runs the resulting range updates inside one transaction.

Insertion rules (new node occupies ``left``/``left + 1``):
    - ROOT:   after every existing node, depth 0
    - BELOW:  at ``target.right`` (last child), depth ``target.depth + 1``
    - BEFORE: at ``target.left`` (left sibling), depth ``target.depth``
    - AFTER:  at ``target.right + 1`` (right sibling), depth ``target.depth``

Move rules differ only for BELOW, which moves to ``target.left + 1``
(first child).

Example:
    >>> target = Node.create(1, 1, left=1, right=22, depth=0)
    >>> node = Node.create(7, 1, left=11, right=16, depth=2)
    >>> plan = plan_subtree_move(Placement.BELOW, target, node)
    >>> plan.distance, plan.temp_left, plan.depth_diff
    (-15, 17, -1)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import NamedTuple

from nested_set.core.exceptions import InvalidMoveError
from nested_set.core.node import Node

# Position units taken by a freshly inserted leaf
SLOT_WIDTH = 2


class Placement(StrEnum):
    """Where a node goes relative to a target node."""

    BELOW = "below"
    BEFORE = "before"
    AFTER = "after"
    ROOT = "root"


class Destination(NamedTuple):
    """Left position and depth a moved subtree's top node will take."""

    left: int
    depth: int


@dataclass(slots=True, frozen=True)
class InsertionSlot:
    """A 2-wide gap to open for a new node.

    Attributes:
        left: Insertion point; the new node's left value
        depth: The new node's depth
    """

    left: int
    depth: int

    @property
    def right(self) -> int:
        return self.left + 1

    @property
    def width(self) -> int:
        return SLOT_WIDTH


def root_slot(max_right: int | None) -> InsertionSlot:
    """Slot for a new root appended after all existing nodes.

    Args:
        max_right: Largest stored right value, or None for an empty tree

    Returns:
        InsertionSlot at ``max_right + 1`` with depth 0
    """
    return InsertionSlot(left=(max_right or 0) + 1, depth=0)


def insertion_slot(placement: Placement, target: Node) -> InsertionSlot:
    """Slot for a new node placed relative to ``target``.

    Raises:
        ValueError: For ``Placement.ROOT``, which has no target; use root_slot()
    """
    match placement:
        case Placement.BELOW:
            return InsertionSlot(left=target.right, depth=target.depth + 1)
        case Placement.BEFORE:
            return InsertionSlot(left=target.left, depth=target.depth)
        case Placement.AFTER:
            return InsertionSlot(left=target.right + 1, depth=target.depth)
    msg = f"Placement {placement!s} has no target-relative insertion slot"
    raise ValueError(msg)


def move_destination(placement: Placement, target: Node) -> Destination:
    """Left position and depth for a subtree moved relative to ``target``."""
    match placement:
        case Placement.BELOW:
            return Destination(left=target.left + 1, depth=target.depth + 1)
        case Placement.BEFORE:
            return Destination(left=target.left, depth=target.depth)
        case Placement.AFTER:
            return Destination(left=target.right + 1, depth=target.depth)
    msg = f"Placement {placement!s} has no target-relative destination"
    raise ValueError(msg)


@dataclass(slots=True, frozen=True)
class MovePlan:
    """Range-shift arithmetic for relocating a contiguous block of rows.

    The block is every row with ``source_left <= left <= source_right``.
    Applying the plan takes three range updates:

    1. open a ``width`` gap at ``new_left``
    2. shift rows with ``temp_left <= left <= temp_right`` by ``distance``
       (and depth by ``depth_diff``)
    3. close the gap left behind, beyond ``source_right``

    Attributes:
        source_left: Left boundary of the block before the move
        source_right: Right boundary of the block before the move
        new_left: Position the block's first row should take
        depth_diff: Depth adjustment applied to every row in the block
    """

    source_left: int
    source_right: int
    new_left: int
    depth_diff: int

    @property
    def width(self) -> int:
        return self.source_right - self.source_left + 1

    @property
    def backward(self) -> bool:
        """True when the block moves to a lower position."""
        return self.new_left < self.source_left

    @property
    def stationary(self) -> bool:
        """True when the destination is the block's current position."""
        return self.new_left in (self.source_left, self.source_right + 1)

    @property
    def distance(self) -> int:
        # opening the gap ahead of the block pushes it right by width
        if self.backward:
            return self.new_left - self.source_left - self.width
        return self.new_left - self.source_left

    @property
    def temp_left(self) -> int:
        """Left boundary of the block once the gap has been opened."""
        if self.backward:
            return self.source_left + self.width
        return self.source_left

    @property
    def temp_right(self) -> int:
        return self.temp_left + self.width - 1

    @property
    def final_left(self) -> int:
        """Left boundary of the block after the move completes."""
        if self.stationary:
            return self.source_left
        if self.backward:
            return self.new_left
        return self.new_left - self.width


def plan_block_move(
    source_left: int,
    source_right: int,
    new_left: int,
    depth_diff: int = 0,
) -> MovePlan:
    """Plan a move of the block ``[source_left, source_right]`` to ``new_left``.

    Raises:
        ValueError: If the block is empty or the destination lies inside it
    """
    if source_right < source_left:
        msg = f"Empty block [{source_left}, {source_right}]"
        raise ValueError(msg)
    if source_left < new_left <= source_right:
        msg = f"Destination {new_left} lies inside block [{source_left}, {source_right}]"
        raise ValueError(msg)
    return MovePlan(
        source_left=source_left,
        source_right=source_right,
        new_left=new_left,
        depth_diff=depth_diff,
    )


def plan_subtree_move(placement: Placement, target: Node, node: Node) -> MovePlan:
    """Plan moving ``node`` and its descendants relative to ``target``.

    Raises:
        InvalidMoveError: If target is the node itself or one of its descendants
        ValueError: For ``Placement.ROOT``
    """
    if target.node_key == node.node_key or node.encloses_position(target.left):
        msg = "Cannot move a subtree relative to itself or its own descendants"
        raise InvalidMoveError(msg, node=node, target=target)
    destination = move_destination(placement, target)
    return plan_block_move(
        node.left,
        node.right,
        destination.left,
        destination.depth - node.depth,
    )


def plan_children_adoption(old_parent: Node, new_parent: Node) -> MovePlan | None:
    """Plan reparenting all children of ``old_parent`` as last children of ``new_parent``.

    The children and their descendants occupy the contiguous block
    ``[old_parent.left + 1, old_parent.right - 1]``, so the whole set moves
    as one block appended at ``new_parent.right``.

    Returns:
        MovePlan, or None if there is nothing to do (no children, same parent)

    Raises:
        InvalidMoveError: If ``new_parent`` is a descendant of ``old_parent``
    """
    if old_parent.node_key == new_parent.node_key:
        return None
    if old_parent.contains(new_parent):
        msg = "New parent is a descendant of the old parent"
        raise InvalidMoveError(msg, node=old_parent, target=new_parent)
    if old_parent.is_leaf:
        return None
    return plan_block_move(
        old_parent.left + 1,
        old_parent.right - 1,
        new_parent.right,
        new_parent.depth - old_parent.depth,
    )


__all__ = [
    "SLOT_WIDTH",
    "Destination",
    "InsertionSlot",
    "MovePlan",
    "Placement",
    "insertion_slot",
    "move_destination",
    "plan_block_move",
    "plan_children_adoption",
    "plan_subtree_move",
    "root_slot",
]
