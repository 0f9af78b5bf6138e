"""Core value types, position arithmetic, validation and settings."""

from __future__ import annotations

from nested_set.core.exceptions import (
    InvalidMoveError,
    InvalidNodeError,
    NestedSetError,
    NodeNotFoundError,
    StaleNodeError,
    TreeIntegrityError,
)
from nested_set.core.integrity import find_violations, format_tree, validate_tree
from nested_set.core.node import Identifier, Node, NodeKey
from nested_set.core.positions import (
    InsertionSlot,
    MovePlan,
    Placement,
    insertion_slot,
    move_destination,
    plan_block_move,
    plan_children_adoption,
    plan_subtree_move,
    root_slot,
)
from nested_set.core.validation import IdentifierValidationError, validate_table_name

__all__ = [
    "Identifier",
    "IdentifierValidationError",
    "InsertionSlot",
    "InvalidMoveError",
    "InvalidNodeError",
    "MovePlan",
    "NestedSetError",
    "Node",
    "NodeKey",
    "NodeNotFoundError",
    "Placement",
    "StaleNodeError",
    "TreeIntegrityError",
    "find_violations",
    "format_tree",
    "insertion_slot",
    "move_destination",
    "plan_block_move",
    "plan_children_adoption",
    "plan_subtree_move",
    "root_slot",
    "validate_table_name",
    "validate_tree",
]
