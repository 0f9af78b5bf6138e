"""Nested-set (modified preorder tree traversal) trees on SQLAlchemy.

Usage:
    from nested_set import NestedSet, NestedSetSchema, NodeKey
    from nested_set.infra.database import create_engine_from_settings

    engine = create_engine_from_settings()
    await NestedSetSchema(engine, "tree").create()

    tree = NestedSet(engine, "tree")
    root = await tree.add_root_node(NodeKey(1, 1))
    child = await tree.add_node_below(root, NodeKey(2, 1))
    await tree.find_children(root)
"""

from nested_set.core import (
    Identifier,
    IdentifierValidationError,
    InvalidMoveError,
    InvalidNodeError,
    NestedSetError,
    Node,
    NodeKey,
    NodeNotFoundError,
    StaleNodeError,
    TreeIntegrityError,
    format_tree,
    validate_tree,
)
from nested_set.storage import NestedSet, NestedSetQueries, NestedSetSchema

__version__ = "0.1.0"

__all__ = [
    "Identifier",
    "IdentifierValidationError",
    "InvalidMoveError",
    "InvalidNodeError",
    "NestedSet",
    "NestedSetError",
    "NestedSetQueries",
    "NestedSetSchema",
    "Node",
    "NodeKey",
    "NodeNotFoundError",
    "StaleNodeError",
    "TreeIntegrityError",
    "__version__",
    "format_tree",
    "validate_tree",
]
