"""Nested-set exceptions.

Custom exceptions for tree operations that give better error messages
and typing than raw SQLAlchemy exceptions. Driver and statement errors
raised while a mutation runs are not wrapped: the transaction is rolled
back and the driver exception reaches the caller unchanged.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nested_set.core.node import Node, NodeKey


class NestedSetError(Exception):
    """Base exception for nested-set operations.

    Raised when an operation is rejected because its arguments or the
    stored tree do not satisfy the operation's preconditions.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize nested-set error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidNodeError(NestedSetError, ValueError):
    """Malformed Node construction (left/right < 1, depth < 0)."""

    def __init__(self, message: str, *, field: str, value: Any = None):
        details: dict[str, Any] = {"field": field}
        if value is not None:
            details["value"] = value
        super().__init__(message, details=details)


class NodeNotFoundError(NestedSetError):
    """A node passed to a mutation no longer exists in storage.

    Queries never raise this; they return ``None`` or an empty list.

    Attributes:
        table_name: Tree table that was searched
        node_key: The key that was searched for
    """

    def __init__(self, table_name: str, node_key: NodeKey):
        self.table_name = table_name
        self.node_key = node_key
        super().__init__(
            f"Node not found in {table_name}",
            details={"id": node_key.id, "revision_id": node_key.revision_id},
        )


class StaleNodeError(NestedSetError):
    """Node snapshot no longer matches the stored row.

    Raised when a mutation receives a Node whose left/right/depth were
    changed by an earlier mutation. Re-read the node and retry.

    Attributes:
        snapshot: The Node passed by the caller
        current: The Node as currently stored
    """

    def __init__(self, snapshot: Node, current: Node):
        self.snapshot = snapshot
        self.current = current
        super().__init__(
            "Node position is stale",
            details={
                "key": str(snapshot.node_key),
                "snapshot": (snapshot.left, snapshot.right, snapshot.depth),
                "stored": (current.left, current.right, current.depth),
            },
        )


class InvalidMoveError(NestedSetError):
    """Move would place a subtree inside itself or relative to itself."""

    def __init__(self, message: str, *, node: Node, target: Node):
        self.node = node
        self.target = target
        super().__init__(
            message,
            details={"node": str(node.node_key), "target": str(target.node_key)},
        )


class TreeIntegrityError(NestedSetError):
    """Stored positions violate the nested-set invariants.

    Attributes:
        violations: Human-readable description of each violation
    """

    def __init__(self, violations: Sequence[str]):
        self.violations = list(violations)
        super().__init__(
            f"Tree has {len(self.violations)} integrity violation(s)",
            details={"first": self.violations[0]} if self.violations else None,
        )


__all__ = [
    "InvalidMoveError",
    "InvalidNodeError",
    "NestedSetError",
    "NodeNotFoundError",
    "StaleNodeError",
    "TreeIntegrityError",
]
