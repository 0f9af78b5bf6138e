"""Read-only nested-set queries.

Ancestry is answered with range predicates over ``left_pos``/``right_pos``
instead of recursive joins. Every query takes a ``NodeKey`` (or a ``Node``,
whose key is used) and reads current positions from storage, so a stale
snapshot still finds the right rows.

Self-inclusion convention: ``find_descendants`` and ``find_ancestors``
exclude the node itself by default. Pass ``start=0`` or
``include_self=True`` respectively to include it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from nested_set.core.node import Node, NodeKey
from nested_set.storage.base import BaseStorage
from nested_set.storage.table import key_clause, node_columns, node_from_row

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncConnection

type NodeRef = Node | NodeKey


def _key_of(ref: NodeRef) -> NodeKey:
    if isinstance(ref, Node):
        return ref.node_key
    if isinstance(ref, NodeKey):
        return ref
    msg = f"Expected Node or NodeKey, got {type(ref).__name__}"
    raise TypeError(msg)


class NestedSetQueries(BaseStorage):
    """Query engine over one tree table.

    Queries open their own connection and do not start an explicit
    transaction. They are safe to run concurrently with each other.

    Example:
        >>> queries = NestedSetQueries(engine, "tree")
        >>> node = await queries.get_node(NodeKey(7, 1))
        >>> [n.id for n in await queries.find_children(node)]
        [10, 11]
        >>> [n.id for n in await queries.find_ancestors(node)]
        [1, 3]
    """

    # ─────────────────────────────────────────────────────
    # Point lookups
    # ─────────────────────────────────────────────────────
    async def get_node(self, key: NodeRef) -> Node | None:
        """Get the node for a key, or None if no row matches."""
        async with self.engine.connect() as conn:
            node = await self._fetch_node(conn, _key_of(key))
        self._lazy.debug(lambda: f"get_node({_key_of(key)}) -> {node}")
        return node

    async def get_node_at_position(self, left: int) -> Node | None:
        """Get the node whose left value is ``left``, or None."""
        stmt = select(*node_columns(self.table)).where(self.table.c.left_pos == left)
        async with self.engine.connect() as conn:
            return await self._fetch_one(conn, stmt)

    # ─────────────────────────────────────────────────────
    # Range queries
    # ─────────────────────────────────────────────────────
    async def find_descendants(self, key: NodeRef, depth: int = 0, start: int = 1) -> list[Node]:
        """Find nodes inside the node's interval, in preorder.

        Args:
            key: The node (or its key)
            depth: Relative depth limit; 0 means unlimited
            start: First relative depth to include; 1 (default) excludes the
                node itself, 0 includes it

        Returns:
            Matching nodes ordered by left ascending; empty if the node is missing

        Raises:
            ValueError: If depth or start is negative
        """
        if depth < 0:
            msg = f"depth must be >= 0, got {depth}"
            raise ValueError(msg)
        if start < 0:
            msg = f"start must be >= 0, got {start}"
            raise ValueError(msg)

        child = self.table.alias("child")
        parent = self.table.alias("parent")
        stmt = (
            select(*node_columns(child))
            .where(
                child.c.left_pos >= parent.c.left_pos,
                child.c.right_pos <= parent.c.right_pos,
                child.c.depth >= parent.c.depth + start,
                key_clause(parent, _key_of(key)),
            )
            .order_by(child.c.left_pos)
        )
        if depth > 0:
            stmt = stmt.where(child.c.depth <= parent.c.depth + depth)

        async with self.engine.connect() as conn:
            return await self._fetch_all(conn, stmt)

    async def find_children(self, key: NodeRef) -> list[Node]:
        """Find the immediate children of a node, in order."""
        return await self.find_descendants(key, depth=1)

    async def find_ancestors(self, key: NodeRef, *, include_self: bool = False) -> list[Node]:
        """Find the nodes whose interval contains the node's interval.

        Args:
            key: The node (or its key)
            include_self: Append the node itself as the last element

        Returns:
            Ancestors ordered root first; the last element is the parent
            (or the node itself with include_self)
        """
        async with self.engine.connect() as conn:
            return await self._fetch_ancestors(conn, _key_of(key), include_self=include_self)

    async def find_parent(self, key: NodeRef) -> Node | None:
        """Find the parent of a node, or None for a root."""
        ancestors = await self.find_ancestors(key)
        return ancestors[-1] if ancestors else None

    async def find_root(self, key: NodeRef) -> Node | None:
        """Find the root of the node's tree, or None if the node is a root."""
        ancestors = await self.find_ancestors(key)
        return ancestors[0] if ancestors else None

    # ─────────────────────────────────────────────────────
    # Whole-tree queries
    # ─────────────────────────────────────────────────────
    async def get_tree(self) -> list[Node]:
        """Get every node ordered by left ascending (preorder traversal)."""
        stmt = select(*node_columns(self.table)).order_by(self.table.c.left_pos)
        async with self.engine.connect() as conn:
            return await self._fetch_all(conn, stmt)

    async def find_roots(self) -> list[Node]:
        """Get every depth-0 node in order."""
        stmt = (
            select(*node_columns(self.table))
            .where(self.table.c.depth == 0)
            .order_by(self.table.c.left_pos)
        )
        async with self.engine.connect() as conn:
            return await self._fetch_all(conn, stmt)

    async def count_nodes(self) -> int:
        """Count the rows in the tree table."""
        stmt = select(func.count()).select_from(self.table)
        async with self.engine.connect() as conn:
            return (await conn.execute(stmt)).scalar_one()

    # ─────────────────────────────────────────────────────
    # Connection-level helpers (shared with mutations)
    # ─────────────────────────────────────────────────────
    async def _fetch_node(self, conn: AsyncConnection, node_key: NodeKey) -> Node | None:
        stmt = select(*node_columns(self.table)).where(key_clause(self.table, node_key))
        return await self._fetch_one(conn, stmt)

    async def _fetch_ancestors(
        self,
        conn: AsyncConnection,
        node_key: NodeKey,
        *,
        include_self: bool = False,
    ) -> list[Node]:
        child = self.table.alias("child")
        parent = self.table.alias("parent")
        stmt = (
            select(*node_columns(parent))
            .where(
                child.c.left_pos >= parent.c.left_pos,
                child.c.left_pos <= parent.c.right_pos,
                key_clause(child, node_key),
            )
            .order_by(parent.c.left_pos)
        )
        if not include_self:
            stmt = stmt.where(parent.c.left_pos < child.c.left_pos)
        return await self._fetch_all(conn, stmt)

    @staticmethod
    async def _fetch_one(conn: AsyncConnection, stmt: Select[tuple]) -> Node | None:
        row = (await conn.execute(stmt)).first()
        return node_from_row(row) if row is not None else None

    @staticmethod
    async def _fetch_all(conn: AsyncConnection, stmt: Select[tuple]) -> list[Node]:
        result = await conn.execute(stmt)
        return [node_from_row(row) for row in result]
