"""Nested-set mutations: insert, delete, move and adopt.

Each mutation is a short sequence of range updates run in one transaction
through ``atomic()``. Between those statements the stored numbering is
inconsistent, so nothing is committed until the last statement succeeds.

Node arguments are snapshots. Inside the transaction every Node is re-read
by key (``SELECT ... FOR UPDATE`` where the dialect supports it) and
compared with the snapshot; positions are computed only from the re-read
rows. A snapshot that no longer matches raises ``StaleNodeError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import delete, func, insert, select, update

from nested_set.core.exceptions import NodeNotFoundError, StaleNodeError
from nested_set.core.integrity import format_tree, validate_tree
from nested_set.core.node import Node, NodeKey
from nested_set.core.positions import (
    SLOT_WIDTH,
    InsertionSlot,
    Placement,
    insertion_slot,
    plan_children_adoption,
    plan_subtree_move,
    root_slot,
)
from nested_set.core.settings import get_database_settings
from nested_set.infra.database import atomic
from nested_set.infra.logging import lazy
from nested_set.storage.queries import NestedSetQueries
from nested_set.storage.table import DEFAULT_TABLE_NAME, key_clause, node_columns, node_values

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from nested_set.core.positions import MovePlan
    from nested_set.core.settings import DatabaseSettings


class NestedSet(NestedSetQueries):
    """Query and mutation engine for one tree table.

    Args:
        engine: Async engine for the backing database
        table_name: Tree table name (validated)
        isolation_level: Isolation level for mutation transactions
            (None keeps the driver default)
        **kwargs: Column type options passed to BaseStorage

    Example:
        >>> tree = NestedSet(engine, "tree")
        >>> root = await tree.add_root_node(NodeKey(1, 1))
        >>> child = await tree.add_node_below(root, NodeKey(2, 1))
        >>> child.left, child.right, child.depth
        (2, 3, 1)

    Note:
        Node snapshots go stale after every mutation. Re-read nodes with
        ``get_node()`` before passing them to the next mutation.

        SQLite engines must go through ``enable_sqlite_transactions()`` (done
        by ``create_engine_from_settings()``) so that the positions a mutation
        reads are read under the write lock.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table_name: str = DEFAULT_TABLE_NAME,
        *,
        isolation_level: str | None = "SERIALIZABLE",
        **kwargs: Any,
    ) -> None:
        super().__init__(engine, table_name, **kwargs)
        self.isolation_level = isolation_level

    @classmethod
    def from_settings(
        cls,
        engine: AsyncEngine,
        settings: DatabaseSettings | None = None,
        **kwargs: Any,
    ) -> Self:
        """Build a NestedSet with table name and isolation level from settings."""
        settings = settings or get_database_settings()
        return cls(
            engine,
            settings.table_name,
            isolation_level=settings.isolation_level,
            **kwargs,
        )

    # ─────────────────────────────────────────────────────
    # Insertion
    # ─────────────────────────────────────────────────────
    async def add_root_node(self, key: NodeKey) -> Node:
        """Add a root after every existing node.

        An empty tree gets ``(1, 2, 0)``.
        """
        async with self._transaction("add_root_node") as conn:
            max_right = (await conn.execute(select(func.max(self.table.c.right_pos)))).scalar()
            node = await self._insert(conn, key, root_slot(max_right))
        self._log_insert("root", node)
        return node

    async def add_node_below(self, target: Node, key: NodeKey) -> Node:
        """Add a node as the last child of ``target``."""
        return await self._add_relative(Placement.BELOW, target, key)

    async def add_node_before(self, target: Node, key: NodeKey) -> Node:
        """Add a node as the immediate left sibling of ``target``."""
        return await self._add_relative(Placement.BEFORE, target, key)

    async def add_node_after(self, target: Node, key: NodeKey) -> Node:
        """Add a node as the immediate right sibling of ``target``."""
        return await self._add_relative(Placement.AFTER, target, key)

    async def _add_relative(self, placement: Placement, target: Node, key: NodeKey) -> Node:
        async with self._transaction(f"add_node_{placement}") as conn:
            current = await self._lock_node(conn, target)
            node = await self._insert(conn, key, insertion_slot(placement, current))
        self._log_insert(str(placement), node, target=target)
        return node

    async def _insert(self, conn: AsyncConnection, key: NodeKey, slot: InsertionSlot) -> Node:
        await self._open_gap(conn, slot.left, slot.width)
        node = Node(key, slot.left, slot.right, slot.depth)
        await conn.execute(insert(self.table).values(**node_values(node)))
        return node

    def _log_insert(self, placement: str, node: Node, *, target: Node | None = None) -> None:
        self._logger.info(
            "Node added",
            extra={
                "table": self.table_name,
                "placement": placement,
                "node": str(node.node_key),
                "target": str(target.node_key) if target is not None else None,
                "left": node.left,
                "depth": node.depth,
            },
        )

    # ─────────────────────────────────────────────────────
    # Deletion
    # ─────────────────────────────────────────────────────
    async def delete_node(self, node: Node) -> int:
        """Delete one node and promote its descendants one level up.

        Returns:
            Number of rows removed (1)

        Raises:
            NodeNotFoundError: If the node no longer exists
            StaleNodeError: If the snapshot no longer matches storage
        """
        t = self.table
        async with self._transaction("delete_node") as conn:
            current = await self._lock_node(conn, node)
            result = await conn.execute(delete(t).where(key_clause(t, current.node_key)))
            await conn.execute(
                update(t)
                .where(t.c.left_pos.between(current.left, current.right))
                .values(
                    left_pos=t.c.left_pos - 1,
                    right_pos=t.c.right_pos - 1,
                    depth=t.c.depth - 1,
                )
            )
            await self._close_gap(conn, current.right, SLOT_WIDTH)
        deleted = result.rowcount
        self._logger.info(
            "Node deleted",
            extra={"table": self.table_name, "node": str(node.node_key), "promoted": (current.width - 2) // 2},
        )
        return deleted

    async def delete_sub_tree(self, node: Node) -> int:
        """Delete a node together with all of its descendants.

        Returns:
            Number of rows removed

        Raises:
            NodeNotFoundError: If the node no longer exists
            StaleNodeError: If the snapshot no longer matches storage
        """
        t = self.table
        async with self._transaction("delete_sub_tree") as conn:
            current = await self._lock_node(conn, node)
            result = await conn.execute(
                delete(t).where(t.c.left_pos.between(current.left, current.right))
            )
            await self._close_gap(conn, current.right, current.width)
        deleted = result.rowcount
        self._logger.info(
            "Subtree deleted",
            extra={"table": self.table_name, "node": str(node.node_key), "rows": deleted},
        )
        return deleted

    # ─────────────────────────────────────────────────────
    # Movement
    # ─────────────────────────────────────────────────────
    async def move_sub_tree_below(self, target: Node, node: Node) -> Node:
        """Move ``node`` and its descendants to become the first child of ``target``."""
        return await self._move_relative(Placement.BELOW, target, node)

    async def move_sub_tree_before(self, target: Node, node: Node) -> Node:
        """Move ``node`` and its descendants to become the left sibling of ``target``."""
        return await self._move_relative(Placement.BEFORE, target, node)

    async def move_sub_tree_after(self, target: Node, node: Node) -> Node:
        """Move ``node`` and its descendants to become the right sibling of ``target``."""
        return await self._move_relative(Placement.AFTER, target, node)

    async def move_sub_tree_to_root(self, node: Node) -> Node:
        """Move ``node`` and its descendants in front of the root of its tree.

        A node that is already a root is returned unchanged.
        """
        async with self._transaction("move_sub_tree_to_root") as conn:
            current = await self._lock_node(conn, node)
            ancestors = await self._fetch_ancestors(conn, current.node_key)
            if not ancestors:
                return current
            plan = plan_subtree_move(Placement.BEFORE, ancestors[0], current)
            await self._apply_move(conn, plan)
            moved = await self._reread(conn, current.node_key)
        self._log_move("root", moved, ancestors[0], plan)
        return moved

    async def _move_relative(self, placement: Placement, target: Node, node: Node) -> Node:
        """Move a subtree relative to ``target``.

        Raises:
            InvalidMoveError: If target is the node or one of its descendants
            NodeNotFoundError: If either node no longer exists
            StaleNodeError: If either snapshot no longer matches storage
        """
        async with self._transaction(f"move_sub_tree_{placement}") as conn:
            current_target = await self._lock_node(conn, target)
            current = await self._lock_node(conn, node)
            plan = plan_subtree_move(placement, current_target, current)
            await self._apply_move(conn, plan)
            moved = await self._reread(conn, current.node_key)
        self._log_move(str(placement), moved, current_target, plan)
        return moved

    async def adopt_children(self, old_parent: Node, new_parent: Node) -> list[Node]:
        """Reparent every child of ``old_parent`` under ``new_parent``.

        The children keep their order and their subtrees, and are appended
        after any children ``new_parent`` already has. ``old_parent`` stays
        where it is and becomes a leaf.

        Returns:
            The adopted children in their new positions (empty if there were none)

        Raises:
            InvalidMoveError: If ``new_parent`` is a descendant of ``old_parent``
            NodeNotFoundError: If either node no longer exists
            StaleNodeError: If either snapshot no longer matches storage
        """
        t = self.table
        async with self._transaction("adopt_children") as conn:
            current_old = await self._lock_node(conn, old_parent)
            current_new = await self._lock_node(conn, new_parent)
            plan = plan_children_adoption(current_old, current_new)
            if plan is None:
                return []
            await self._apply_move(conn, plan)
            adopted = await self._fetch_all(
                conn,
                select(*node_columns(t))
                .where(
                    t.c.left_pos.between(plan.final_left, plan.final_left + plan.width - 1),
                    t.c.depth == current_new.depth + 1,
                )
                .order_by(t.c.left_pos),
            )
        self._logger.info(
            "Children adopted",
            extra={
                "table": self.table_name,
                "old_parent": str(old_parent.node_key),
                "new_parent": str(new_parent.node_key),
                "children": len(adopted),
            },
        )
        return adopted

    def _log_move(self, placement: str, moved: Node, target: Node, plan: MovePlan) -> None:
        self._logger.info(
            "Subtree moved",
            extra={
                "table": self.table_name,
                "placement": placement,
                "node": str(moved.node_key),
                "target": str(target.node_key),
                "width": plan.width,
                "distance": 0 if plan.stationary else plan.distance,
                "depth_diff": plan.depth_diff,
            },
        )

    # ─────────────────────────────────────────────────────
    # Integrity
    # ─────────────────────────────────────────────────────
    async def check_integrity(self) -> None:
        """Verify the stored numbering against the nested-set invariants.

        Raises:
            TreeIntegrityError: Listing every violation found
        """
        nodes = await self.get_tree()
        validate_tree(nodes)
        self._logger.debug(
            "Integrity ok for %s (%d nodes)\n%s",
            self.table_name,
            len(nodes),
            lazy(lambda: format_tree(nodes)),
        )

    # ─────────────────────────────────────────────────────
    # Transaction helpers
    # ─────────────────────────────────────────────────────
    def _transaction(self, operation: str) -> AbstractAsyncContextManager[AsyncConnection]:
        return atomic(self.engine, isolation_level=self.isolation_level, operation=operation)

    async def _lock_node(self, conn: AsyncConnection, snapshot: Node) -> Node:
        """Re-read a node inside the transaction and check it against the snapshot.

        Raises:
            NodeNotFoundError: If no row has the snapshot's key
            StaleNodeError: If the stored position differs from the snapshot
        """
        stmt = (
            select(*node_columns(self.table))
            .where(key_clause(self.table, snapshot.node_key))
            .with_for_update()
        )
        current = await self._fetch_one(conn, stmt)
        if current is None:
            raise NodeNotFoundError(self.table_name, snapshot.node_key)
        if not current.same_position(snapshot):
            raise StaleNodeError(snapshot, current)
        return current

    async def _reread(self, conn: AsyncConnection, node_key: NodeKey) -> Node:
        node = await self._fetch_node(conn, node_key)
        if node is None:
            raise NodeNotFoundError(self.table_name, node_key)
        return node

    # ─────────────────────────────────────────────────────
    # Range updates
    # ─────────────────────────────────────────────────────
    async def _open_gap(self, conn: AsyncConnection, position: int, width: int) -> None:
        """Shift every boundary at or beyond ``position`` up by ``width``."""
        t = self.table
        await conn.execute(
            update(t).where(t.c.right_pos >= position).values(right_pos=t.c.right_pos + width)
        )
        await conn.execute(
            update(t).where(t.c.left_pos >= position).values(left_pos=t.c.left_pos + width)
        )

    async def _close_gap(self, conn: AsyncConnection, after: int, width: int) -> None:
        """Shift every boundary beyond ``after`` down by ``width``."""
        t = self.table
        await conn.execute(
            update(t).where(t.c.left_pos > after).values(left_pos=t.c.left_pos - width)
        )
        await conn.execute(
            update(t).where(t.c.right_pos > after).values(right_pos=t.c.right_pos - width)
        )

    async def _apply_move(self, conn: AsyncConnection, plan: MovePlan) -> None:
        t = self.table
        if plan.stationary:
            if plan.depth_diff:
                await conn.execute(
                    update(t)
                    .where(t.c.left_pos.between(plan.source_left, plan.source_right))
                    .values(depth=t.c.depth + plan.depth_diff)
                )
            return

        await self._open_gap(conn, plan.new_left, plan.width)
        await conn.execute(
            update(t)
            .where(t.c.left_pos.between(plan.temp_left, plan.temp_right))
            .values(
                left_pos=t.c.left_pos + plan.distance,
                right_pos=t.c.right_pos + plan.distance,
                depth=t.c.depth + plan.depth_diff,
            )
        )
        await self._close_gap(conn, plan.source_right, plan.width)
        self._lazy.debug(
            lambda: (
                f"Block [{plan.source_left}, {plan.source_right}] moved by {plan.distance} "
                f"(depth {plan.depth_diff:+d})"
            )
        )
