"""Create and drop the table backing a tree.

Applications that manage their schema with migrations can ignore this and
create the table themselves; the layout is described in
``nested_set.storage.table``.
"""

from __future__ import annotations

from nested_set.storage.base import BaseStorage


class NestedSetSchema(BaseStorage):
    """Schema operations for one tree table.

    Example:
        >>> schema = NestedSetSchema(engine, "category_tree")
        >>> await schema.create()
        >>> await schema.exists()
        True
        >>> await schema.drop()
    """

    async def create(self) -> None:
        """Create the table and its indexes if they do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.table.metadata.create_all, tables=[self.table], checkfirst=True)
        self._logger.info("Tree table created", extra={"table": self.table_name})

    async def drop(self) -> None:
        """Drop the table if it exists."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.table.metadata.drop_all, tables=[self.table], checkfirst=True)
        self._logger.info("Tree table dropped", extra={"table": self.table_name})

    async def exists(self) -> bool:
        """Check whether the table exists."""
        async with self.engine.connect() as conn:
            return await conn.run_sync(
                lambda sync_conn: sync_conn.dialect.has_table(sync_conn, self.table_name)
            )
