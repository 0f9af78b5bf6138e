"""Base class for storage objects bound to one tree table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, MetaData

from nested_set.infra.logging import get_lazy_logger
from nested_set.storage.table import DEFAULT_TABLE_NAME, build_tree_table

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlalchemy.types import TypeEngine


class BaseStorage:
    """Holds the engine and the validated Table for one tree partition.

    Args:
        engine: Async engine for the backing database
        table_name: Tree table name; validated before any statement is built
        id_type: Column type for ``id`` (Integer by default)
        revision_id_type: Column type for ``revision_id`` (defaults to id_type)
        metadata: Optional MetaData to register the table on

    Raises:
        IdentifierValidationError: If ``table_name`` is not an allowed identifier
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table_name: str = DEFAULT_TABLE_NAME,
        *,
        id_type: TypeEngine[Any] | type[TypeEngine[Any]] = Integer,
        revision_id_type: TypeEngine[Any] | type[TypeEngine[Any]] | None = None,
        metadata: MetaData | None = None,
    ) -> None:
        self.engine = engine
        self.table = build_tree_table(
            table_name,
            metadata if metadata is not None else MetaData(),
            id_type=id_type,
            revision_id_type=revision_id_type,
        )
        self.table_name = self.table.name
        # Standard logger for INFO/WARNING/ERROR
        self._logger = logging.getLogger(f"nested_set.storage.{self.table_name}")
        # Lazy logger for DEBUG (zero overhead when DEBUG disabled)
        self._lazy = get_lazy_logger(f"nested_set.storage.{self.table_name}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table_name!r}, dialect={self.engine.dialect.name!r})"
