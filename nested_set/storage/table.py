"""Table definition and row mapping for a tree partition.

One table holds one numbering space. Rows map one-to-one to ``Node``:

    id           identifier (Integer by default, String for string keys)
    revision_id  identifier
    left_pos     left boundary
    right_pos    right boundary
    depth        distance from the root
    PRIMARY KEY (id, revision_id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Index, Integer, MetaData, PrimaryKeyConstraint, Table

from nested_set.core.node import Node
from nested_set.core.validation import validate_table_name

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Row
    from sqlalchemy.sql.expression import FromClause
    from sqlalchemy.types import TypeEngine

    from nested_set.core.node import NodeKey

DEFAULT_TABLE_NAME = "tree"


def build_tree_table(
    table_name: str = DEFAULT_TABLE_NAME,
    metadata: MetaData | None = None,
    *,
    id_type: TypeEngine[Any] | type[TypeEngine[Any]] = Integer,
    revision_id_type: TypeEngine[Any] | type[TypeEngine[Any]] | None = None,
) -> Table:
    """Describe the tree table for ``table_name``.

    Args:
        table_name: Table name; validated against the identifier allow-list
        metadata: MetaData to register the table on (a fresh one if omitted)
        id_type: Column type of ``id``
        revision_id_type: Column type of ``revision_id`` (defaults to id_type)

    Returns:
        SQLAlchemy Core Table with the primary key and range indexes

    Raises:
        IdentifierValidationError: If the table name is not allowed
    """
    name = validate_table_name(table_name)
    metadata = metadata if metadata is not None else MetaData()
    return Table(
        name,
        metadata,
        Column("id", id_type, nullable=False),
        Column("revision_id", revision_id_type or id_type, nullable=False),
        Column("left_pos", Integer, nullable=False),
        Column("right_pos", Integer, nullable=False),
        Column("depth", Integer, nullable=False),
        PrimaryKeyConstraint("id", "revision_id", name=f"pk_{name}"),
        Index(f"ix_{name}_key_position", "id", "revision_id", "left_pos", "right_pos", "depth"),
        Index(f"ix_{name}_left_right", "left_pos", "right_pos"),
        Index(f"ix_{name}_right", "right_pos"),
    )


def node_columns(table: FromClause) -> tuple[ColumnElement[Any], ...]:
    """Columns to select, in the order node_from_row() expects."""
    return (
        table.c.id,
        table.c.revision_id,
        table.c.left_pos,
        table.c.right_pos,
        table.c.depth,
    )


def key_clause(table: FromClause, node_key: NodeKey) -> ColumnElement[bool]:
    """WHERE clause matching the row for ``node_key``."""
    return (table.c.id == node_key.id) & (table.c.revision_id == node_key.revision_id)


def node_from_row(row: Row[Any]) -> Node:
    """Map a row selected with node_columns() to a Node."""
    id_, revision_id, left, right, depth = row
    return Node.create(id_, revision_id, left, right, depth)


def node_values(node: Node) -> dict[str, Any]:
    """Column values for inserting ``node``."""
    return {
        "id": node.id,
        "revision_id": node.revision_id,
        "left_pos": node.left,
        "right_pos": node.right,
        "depth": node.depth,
    }
