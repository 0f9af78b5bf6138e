"""Storage layer: tree table, schema, queries and mutations."""

from nested_set.storage.nested_set import NestedSet
from nested_set.storage.queries import NestedSetQueries
from nested_set.storage.schema import NestedSetSchema
from nested_set.storage.table import DEFAULT_TABLE_NAME, build_tree_table

__all__ = [
    "DEFAULT_TABLE_NAME",
    "NestedSet",
    "NestedSetQueries",
    "NestedSetSchema",
    "build_tree_table",
]
