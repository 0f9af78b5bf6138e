"""SQL identifier validation for tree table names.

Each tree lives in its own table, so the table name is the one piece of
caller input that ends up in statement text rather than in a bound
parameter. It is checked against an allow-list pattern before any
``Table`` object is built; SQLAlchemy then quotes it per dialect.

Example:
    from nested_set.core.validation import validate_table_name

    validate_table_name("tree")          # 'tree'
    validate_table_name("tree; DROP")    # raises IdentifierValidationError
"""

from __future__ import annotations

import re

# Start with a letter, then letters, digits or underscores; 2-64 chars total
VALID_TABLE_NAME = re.compile(r"[A-Za-z][A-Za-z0-9_]{1,63}")
MAX_IDENTIFIER_LENGTH = 64

# SQL reserved keywords that should not be used as unquoted identifiers
# This is a subset of the most dangerous ones
RESERVED_KEYWORDS = frozenset(
    {
        "select",
        "insert",
        "update",
        "delete",
        "drop",
        "truncate",
        "create",
        "alter",
        "grant",
        "revoke",
        "union",
        "join",
        "where",
        "from",
        "table",
        "index",
        "database",
        "schema",
        "execute",
        "exec",
    },
)


class IdentifierValidationError(ValueError):
    """Invalid SQL identifier."""


def validate_table_name(name: str) -> str:
    """Validate a tree table name against injection attacks.

    Args:
        name: The table name to validate

    Returns:
        The validated table name (unchanged if valid)

    Raises:
        IdentifierValidationError: If the name is empty, too long, contains
            characters outside the allow-list, or is a reserved keyword

    Example:
        >>> validate_table_name("category_tree")
        'category_tree'
    """
    if not isinstance(name, str) or not name:
        msg = "Empty table name not allowed"
        raise IdentifierValidationError(msg)

    if len(name) > MAX_IDENTIFIER_LENGTH:
        msg = f"table name exceeds maximum length of {MAX_IDENTIFIER_LENGTH}"
        raise IdentifierValidationError(msg)

    if not VALID_TABLE_NAME.fullmatch(name):
        msg = (
            f"Table name must match the pattern {VALID_TABLE_NAME.pattern}: "
            "start with a letter, contain only letters, digits or underscores"
        )
        raise IdentifierValidationError(msg)

    if name.lower() in RESERVED_KEYWORDS:
        msg = f"'{name}' is a SQL reserved keyword and cannot be used as a table name"
        raise IdentifierValidationError(msg)

    return name


__all__ = [
    "IdentifierValidationError",
    "MAX_IDENTIFIER_LENGTH",
    "RESERVED_KEYWORDS",
    "VALID_TABLE_NAME",
    "validate_table_name",
]
