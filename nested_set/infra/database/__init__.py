"""Database engine creation and transaction scoping."""

from nested_set.infra.database.session import create_engine_from_settings, enable_sqlite_transactions
from nested_set.infra.database.transaction import atomic

__all__ = [
    "atomic",
    "create_engine_from_settings",
    "enable_sqlite_transactions",
]
