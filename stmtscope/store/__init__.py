"""
Store package for stmtscope.

Collaborator protocols (column discovery, query execution, global settings)
and their PostgreSQL implementations.
"""

from stmtscope.store.abstract import ColumnResolver, QueryExecutor, SettingsStore
from stmtscope.store.postgres import (
    PostgresColumnResolver,
    PostgresQueryExecutor,
    PostgresSettingsStore,
)

__all__ = [
    # Protocols
    "ColumnResolver",
    "QueryExecutor",
    "SettingsStore",
    # PostgreSQL adapters
    "PostgresColumnResolver",
    "PostgresQueryExecutor",
    "PostgresSettingsStore",
]
