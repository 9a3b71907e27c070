"""
Infrastructure package for stmtscope.

Centralizes database connectivity concerns (connection factory, pooling,
statement timeouts). Keep this layer focused on I/O and resource management,
decoupled from query composition.
"""

from stmtscope.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
