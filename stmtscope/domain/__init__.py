"""
Domain package for stmtscope.

Exports the models and the error taxonomy shared by the statement service,
the store adapters, and the CLI.
"""

from stmtscope.domain.errors import (
    InvalidWindowError,
    ResolverError,
    StatementQueryError,
    StoreReadError,
    StoreWriteError,
    UnknownFieldError,
)
from stmtscope.domain.models import (
    DEFAULT_HISTORY_SIZE,
    DEFAULT_REFRESH_INTERVAL,
    UNSET_SENTINEL,
    Model,
    QueryFilter,
    StmtConfig,
    TimeRange,
)

__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_REFRESH_INTERVAL",
    "UNSET_SENTINEL",
    "Model",
    "QueryFilter",
    "StmtConfig",
    "TimeRange",
    "InvalidWindowError",
    "ResolverError",
    "StatementQueryError",
    "StoreReadError",
    "StoreWriteError",
    "UnknownFieldError",
]
