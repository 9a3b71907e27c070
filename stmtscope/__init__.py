"""
stmtscope - Search and configure a statement-summary history table.

This package composes safe, parameterized queries over a wide, append-only
table of per-window statement statistics, including:

- Summary window and statement type enumeration
- Multi-schema, multi-type, multi-term statement search
- Execution plan listing and plan detail for one statement
- Collector configuration with default substitution for unset settings

Requested output fields are validated against the live column set before any
query is built, and every caller value is bound as a parameter.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from stmtscope.config import Settings, get_settings
from stmtscope.domain import (
    InvalidWindowError,
    Model,
    QueryFilter,
    ResolverError,
    StatementQueryError,
    StmtConfig,
    StoreReadError,
    StoreWriteError,
    TimeRange,
    UnknownFieldError,
)
from stmtscope.statement.service import StatementService
from stmtscope.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Service
    "StatementService",
    # Domain
    "Model",
    "QueryFilter",
    "StmtConfig",
    "TimeRange",
    # Errors
    "InvalidWindowError",
    "ResolverError",
    "StatementQueryError",
    "StoreReadError",
    "StoreWriteError",
    "UnknownFieldError",
    # Logging
    "configure_logging",
    "get_logger",
]
