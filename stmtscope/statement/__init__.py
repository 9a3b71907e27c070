"""
Statement package for stmtscope.

Query composition (builder, field catalog, query functions) and the
StatementService that exposes the seven operations.
"""

from stmtscope.statement.builder import Predicate, ProjectionItem, SelectQuery
from stmtscope.statement.fields import PLAN_LIST_FIELDS, STATEMENT_FIELDS, build_projection
from stmtscope.statement.queries import ConfigVariables, read_config, write_config
from stmtscope.statement.service import StatementService

__all__ = [
    "ConfigVariables",
    "PLAN_LIST_FIELDS",
    "Predicate",
    "ProjectionItem",
    "STATEMENT_FIELDS",
    "SelectQuery",
    "StatementService",
    "build_projection",
    "read_config",
    "write_config",
]
