"""
Statement service: the operations offered to the API layer and the CLI.

Usage:
    from stmtscope.statement.service import StatementService

    service = StatementService.from_settings()
    ranges = service.get_time_ranges()
    rows = service.get_statements(
        ranges[0].begin_time, ranges[0].end_time,
        schemas=["tpcc"], stmt_types=[], text="select",
        fields=["digest_text", "sum_latency"],
    )

The service holds no mutable state: the column whitelist is re-read on every
call and configuration is always read from the store.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from stmtscope.config import Settings, get_settings
from stmtscope.domain.models import Model, QueryFilter, StmtConfig, TimeRange
from stmtscope.statement.queries import (
    ConfigVariables,
    build_plan_detail_query,
    build_plans_query,
    build_statements_query,
    build_stmt_types_query,
    build_time_ranges_query,
    check_window,
    read_config,
    write_config,
)
from stmtscope.store.abstract import ColumnResolver, QueryExecutor, SettingsStore
from stmtscope.store.postgres import (
    PostgresColumnResolver,
    PostgresQueryExecutor,
    PostgresSettingsStore,
)
from stmtscope.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_STATEMENTS_TABLE = "public.statements_summary_history"


class StatementService:
    """Composes and runs statement-summary queries against one history table."""

    def __init__(
        self,
        executor: QueryExecutor,
        resolver: ColumnResolver,
        settings_store: SettingsStore,
        table: str = DEFAULT_STATEMENTS_TABLE,
        variables: Optional[ConfigVariables] = None,
    ) -> None:
        self.executor = executor
        self.resolver = resolver
        self.settings_store = settings_store
        self.table = table
        self.variables = variables or ConfigVariables()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StatementService":
        """Wire the PostgreSQL adapters using application settings."""
        settings = settings or get_settings()
        return cls(
            executor=PostgresQueryExecutor(statement_timeout_ms=settings.db_statement_timeout_ms),
            resolver=PostgresColumnResolver(),
            settings_store=PostgresSettingsStore(),
            table=settings.stmt_table,
            variables=ConfigVariables(
                enable=settings.stmt_enable_var,
                refresh_interval=settings.stmt_refresh_interval_var,
                history_size=settings.stmt_history_size_var,
            ),
        )

    # Configuration

    def get_config(self) -> StmtConfig:
        config = read_config(self.settings_store, self.variables)
        log.info(
            "Read statement summary config",
            extra={"operation": "get_config", "enabled": config.enabled},
        )
        return config

    def modify_config(self, config: StmtConfig) -> None:
        write_config(self.settings_store, self.variables, config)
        log.info(
            "Updated statement summary config",
            extra={"operation": "modify_config", "enabled": config.enabled},
        )

    # Enumerations

    def get_time_ranges(self) -> List[TimeRange]:
        rows = self.executor.fetch_all(build_time_ranges_query(self.table))
        log.info("Listed time ranges", extra={"operation": "get_time_ranges", "rows": len(rows)})
        return [TimeRange(begin_time=row["begin_time"], end_time=row["end_time"]) for row in rows]

    def get_stmt_types(self) -> List[str]:
        rows = self.executor.fetch_all(build_stmt_types_query(self.table))
        log.info("Listed statement types", extra={"operation": "get_stmt_types", "rows": len(rows)})
        return [row["stmt_type"] for row in rows]

    # Statements

    def get_statements(
        self,
        begin_time: int,
        end_time: int,
        schemas: Sequence[str] = (),
        stmt_types: Sequence[str] = (),
        text: str = "",
        fields: Sequence[str] = (),
    ) -> List[Model]:
        """
        Search statements in the window, one row per (schema, digest).

        Raises InvalidWindowError or UnknownFieldError before running anything
        when the window is inverted or `fields` holds a name the live table
        cannot provide.
        """
        check_window(begin_time, end_time)
        query_filter = QueryFilter(
            begin_time=begin_time,
            end_time=end_time,
            schemas=list(schemas),
            stmt_types=list(stmt_types),
            text=text,
            fields=list(fields),
        )
        columns = self.resolver.get_columns(self.table)
        query = build_statements_query(self.table, columns, query_filter)
        rows = self.executor.fetch_all(query)
        log.info(
            "Searched statements",
            extra={
                "operation": "get_statements",
                "rows": len(rows),
                "schemas": len(query_filter.schemas),
                "stmt_types": len(query_filter.stmt_types),
                "terms": len(query_filter.text.split()),
            },
        )
        return [dict(row) for row in rows]

    def get_plans(
        self, begin_time: int, end_time: int, schema_name: str, digest: str
    ) -> List[Model]:
        check_window(begin_time, end_time)
        columns = self.resolver.get_columns(self.table)
        query = build_plans_query(self.table, columns, begin_time, end_time, schema_name, digest)
        rows = self.executor.fetch_all(query)
        log.info("Listed plans", extra={"operation": "get_plans", "rows": len(rows)})
        return [dict(row) for row in rows]

    def get_plan_detail(
        self,
        begin_time: int,
        end_time: int,
        schema_name: str,
        digest: str,
        plans: Sequence[str] = (),
    ) -> Model:
        """
        Every available field of one statement, aggregated over `plans`.

        Returns an empty dict when nothing matches, rather than raising.
        """
        check_window(begin_time, end_time)
        columns = self.resolver.get_columns(self.table)
        query = build_plan_detail_query(
            self.table, columns, begin_time, end_time, schema_name, digest, plans
        )
        row = self.executor.fetch_one(query)
        # Aggregates without GROUP BY yield one all-NULL row when nothing matched.
        if row is None or row.get("digest") is None:
            log.info("Plan detail not found", extra={"operation": "get_plan_detail"})
            return {}
        log.info("Fetched plan detail", extra={"operation": "get_plan_detail"})
        return dict(row)


__all__ = ["DEFAULT_STATEMENTS_TABLE", "StatementService"]
