"""
PostgreSQL adapters for the statement service collaborators.

- PostgresColumnResolver: live column set from information_schema.
- PostgresQueryExecutor: runs rendered SelectQuery objects through the pool.
- PostgresSettingsStore: custom configuration parameters read with
  current_setting() and persisted with ALTER SYSTEM.

Driver exceptions are translated into the stmtscope error taxonomy here, so
nothing above this module needs to know about psycopg.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from stmtscope.config import get_settings
from stmtscope.domain.errors import ResolverError, StoreReadError, StoreWriteError
from stmtscope.domain.models import UNSET_SENTINEL
from stmtscope.infrastructure.db_factory import (
    apply_statement_timeout,
    get_sync_connection,
    get_sync_pool,
)
from stmtscope.statement.builder import SelectQuery
from stmtscope.utils.logging import get_logger

log = get_logger(__name__)


def split_table_name(table: str) -> Tuple[str, str]:
    """Split "schema.table" (schema defaults to public)."""
    schema, _, name = table.rpartition(".")
    return (schema or "public").lower(), name.lower()


class PostgresColumnResolver:
    """Reads the live column set of a table from information_schema."""

    def __init__(self, pool: Optional[ConnectionPool] = None) -> None:
        self._pool = pool

    def get_columns(self, table: str) -> Set[str]:
        schema, name = split_table_name(table)
        pool = self._pool or get_sync_pool()
        try:
            with pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT LOWER(column_name) FROM information_schema.columns "
                        "WHERE table_schema = %s AND table_name = %s",
                        (schema, name),
                    )
                    columns = {row[0] for row in cur.fetchall()}
        except psycopg.Error as exc:
            raise ResolverError(f"failed to list columns of {table}: {exc}", table=table) from exc

        if not columns:
            raise ResolverError(f"table {table} does not exist or has no columns", table=table)
        return columns


class PostgresQueryExecutor:
    """Executes SelectQuery objects with bound parameters, rows as dicts."""

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self._timeout_ms = (
            get_settings().db_statement_timeout_ms
            if statement_timeout_ms is None
            else statement_timeout_ms
        )

    def _run(self, query: SelectQuery, fetch: Callable[[psycopg.Cursor], Any]) -> Any:
        statement, params = query.render()
        log.debug("Executing statement query", extra={"sql": statement})
        pool = self._pool or get_sync_pool()
        try:
            with pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._timeout_ms)
                    cur.execute(statement, params)
                    return fetch(cur)
        except psycopg.Error as exc:
            raise StoreReadError(f"query on {query.table} failed: {exc}") from exc

    def fetch_all(self, query: SelectQuery) -> List[Dict[str, Any]]:
        return self._run(query, lambda cur: cur.fetchall())

    def fetch_one(self, query: SelectQuery) -> Optional[Dict[str, Any]]:
        return self._run(query, lambda cur: cur.fetchone())


def parse_setting(name: str, raw: Optional[str]) -> int:
    """Map a raw current_setting() value to an int; unset becomes the sentinel."""
    if raw is None or raw.strip() == "":
        return UNSET_SENTINEL
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise StoreReadError(f"setting {name} is not an integer: {raw!r}", setting=name) from exc


class PostgresSettingsStore:
    """
    Custom configuration parameters ("prefix.name") as global settings.

    Writes go through ALTER SYSTEM, which cannot run in a transaction block
    and does not accept bind parameters, so each write opens an autocommit
    connection and composes the statement with psycopg.sql.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        connect: Optional[Callable[[], Connection]] = None,
    ) -> None:
        self._pool = pool
        self._connect = connect or partial(get_sync_connection, autocommit=True)

    def read_int(self, name: str) -> int:
        pool = self._pool or get_sync_pool()
        try:
            with pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT current_setting(%s, true)", (name,))
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise StoreReadError(f"failed to read setting {name}: {exc}", setting=name) from exc
        return parse_setting(name, row[0] if row else None)

    def write_value(self, name: str, value: Any) -> None:
        statement = sql.SQL("ALTER SYSTEM SET {} = {}").format(
            sql.Identifier(*name.split(".")), sql.Literal(str(value))
        )
        try:
            with self._connect() as conn:
                conn.execute(statement)
                conn.execute("SELECT pg_reload_conf()")
        except psycopg.Error as exc:
            raise StoreWriteError(f"failed to write setting {name}: {exc}", setting=name) from exc
        log.info("Setting persisted", extra={"setting": name})


__all__ = [
    "PostgresColumnResolver",
    "PostgresQueryExecutor",
    "PostgresSettingsStore",
    "parse_setting",
    "split_table_name",
]
