"""
Statement-summary queries and collector configuration access.

The `build_*` functions are pure: they turn filter parameters and the live
column set into a `SelectQuery` without touching the store. `read_config`
and `write_config` talk to a `SettingsStore` directly.

Sample search parameters:
    begin_time: 1586844000
    end_time:   1586845800
    schemas:    ["tpcc", "test"]
    stmt_types: ["Select", "Update"]
    fields:     ["digest_text", "sum_latency"]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from pydantic import ValidationError

from stmtscope.domain.errors import InvalidWindowError, StoreReadError, StoreWriteError
from stmtscope.domain.models import (
    DEFAULT_HISTORY_SIZE,
    DEFAULT_REFRESH_INTERVAL,
    UNSET_SENTINEL,
    QueryFilter,
    StmtConfig,
)
from stmtscope.statement.builder import (
    ProjectionItem,
    SelectQuery,
    equals_predicate,
    in_predicate,
    schemas_predicate,
    stmt_types_predicate,
    text_search_predicates,
    window_predicate,
)
from stmtscope.statement.fields import ALL_FIELDS, PLAN_LIST_FIELDS, build_projection
from stmtscope.store.abstract import SettingsStore


@dataclass(frozen=True)
class ConfigVariables:
    """Names of the three collector settings in the store."""

    enable: str = "stmt_summary.enable"
    refresh_interval: str = "stmt_summary.refresh_interval"
    history_size: str = "stmt_summary.history_size"


def read_config(store: SettingsStore, variables: ConfigVariables) -> StmtConfig:
    """
    Read the collector configuration, substituting defaults for unset values.

    Variables are read in order; a failure aborts before the next one is read.
    """
    enable = store.read_int(variables.enable)

    refresh_interval = store.read_int(variables.refresh_interval)
    if refresh_interval == UNSET_SENTINEL:
        refresh_interval = DEFAULT_REFRESH_INTERVAL

    history_size = store.read_int(variables.history_size)
    if history_size == UNSET_SENTINEL:
        history_size = DEFAULT_HISTORY_SIZE

    try:
        return StmtConfig(
            enabled=enable != 0,
            refresh_interval=refresh_interval,
            history_size=history_size,
        )
    except ValidationError as exc:
        raise StoreReadError(f"stored collector configuration is invalid: {exc}") from exc


def write_config(store: SettingsStore, variables: ConfigVariables, config: StmtConfig) -> None:
    """
    Persist the collector configuration.

    The enable flag is always written first. Interval and history size are
    only written while collection is enabled. Writes are sequential and not
    atomic; the first failure stops the sequence and the raised
    StoreWriteError lists what was already persisted.
    """
    writes = [(variables.enable, 1 if config.enabled else 0)]
    if config.enabled:
        writes.append((variables.refresh_interval, config.refresh_interval))
        writes.append((variables.history_size, config.history_size))

    persisted: List[str] = []
    for name, value in writes:
        try:
            store.write_value(name, value)
        except StoreWriteError as exc:
            raise StoreWriteError(str(exc), setting=name, persisted=persisted) from exc
        persisted.append(name)


def check_window(begin_time: int, end_time: int) -> None:
    """Reject negative epochs and windows that end before they begin."""
    if begin_time < 0 or end_time < 0:
        raise InvalidWindowError(
            f"window bounds must be non-negative, got [{begin_time}, {end_time}]",
            begin_time=begin_time,
            end_time=end_time,
        )
    if begin_time > end_time:
        raise InvalidWindowError(
            f"window begins at {begin_time} after it ends at {end_time}",
            begin_time=begin_time,
            end_time=end_time,
        )


def build_time_ranges_query(table: str) -> SelectQuery:
    return SelectQuery(
        table=table,
        projection=[
            ProjectionItem("begin_time", "FLOOR(EXTRACT(EPOCH FROM summary_begin_time))::bigint"),
            ProjectionItem("end_time", "FLOOR(EXTRACT(EPOCH FROM summary_end_time))::bigint"),
        ],
        distinct=True,
        order_by="begin_time DESC, end_time DESC",
    )


def build_stmt_types_query(table: str) -> SelectQuery:
    return SelectQuery(
        table=table,
        projection=[ProjectionItem("stmt_type", "stmt_type")],
        distinct=True,
        order_by="stmt_type ASC",
    )


def build_statements_query(
    table: str, table_columns: Iterable[str], query_filter: QueryFilter
) -> SelectQuery:
    """
    Search statements, one row per (schema_name, digest), costliest first.

    Fields are validated before any predicate is built.
    """
    projection = build_projection(table_columns, query_filter.fields)

    query = SelectQuery(
        table=table,
        projection=projection,
        group_by=("schema_name", "digest"),
        # Order on the expression, not an alias, so sum_latency need not be requested.
        order_by="SUM(sum_latency) DESC",
    )
    query.where(window_predicate(query_filter.begin_time, query_filter.end_time))
    query.where(schemas_predicate(query_filter.schemas))
    query.where(stmt_types_predicate(query_filter.stmt_types))
    for predicate in text_search_predicates(query_filter.text):
        query.where(predicate)
    return query


def build_plans_query(
    table: str,
    table_columns: Iterable[str],
    begin_time: int,
    end_time: int,
    schema_name: str,
    digest: str,
) -> SelectQuery:
    """Execution plans of one statement fingerprint, one row per plan digest."""
    projection = build_projection(table_columns, PLAN_LIST_FIELDS)

    query = SelectQuery(table=table, projection=projection, group_by=("plan_digest",))
    query.where(window_predicate(begin_time, end_time))
    query.where(equals_predicate("schema_name", schema_name))
    query.where(equals_predicate("digest", digest))
    return query


def build_plan_detail_query(
    table: str,
    table_columns: Iterable[str],
    begin_time: int,
    end_time: int,
    schema_name: str,
    digest: str,
    plans: Sequence[str],
) -> SelectQuery:
    """
    Every available field of one statement, aggregated over the given plans
    (all plans when `plans` is empty). No GROUP BY, so at most one row.
    """
    projection = build_projection(table_columns, [ALL_FIELDS])

    query = SelectQuery(table=table, projection=projection, limit=1)
    query.where(window_predicate(begin_time, end_time))
    query.where(equals_predicate("schema_name", schema_name))
    query.where(equals_predicate("digest", digest))
    query.where(in_predicate("plan_digest", list(plans)))
    return query


__all__ = [
    "ConfigVariables",
    "build_plan_detail_query",
    "build_plans_query",
    "build_statements_query",
    "build_stmt_types_query",
    "build_time_ranges_query",
    "check_window",
    "read_config",
    "write_config",
]
