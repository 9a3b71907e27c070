"""
Parameterized query builder for the statement-summary history table.

Queries are assembled from `Predicate` fragments: a SQL template that only
ever comes from this module (with `%s` placeholders) plus the values bound to
those placeholders. Caller input never reaches the SQL text; it travels in
`params` and is bound by the driver. `SelectQuery.render()` is the single
place where fragments are joined into final query text.

Supports:
- Summary window containment (both bounds inclusive, one-second resolution)
- Schema filter as a single regex alternation with a word boundary
- Statement type set membership
- Multi-term free-text search (AND across terms, OR across columns)
- Exact-match and set-membership helpers for plan queries
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

# Columns searched by free text, in the order the OR-chain checks them.
SEARCHABLE_COLUMNS = ("digest_text", "digest", "schema_name", "table_names", "plan")

# Regex for columns the builder may reference in templates.
_COLUMN_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True)
class Predicate:
    """A WHERE fragment and the values bound to its placeholders."""

    template: str
    params: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        placeholders = self.template.count("%s")
        if placeholders != len(self.params):
            raise ValueError(
                f"predicate has {placeholders} placeholders but {len(self.params)} params"
            )


@dataclass(frozen=True)
class ProjectionItem:
    """An output column: quoted alias over a trusted SQL expression."""

    alias: str
    expression: str


@dataclass
class SelectQuery:
    """
    A SELECT over one table, built incrementally and rendered once.
    """

    table: str
    projection: List[ProjectionItem]
    predicates: List[Predicate] = field(default_factory=list)
    group_by: Sequence[str] = ()
    order_by: Optional[str] = None
    distinct: bool = False
    limit: Optional[int] = None

    def where(self, predicate: Optional[Predicate]) -> "SelectQuery":
        """Append a predicate; `None` is ignored so optional filters chain cleanly."""
        if predicate is not None:
            self.predicates.append(predicate)
        return self

    def render(self) -> Tuple[str, List[Any]]:
        """
        Build the final SQL and its positional parameters.
        Returns (sql, params).
        """
        if not self.projection:
            raise ValueError("cannot render a query without output columns")

        select_parts = [f'{item.expression} AS "{item.alias}"' for item in self.projection]
        distinct = "DISTINCT " if self.distinct else ""

        params: List[Any] = []
        conditions = []
        for predicate in self.predicates:
            conditions.append(f"({predicate.template})")
            params.extend(predicate.params)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        group_clause = f"GROUP BY {', '.join(self.group_by)}" if self.group_by else ""
        order_clause = f"ORDER BY {self.order_by}" if self.order_by else ""

        limit_clause = ""
        if self.limit is not None:
            params.append(self.limit)
            limit_clause = "LIMIT %s"

        sql = (
            f"SELECT {distinct}{', '.join(select_parts)} FROM {self.table} "
            f"{where_clause} {group_clause} {order_clause} {limit_clause}"
        )
        return " ".join(sql.split()), params  # Normalize whitespace


def _check_column(column: str) -> str:
    if not _COLUMN_RE.match(column):
        raise ValueError(f"'{column}' is not a valid column name")
    return column


def pg_regex_escape(value: str) -> str:
    """
    Escape every regex metacharacter so `value` matches literally.

    PostgreSQL AREs treat a backslash before a non-alphanumeric character as
    that literal character, so escaping all non-word characters is safe.
    """
    return re.sub(r"(\W)", r"\\\1", value)


def window_predicate(begin_time: int, end_time: int) -> Predicate:
    """Summary window fully inside [begin_time, end_time]."""
    return Predicate(
        "summary_begin_time >= to_timestamp(%s) AND summary_end_time <= to_timestamp(%s)",
        (int(begin_time), int(end_time)),
    )


def schemas_predicate(schemas: Sequence[str]) -> Optional[Predicate]:
    """
    Rows whose table references mention any of `schemas`.

    Each schema becomes `\\y<schema>\\.`, so "tpcc" matches "tpcc.orders" but
    neither "tpccx.orders" nor "xtpcc.orders".
    """
    names = [name for name in schemas if name]
    if not names:
        return None
    pattern = "|".join(rf"\y{pg_regex_escape(name)}\." for name in names)
    return Predicate("table_names ~ %s", (pattern,))


def in_predicate(column: str, values: Sequence[Any]) -> Optional[Predicate]:
    """Set membership, the whole list bound as a single array parameter."""
    if not values:
        return None
    return Predicate(f"{_check_column(column)} = ANY(%s)", (list(values),))


def stmt_types_predicate(stmt_types: Sequence[str]) -> Optional[Predicate]:
    return in_predicate("stmt_type", stmt_types)


def equals_predicate(column: str, value: Any) -> Predicate:
    return Predicate(f"{_check_column(column)} = %s", (value,))


def split_search_terms(text: str) -> List[str]:
    """Lower-case and split on whitespace."""
    return text.lower().split()


def text_search_predicates(text: str) -> List[Predicate]:
    """
    One predicate per search term.

    Within a term the searchable columns are OR-ed; the returned predicates
    are AND-ed by `SelectQuery.render()`, so every term must match somewhere.
    """
    predicates = []
    for term in split_search_terms(text):
        pattern = pg_regex_escape(term)
        template = " OR ".join(f"LOWER({column}) ~ %s" for column in SEARCHABLE_COLUMNS)
        predicates.append(Predicate(template, (pattern,) * len(SEARCHABLE_COLUMNS)))
    return predicates


__all__ = [
    "SEARCHABLE_COLUMNS",
    "Predicate",
    "ProjectionItem",
    "SelectQuery",
    "equals_predicate",
    "in_predicate",
    "pg_regex_escape",
    "schemas_predicate",
    "split_search_terms",
    "stmt_types_predicate",
    "text_search_predicates",
    "window_predicate",
]
