"""
Statement field catalog and projection resolution.

Every logical output field maps to one trusted aggregate expression over the
history table, plus the source columns that expression reads. A field is only
selectable when all of its source columns exist in the live table, so the
same catalog works against older table versions that lack some columns.

Queries group rows (by statement fingerprint or by plan), which is why every
expression is an aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from stmtscope.domain.errors import UnknownFieldError
from stmtscope.statement.builder import ProjectionItem

ALL_FIELDS = "*"


@dataclass(frozen=True)
class FieldDef:
    """Aggregate expression for a logical field and the columns it reads."""

    expression: str
    columns: Tuple[str, ...]


def _any(column: str) -> FieldDef:
    # No ANY_VALUE before PostgreSQL 16; MAX picks a stable representative.
    return FieldDef(f"MAX({column})", (column,))


def _sum(column: str) -> FieldDef:
    return FieldDef(f"CAST(SUM({column}) AS BIGINT)", (column,))


def _max(column: str) -> FieldDef:
    return FieldDef(f"MAX({column})", (column,))


def _min(column: str) -> FieldDef:
    return FieldDef(f"MIN({column})", (column,))


def _weighted_avg(column: str) -> FieldDef:
    # Per-window averages weighted by that window's execution count.
    return FieldDef(
        f"CAST(SUM(exec_count * {column}) / NULLIF(SUM(exec_count), 0) AS BIGINT)",
        ("exec_count", column),
    )


def _epoch(aggregate: str, column: str) -> FieldDef:
    return FieldDef(f"FLOOR(EXTRACT(EPOCH FROM {aggregate}({column})))::bigint", (column,))


STATEMENT_FIELDS: Dict[str, FieldDef] = {
    "plan_count": FieldDef("COUNT(DISTINCT plan_digest)", ("plan_digest",)),
    "digest": _any("digest"),
    "digest_text": _any("digest_text"),
    "schema_name": _any("schema_name"),
    "table_names": _any("table_names"),
    "index_names": _any("index_names"),
    "stmt_type": _any("stmt_type"),
    "plan_digest": _any("plan_digest"),
    "plan": _any("plan"),
    "sample_user": _any("sample_user"),
    "query_sample_text": _any("query_sample_text"),
    "prev_sample_text": _any("prev_sample_text"),
    "exec_count": _sum("exec_count"),
    "sum_errors": _sum("sum_errors"),
    "sum_warnings": _sum("sum_warnings"),
    "sum_latency": _sum("sum_latency"),
    "max_latency": _max("max_latency"),
    "min_latency": _min("min_latency"),
    "avg_latency": _weighted_avg("avg_latency"),
    "avg_parse_latency": _weighted_avg("avg_parse_latency"),
    "max_parse_latency": _max("max_parse_latency"),
    "avg_compile_latency": _weighted_avg("avg_compile_latency"),
    "max_compile_latency": _max("max_compile_latency"),
    "avg_mem": _weighted_avg("avg_mem"),
    "max_mem": _max("max_mem"),
    "avg_affected_rows": _weighted_avg("avg_affected_rows"),
    "first_seen": _epoch("MIN", "first_seen"),
    "last_seen": _epoch("MAX", "last_seen"),
    "summary_begin_time": _epoch("MIN", "summary_begin_time"),
    "summary_end_time": _epoch("MAX", "summary_end_time"),
}

PLAN_LIST_FIELDS: Tuple[str, ...] = (
    "plan_digest",
    "schema_name",
    "digest_text",
    "digest",
    "sum_latency",
    "max_latency",
    "min_latency",
    "avg_latency",
    "exec_count",
    "avg_mem",
    "max_mem",
)


def available_fields(table_columns: Iterable[str]) -> List[str]:
    """Catalog fields whose source columns are all present, in catalog order."""
    columns: Set[str] = {c.lower() for c in table_columns}
    return [
        name
        for name, field_def in STATEMENT_FIELDS.items()
        if all(col in columns for col in field_def.columns)
    ]


def build_projection(
    table_columns: Iterable[str], requested: Sequence[str]
) -> List[ProjectionItem]:
    """
    Validate `requested` against the live columns and map it to expressions.

    Caller order is preserved and duplicates are dropped. `["*"]` selects every
    available field. Raises UnknownFieldError naming all invalid fields.
    """
    valid = available_fields(table_columns)

    if list(requested) == [ALL_FIELDS]:
        names = valid
    else:
        names = []
        seen: Set[str] = set()
        for name in requested:
            key = name.strip().lower()
            if key not in seen:
                seen.add(key)
                names.append(key)

        if not names:
            raise UnknownFieldError("at least one field must be requested", valid_fields=valid)

        valid_set = set(valid)
        unknown = [name for name in names if name not in valid_set]
        if unknown:
            raise UnknownFieldError(
                f"unknown fields: {', '.join(unknown)}",
                fields=unknown,
                valid_fields=valid,
            )

    if not names:
        raise UnknownFieldError("statement table exposes none of the known fields")

    return [ProjectionItem(name, STATEMENT_FIELDS[name].expression) for name in names]


__all__ = [
    "ALL_FIELDS",
    "FieldDef",
    "PLAN_LIST_FIELDS",
    "STATEMENT_FIELDS",
    "available_fields",
    "build_projection",
]
