"""
Data generation and loading script for the statement summary history table.

Implements deterministic pseudo-random statement rows spread over consecutive
summary windows, CSV emission, and Postgres COPY loading.
"""

from __future__ import annotations

import csv
import hashlib
import random
import sys
import tempfile
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import psycopg
import typer
from psycopg import sql

from stmtscope.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic statement history and load into Postgres (CSV + COPY).")

COLUMNS = [
    "summary_begin_time",
    "summary_end_time",
    "stmt_type",
    "schema_name",
    "digest",
    "digest_text",
    "table_names",
    "index_names",
    "sample_user",
    "exec_count",
    "sum_latency",
    "max_latency",
    "min_latency",
    "avg_latency",
    "avg_mem",
    "max_mem",
    "first_seen",
    "last_seen",
    "query_sample_text",
    "plan_digest",
    "plan",
]

# (stmt_type, schema, digest_text, table_names)
STATEMENT_TEMPLATES = [
    ("Select", "tpcc", "select * from orders where o_id = ?", "tpcc.orders"),
    ("Select", "tpcc", "select c_balance from customer where c_id = ?", "tpcc.customer"),
    ("Update", "tpcc", "update stock set s_quantity = ? where s_i_id = ?", "tpcc.stock"),
    ("Insert", "tpcc", "insert into history values ( ... )", "tpcc.history"),
    ("Select", "tpccx", "select * from orders where o_c_id = ?", "tpccx.orders"),
    ("Delete", "test", "delete from t where id = ?", "test.t"),
    ("Select", "test", "select count ( ? ) from t join tpcc.orders", "test.t,tpcc.orders"),
]


def _digest(*parts: str) -> str:
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:32]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_rows_csv(
    csv_path: Path,
    windows: int,
    batch_size: int,
    seed: int,
    window_seconds: int = 1800,
    plans_per_statement: int = 2,
) -> int:
    """Write `windows` summary windows of every template; returns rows written."""
    rng = random.Random(seed)
    start = datetime(2024, 1, 1, tzinfo=UTC)
    written = 0

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        buffer: list[list[str]] = []
        for window in range(windows):
            begin = start + timedelta(seconds=window * window_seconds)
            end = begin + timedelta(seconds=window_seconds)
            for stmt_type, schema, digest_text, tables in STATEMENT_TEMPLATES:
                digest = _digest(schema, digest_text)
                for plan_no in range(plans_per_statement):
                    exec_count = rng.randint(1, 5_000)
                    avg_latency = rng.randint(50_000, 50_000_000)
                    plan = f"Projection_{plan_no}\n└─TableReader_{plan_no} {tables}"
                    buffer.append(
                        [
                            begin.isoformat(),
                            end.isoformat(),
                            stmt_type,
                            schema,
                            digest,
                            digest_text,
                            tables,
                            f"{tables}:PRIMARY",
                            rng.choice(["root", "app", "report"]),
                            str(exec_count),
                            str(exec_count * avg_latency),
                            str(avg_latency * rng.randint(2, 10)),
                            str(max(1, avg_latency // rng.randint(2, 10))),
                            str(avg_latency),
                            str(rng.randint(1_024, 8 * 1_024**2)),
                            str(rng.randint(8 * 1_024**2, 64 * 1_024**2)),
                            begin.isoformat(),
                            end.isoformat(),
                            digest_text.replace("?", str(rng.randint(1, 10_000))),
                            _digest(digest, str(plan_no)),
                            plan,
                        ]
                    )
                    if len(buffer) >= batch_size:
                        writer.writerows(buffer)
                        written += len(buffer)
                        buffer.clear()
        if buffer:
            writer.writerows(buffer)
            written += len(buffer)
    return written


def _copy_into_db(dsn: str, csv_path: Path, table: str = "public.statements_summary_history") -> int:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            copy_sql = sql.SQL(
                "COPY {} ({}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
            ).format(
                sql.Identifier(*table.split(".")),
                sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS),
            )
            with cur.copy(copy_sql) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            rows = cur.rowcount
        conn.commit()
    return rows


@app.command()
def main(
    windows: int = typer.Option(
        48,
        "--windows",
        "-w",
        help="Number of consecutive summary windows to generate.",
    ),
    window_seconds: int = typer.Option(
        1800,
        "--window-seconds",
        help="Length of each summary window in seconds.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic statement history and optionally load it using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="stmtscope_csv_"))
        csv_path = tmpdir / "statements.csv"

    typer.echo(f"Generating {windows} windows -> {csv_path} (batch={batch_size}, seed={seed})")
    rows = _generate_rows_csv(
        csv_path, windows=windows, batch_size=batch_size, seed=seed, window_seconds=window_seconds
    )
    gen_duration = time.perf_counter() - start
    typer.echo(f"CSV generation completed in {gen_duration:.2f}s ({rows:,} rows)")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path)
    load_duration = time.perf_counter() - load_start
    typer.echo(f"Load completed in {load_duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
