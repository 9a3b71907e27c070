"""
Pytest configuration for stmtscope.

Provides fixtures for:
- Database connection management
- Schema initialization and statement history seeding
- Settings override for integration tests
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List

import psycopg
import pytest

from stmtscope.config import Settings

HISTORY_TABLE = "public.statements_summary_history"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "stmtscope"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the statement history table exists by running db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_history_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the history table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute(f"TRUNCATE TABLE {HISTORY_TABLE};")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute(f"TRUNCATE TABLE {HISTORY_TABLE};")
    db_connection.commit()


def _ts(epoch: int) -> datetime:
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


@pytest.fixture(scope="function")
def insert_statements(db_connection: psycopg.Connection, clean_history_table):
    """
    Return a callable inserting statement rows given as dicts.

    Window bounds are epoch seconds (`begin`, `end`); every other key maps to
    a column of the history table.
    """

    def _insert(rows: List[Dict[str, Any]]) -> int:
        with db_connection.cursor() as cur:
            for row in rows:
                values = dict(row)
                begin, end = values.pop("begin"), values.pop("end")
                values.setdefault("first_seen", _ts(begin))
                values.setdefault("last_seen", _ts(end))
                values["summary_begin_time"] = _ts(begin)
                values["summary_end_time"] = _ts(end)
                columns = ", ".join(values)
                placeholders = ", ".join(["%s"] * len(values))
                cur.execute(
                    f"INSERT INTO {HISTORY_TABLE} ({columns}) VALUES ({placeholders})",
                    list(values.values()),
                )
        db_connection.commit()
        return len(rows)

    return _insert


@pytest.fixture(scope="function")
def seeded_history(
    db_connection: psycopg.Connection,
    clean_history_table,
    test_dsn: str,
    tmp_path: Path,
) -> int:
    """
    Seed a few generated summary windows. Returns the number of rows loaded.
    """
    from scripts.generate_data import _copy_into_db, _generate_rows_csv

    csv_path = tmp_path / "statements.csv"
    _generate_rows_csv(csv_path, windows=4, batch_size=50, seed=42)
    _copy_into_db(test_dsn, csv_path)

    with db_connection.cursor() as cur:
        cur.execute(f"SELECT COUNT(*) FROM {HISTORY_TABLE};")
        count = cur.fetchone()[0]

    return count
