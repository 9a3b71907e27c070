import csv
from pathlib import Path

import psycopg
import pytest
from pydantic import ValidationError

from scripts import generate_data
from stmtscope import config
from stmtscope.domain.errors import InvalidWindowError
from stmtscope.domain.models import QueryFilter, StmtConfig
from stmtscope.infrastructure import db_factory
from stmtscope.statement import queries


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "stmtscope"
    assert settings.stmt_table == "public.statements_summary_history"
    assert settings.stmt_enable_var == "stmt_summary.enable"
    assert settings.db_pool_max_size >= settings.db_pool_min_size


def test_settings_reject_table_names_that_are_not_identifiers():
    with pytest.raises(ValidationError):
        config.Settings(stmt_table="history; DROP TABLE x")
    with pytest.raises(ValidationError):
        config.Settings(stmt_enable_var="stmt summary.enable")


def test_stmt_config_accepts_enable_alias():
    by_alias = StmtConfig(enable=True)
    by_name = StmtConfig(enabled=False, refresh_interval=60, history_size=2)

    assert by_alias.enabled is True
    assert by_alias.refresh_interval == 1800
    assert by_alias.history_size == 24
    assert by_name.model_dump(by_alias=True) == {
        "enable": False,
        "refresh_interval": 60,
        "history_size": 2,
    }


def test_stmt_config_rejects_non_positive_interval_and_history():
    with pytest.raises(ValidationError):
        StmtConfig(enabled=True, refresh_interval=0)
    with pytest.raises(ValidationError):
        StmtConfig(enabled=True, history_size=-5)
    assert StmtConfig(enabled=True, refresh_interval=1, history_size=1).history_size == 1


def test_check_window_accepts_ordered_and_single_instant_windows():
    queries.check_window(100, 200)
    queries.check_window(100, 100)
    assert QueryFilter(begin_time=100, end_time=100).schemas == []


@pytest.mark.parametrize("begin, end", [(200, 100), (-1, 100), (0, -1)])
def test_check_window_rejects_inverted_or_negative_bounds(begin, end):
    with pytest.raises(InvalidWindowError) as excinfo:
        queries.check_window(begin, end)
    assert excinfo.value.begin_time == begin
    assert excinfo.value.end_time == end


def test_generate_data_writes_csv(tmp_path: Path):
    csv_path = tmp_path / "statements.csv"
    # Generate two tiny windows without loading into DB
    written = generate_data._generate_rows_csv(
        csv_path, windows=2, batch_size=3, seed=123, plans_per_statement=1
    )
    assert csv_path.exists()
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    expected = 2 * len(generate_data.STATEMENT_TEMPLATES)
    assert written == expected
    assert len(rows) == expected + 1
    assert rows[0] == generate_data.COLUMNS

    first = dict(zip(rows[0], rows[1]))
    assert int(first["sum_latency"]) == int(first["exec_count"]) * int(first["avg_latency"])
    assert first["summary_begin_time"] < first["summary_end_time"]


def test_generate_data_is_deterministic(tmp_path: Path):
    first, second = tmp_path / "a.csv", tmp_path / "b.csv"
    generate_data._generate_rows_csv(first, windows=1, batch_size=10, seed=7)
    generate_data._generate_rows_csv(second, windows=1, batch_size=10, seed=7)
    assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")


def test_build_dsn_uses_settings():
    settings = config.get_settings()
    assert db_factory.build_dsn() == (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def test_get_sync_connection_retries_transient_errors(monkeypatch):
    attempts = []

    def _connect(dsn, autocommit=False):
        attempts.append(autocommit)
        if len(attempts) < 3:
            raise psycopg.OperationalError("connection refused")
        return "conn"

    monkeypatch.setattr(db_factory.psycopg, "connect", _connect)
    monkeypatch.setattr(db_factory.get_sync_connection.retry, "sleep", lambda _: None)

    assert db_factory.get_sync_connection(autocommit=True) == "conn"
    assert attempts == [True, True, True]


def test_get_sync_connection_gives_up_after_three_attempts(monkeypatch):
    def _connect(dsn, autocommit=False):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(db_factory.psycopg, "connect", _connect)
    monkeypatch.setattr(db_factory.get_sync_connection.retry, "sleep", lambda _: None)

    with pytest.raises(psycopg.OperationalError):
        db_factory.get_sync_connection()
