from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any, Generator, List, Optional

import typer
from pydantic import ValidationError

from stmtscope.config import get_settings
from stmtscope.domain.errors import InvalidWindowError, StatementQueryError, UnknownFieldError
from stmtscope.domain.models import DEFAULT_HISTORY_SIZE, DEFAULT_REFRESH_INTERVAL, StmtConfig
from stmtscope.reporter import (
    print_config,
    print_plan_detail,
    print_statements,
    print_time_ranges,
)
from stmtscope.statement.fields import PLAN_LIST_FIELDS
from stmtscope.statement.service import StatementService
from stmtscope.utils.logging import configure_logging

app = typer.Typer(help="Search and configure the statement summary history.")

DEFAULT_FIELDS = "digest_text,schema_name,stmt_type,exec_count,sum_latency,avg_latency,plan_count"

# Exit codes: client input errors vs. store/dependency failures.
EXIT_STORE_ERROR = 1
EXIT_INPUT_ERROR = 2


@contextmanager
def _handle_errors() -> Generator[None, None, None]:
    try:
        yield
    except (UnknownFieldError, InvalidWindowError, ValidationError) as exc:
        typer.echo(f"Invalid input: {exc}", err=True)
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc
    except StatementQueryError as exc:
        typer.echo(f"Store error: {exc}", err=True)
        raise typer.Exit(code=EXIT_STORE_ERROR) from exc


def _service() -> StatementService:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json, force=True)
    return StatementService.from_settings(settings)


def _split(values: Optional[str]) -> List[str]:
    if not values:
        return []
    return [item.strip() for item in values.split(",") if item.strip()]


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.stmt_table} timeout_ms={settings.db_statement_timeout_ms} "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size})"
    )


@app.command("config-show")
def config_show(as_json: bool = typer.Option(False, "--json", help="Print JSON.")) -> None:
    """
    Show the statement summary collector configuration.
    """
    with _handle_errors():
        config = _service().get_config()
    if as_json:
        _emit_json(config.model_dump(by_alias=True))
    else:
        print_config(config)


@app.command("config-set")
def config_set(
    enable: bool = typer.Option(..., "--enable/--disable", help="Turn collection on or off."),
    refresh_interval: int = typer.Option(
        DEFAULT_REFRESH_INTERVAL, "--refresh-interval", min=1, help="Summary window length in seconds."
    ),
    history_size: int = typer.Option(
        DEFAULT_HISTORY_SIZE, "--history-size", min=1, help="Number of summary windows to keep."
    ),
) -> None:
    """
    Update the collector configuration. Interval and size only apply when enabling.
    """
    with _handle_errors():
        config = StmtConfig(
            enabled=enable, refresh_interval=refresh_interval, history_size=history_size
        )
        _service().modify_config(config)
    typer.echo("Configuration updated.")


@app.command("time-ranges")
def time_ranges(as_json: bool = typer.Option(False, "--json", help="Print JSON.")) -> None:
    """
    List summary windows present in the history table.
    """
    with _handle_errors():
        ranges = _service().get_time_ranges()
    if as_json:
        _emit_json([item.model_dump() for item in ranges])
    else:
        print_time_ranges(ranges)


@app.command("stmt-types")
def stmt_types() -> None:
    """
    List statement types present in the history table.
    """
    with _handle_errors():
        types = _service().get_stmt_types()
    for stmt_type in types:
        typer.echo(stmt_type)


@app.command()
def search(
    begin: int = typer.Option(..., "--begin", "-b", help="Window start, epoch seconds."),
    end: int = typer.Option(..., "--end", "-e", help="Window end, epoch seconds."),
    schemas: Optional[str] = typer.Option(
        None, "--schemas", "-s", help="Comma-separated schema names."
    ),
    types: Optional[str] = typer.Option(
        None, "--types", "-t", help="Comma-separated statement types."
    ),
    text: str = typer.Option("", "--text", "-q", help="Search terms; every term must match."),
    fields: str = typer.Option(DEFAULT_FIELDS, "--fields", "-f", help="Comma-separated fields."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON."),
) -> None:
    """
    Search statements, most expensive first.
    """
    field_list = _split(fields)
    with _handle_errors():
        rows = _service().get_statements(
            begin, end, _split(schemas), _split(types), text, field_list
        )
    if as_json:
        _emit_json(rows)
    else:
        # Row keys are the resolved projection ("*" expanded, names lower-cased).
        print_statements(rows, list(rows[0]) if rows else field_list)


@app.command()
def plans(
    begin: int = typer.Option(..., "--begin", "-b", help="Window start, epoch seconds."),
    end: int = typer.Option(..., "--end", "-e", help="Window end, epoch seconds."),
    schema_name: str = typer.Option(..., "--schema", help="Schema of the statement."),
    digest: str = typer.Option(..., "--digest", "-d", help="Statement digest."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON."),
) -> None:
    """
    List execution plans of one statement.
    """
    with _handle_errors():
        rows = _service().get_plans(begin, end, schema_name, digest)
    if as_json:
        _emit_json(rows)
    else:
        print_statements(rows, list(PLAN_LIST_FIELDS), title="Plans")


@app.command("plan-detail")
def plan_detail(
    begin: int = typer.Option(..., "--begin", "-b", help="Window start, epoch seconds."),
    end: int = typer.Option(..., "--end", "-e", help="Window end, epoch seconds."),
    schema_name: str = typer.Option(..., "--schema", help="Schema of the statement."),
    digest: str = typer.Option(..., "--digest", "-d", help="Statement digest."),
    plan_digests: Optional[str] = typer.Option(
        None, "--plans", "-p", help="Comma-separated plan digests (default: all)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON."),
) -> None:
    """
    Show every field of one statement, aggregated over the selected plans.
    """
    with _handle_errors():
        row = _service().get_plan_detail(begin, end, schema_name, digest, _split(plan_digests))
    if as_json:
        _emit_json(row)
    else:
        print_plan_detail(row)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
