from __future__ import annotations

from rich.console import Console

from stmtscope.domain.models import StmtConfig, TimeRange
from stmtscope.reporter import (
    format_bytes,
    format_epoch,
    format_latency,
    format_value,
    print_config,
    print_plan_detail,
    print_statements,
    print_time_ranges,
)


def _console() -> Console:
    return Console(record=True, width=200, force_terminal=False)


def test_format_latency_picks_unit():
    assert format_latency(None) == "N/A"
    assert format_latency(850) == "850 ns"
    assert format_latency(1_500) == "1.50 µs"
    assert format_latency(2_500_000) == "2.50 ms"
    assert format_latency(3_000_000_000) == "3.00 s"


def test_format_bytes_picks_unit():
    assert format_bytes(512) == "512 B"
    assert format_bytes(2048) == "2.00 KB"
    assert format_bytes(5 * 1024**2) == "5.00 MB"


def test_format_epoch_is_utc():
    assert format_epoch(1586844000) == "2020-04-14 06:00:00"
    assert format_epoch(None) == "N/A"


def test_format_value_by_field():
    assert format_value("sum_latency", 2_000_000) == "2.00 ms"
    assert format_value("max_mem", 1024) == "1.00 KB"
    assert format_value("exec_count", 12345) == "12,345"
    assert format_value("digest_text", "select  *\n from t") == "select * from t"
    assert format_value("digest", None) == "N/A"


def test_format_value_truncates_long_text():
    text = format_value("digest_text", "x" * 200)
    assert len(text) == 80
    assert text.endswith("…")


def test_print_statements_renders_requested_columns():
    console = _console()
    rows = [{"digest_text": "select 1", "exec_count": 3}]

    print_statements(rows, ["digest_text", "exec_count"], console=console)

    output = console.export_text()
    assert "digest_text" in output
    assert "select 1" in output
    assert "1 row(s)" in output


def test_print_statements_without_rows():
    console = _console()
    print_statements([], ["digest"], console=console)
    assert "No statements matched." in console.export_text()


def test_print_plan_detail_keeps_full_plan_text():
    console = _console()
    plan = "Projection_4\n└─" + "TableReader_7 " * 10

    print_plan_detail({"digest": "abc", "plan": plan}, console=console)

    output = console.export_text()
    assert "Projection_4" in output
    assert "…" not in output


def test_print_plan_detail_without_match():
    console = _console()
    print_plan_detail({}, console=console)
    assert "No matching plan." in console.export_text()


def test_print_time_ranges_and_config():
    console = _console()

    print_time_ranges([TimeRange(begin_time=1586844000, end_time=1586845800)], console=console)
    print_config(StmtConfig(enabled=True, refresh_interval=900, history_size=48), console=console)

    output = console.export_text()
    assert "2020-04-14 06:00:00" in output
    assert "1586845800" in output
    assert "900 s" in output
    assert "yes" in output
