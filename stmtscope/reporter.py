from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from stmtscope.domain.models import StmtConfig, TimeRange

# Latencies are stored in nanoseconds, memory in bytes.
_LATENCY_FIELDS = {
    "sum_latency",
    "max_latency",
    "min_latency",
    "avg_latency",
    "avg_parse_latency",
    "max_parse_latency",
    "avg_compile_latency",
    "max_compile_latency",
}
_MEMORY_FIELDS = {"avg_mem", "max_mem"}
_EPOCH_FIELDS = {"first_seen", "last_seen", "summary_begin_time", "summary_end_time"}
_MAX_TEXT_WIDTH = 80


def format_latency(nanoseconds: Optional[int]) -> str:
    if nanoseconds is None:
        return "N/A"
    value = float(nanoseconds)
    for unit, scale in (("s", 1e9), ("ms", 1e6), ("µs", 1e3)):
        if value >= scale:
            return f"{value / scale:.2f} {unit}"
    return f"{value:.0f} ns"


def format_bytes(size: Optional[int]) -> str:
    if size is None:
        return "N/A"
    value = float(size)
    for unit, scale in (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)):
        if value >= scale:
            return f"{value / scale:.2f} {unit}"
    return f"{value:.0f} B"


def format_epoch(seconds: Optional[int]) -> str:
    if seconds is None:
        return "N/A"
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def format_value(field: str, value: Any) -> str:
    """Human-readable cell for one statement field."""
    if field in _LATENCY_FIELDS:
        return format_latency(value)
    if field in _MEMORY_FIELDS:
        return format_bytes(value)
    if field in _EPOCH_FIELDS:
        return format_epoch(value)
    if value is None:
        return "N/A"
    if isinstance(value, int):
        return f"{value:,}"
    text = " ".join(str(value).split())
    if len(text) > _MAX_TEXT_WIDTH:
        text = text[: _MAX_TEXT_WIDTH - 1] + "…"
    return text


def print_statements(
    rows: List[Dict[str, Any]],
    fields: Sequence[str],
    title: str = "Statements",
    console: Optional[Console] = None,
) -> None:
    """
    Render statement rows as a rich table, one column per requested field.
    """
    console = console or Console()

    if not rows:
        console.print("[yellow]No statements matched.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, caption=f"{len(rows)} row(s)")
    for field in fields:
        numeric = field in _LATENCY_FIELDS or field in _MEMORY_FIELDS or field.endswith("_count")
        table.add_column(field, justify="right" if numeric else "left", overflow="fold")

    for row in rows:
        table.add_row(*(format_value(field, row.get(field)) for field in fields))

    console.print(table)


def print_plan_detail(row: Dict[str, Any], console: Optional[Console] = None) -> None:
    console = console or Console()

    if not row:
        console.print("[yellow]No matching plan.[/yellow]")
        return

    table = Table(title="Plan Detail", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for field, value in row.items():
        # Full plan text is the point of this view, so it is not truncated.
        cell = str(value) if field == "plan" and value else format_value(field, value)
        table.add_row(field, cell)
    console.print(table)


def print_time_ranges(ranges: List[TimeRange], console: Optional[Console] = None) -> None:
    console = console or Console()

    if not ranges:
        console.print("[yellow]No summary windows recorded.[/yellow]")
        return

    table = Table(title="Summary Windows", box=box.ROUNDED, caption="Most recent first")
    table.add_column("Begin", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Begin (epoch)", justify="right", style="magenta")
    table.add_column("End (epoch)", justify="right", style="magenta")
    for item in ranges:
        table.add_row(
            format_epoch(item.begin_time),
            format_epoch(item.end_time),
            str(item.begin_time),
            str(item.end_time),
        )
    console.print(table)


def print_config(config: StmtConfig, console: Optional[Console] = None) -> None:
    console = console or Console()

    table = Table(title="Statement Summary Config", box=box.ROUNDED, show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("enabled", "[green]yes[/green]" if config.enabled else "[red]no[/red]")
    table.add_row("refresh_interval", f"{config.refresh_interval} s")
    table.add_row("history_size", str(config.history_size))
    console.print(table)


__all__ = [
    "format_bytes",
    "format_epoch",
    "format_latency",
    "format_value",
    "print_config",
    "print_plan_detail",
    "print_statements",
    "print_time_ranges",
]
