"""
Logging setup for stmtscope.

Modules log through `get_logger(__name__)` and attach structured context with
`extra=` (operation name, row counts, the setting being written). Nothing is
configured on import: a host application keeps its own handlers, and the CLI
calls `configure_logging(..., force=True)` once per command.

Two output formats:
    console  "2024-01-01 00:00:00 | INFO | stmtscope.statement.service | Searched statements"
    json     {"level": "INFO", "logger": "...", "message": "...", "operation": "get_statements", "rows": 3}

Rendered SQL is logged at DEBUG by the query executor; bound parameters are
never logged.
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy below WARNING.
_QUIET_LOGGERS = ("psycopg", "psycopg.pool")


def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed with `extra=`, flattening a nested `extra={"extra": {...}}` dict."""
    fields = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and key != "extra"
    }
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def format_record_json(record: logging.LogRecord) -> str:
    """One JSON object per record; values json cannot encode are stringified."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    payload.update(_context_fields(record))
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return format_record_json(record)


def _dict_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": _CONSOLE_FORMAT, "datefmt": _CONSOLE_DATEFMT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
                "level": level,
            }
        },
        "root": {"handlers": ["stderr"], "level": level},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : str
        Level name, case-insensitive ("debug", "INFO", ...).
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    force : bool
        Replace handlers that are already installed. Without it, a root logger
        that already has handlers is left untouched.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(
        _dict_config(level.upper(), "json" if json_logs else "console")
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "format_record_json", "get_logger"]
