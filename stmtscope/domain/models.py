"""
Domain models for stmtscope.

Defines the collector configuration, the summary time windows, and the
per-call statement filter. Statement rows themselves stay plain dicts
(`Model`) because their shape depends on the fields each query requests.
"""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

DEFAULT_REFRESH_INTERVAL = 1800
DEFAULT_HISTORY_SIZE = 24
UNSET_SENTINEL = -1

# One statement row, keyed by logical field name.
Model = Dict[str, Any]


class StmtConfig(BaseModel):
    """
    Runtime configuration of the statement-summary collector.
    """

    enabled: bool = Field(..., alias="enable", description="Whether collection is active.")
    refresh_interval: int = Field(
        DEFAULT_REFRESH_INTERVAL, ge=1, description="Summary window length, in seconds."
    )
    history_size: int = Field(
        DEFAULT_HISTORY_SIZE, ge=1, description="Number of summary windows kept in history."
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class TimeRange(BaseModel):
    """
    One summary window present in the history table, in epoch seconds.
    """

    begin_time: int = Field(..., description="Window start (inclusive).")
    end_time: int = Field(..., description="Window end (inclusive).")

    model_config = {
        "frozen": True,
    }


class QueryFilter(BaseModel):
    """
    Parameters of a single statement search. Lives only for one call.

    The window is checked by `check_window` before a filter is built.
    """

    begin_time: int
    end_time: int
    schemas: List[str] = Field(default_factory=list)
    stmt_types: List[str] = Field(default_factory=list)
    text: str = ""
    fields: List[str] = Field(default_factory=list)


__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_REFRESH_INTERVAL",
    "UNSET_SENTINEL",
    "Model",
    "QueryFilter",
    "StmtConfig",
    "TimeRange",
]
