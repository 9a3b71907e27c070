"""
Error taxonomy for statement queries and collector configuration.

Callers (an API layer, the CLI) are expected to map `UnknownFieldError` and
`InvalidWindowError` to a client-input failure and the store errors to a
dependency failure.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class StatementQueryError(Exception):
    """Base class for every error raised by stmtscope."""


class StoreReadError(StatementQueryError):
    """The store could not be read, or returned data that is not usable."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        super().__init__(message)
        self.setting = setting


class StoreWriteError(StatementQueryError):
    """
    A write to the store failed.

    Writes are sequential and not atomic: `persisted` lists the settings that
    were already written when `setting` failed.
    """

    def __init__(
        self,
        message: str,
        setting: Optional[str] = None,
        persisted: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.setting = setting
        self.persisted: List[str] = list(persisted)


class UnknownFieldError(StatementQueryError):
    """Requested output fields are not available on the statement table."""

    def __init__(
        self,
        message: str,
        fields: Iterable[str] = (),
        valid_fields: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.fields: List[str] = list(fields)
        self.valid_fields: List[str] = sorted(valid_fields)


class InvalidWindowError(StatementQueryError):
    """The requested time window is negative or ends before it begins."""

    def __init__(self, message: str, begin_time: int, end_time: int) -> None:
        super().__init__(message)
        self.begin_time = begin_time
        self.end_time = end_time


class ResolverError(StatementQueryError):
    """The live column set of a table could not be discovered."""

    def __init__(self, message: str, table: Optional[str] = None) -> None:
        super().__init__(message)
        self.table = table


__all__ = [
    "StatementQueryError",
    "StoreReadError",
    "StoreWriteError",
    "UnknownFieldError",
    "InvalidWindowError",
    "ResolverError",
]
