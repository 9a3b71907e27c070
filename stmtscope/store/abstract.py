"""
Interfaces of the external collaborators the statement service depends on.

Concrete adapters (see `stmtscope.store.postgres`) implement these protocols;
unit tests substitute in-memory fakes. Adapters must raise only the errors of
`stmtscope.domain.errors`, never driver exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Set, runtime_checkable

from stmtscope.statement.builder import SelectQuery


@runtime_checkable
class ColumnResolver(Protocol):
    """Discovers the live column set of a table."""

    def get_columns(self, table: str) -> Set[str]:
        """
        Return the lower-cased column names of `table`.

        Raises
        ------
        ResolverError
            If the columns cannot be discovered.
        """
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs rendered `SelectQuery` objects with bound parameters."""

    def fetch_all(self, query: SelectQuery) -> List[Dict[str, Any]]:
        """Return every row as a dict keyed by projection alias."""
        ...

    def fetch_one(self, query: SelectQuery) -> Optional[Dict[str, Any]]:
        """Return the first row, or None when nothing matched."""
        ...


@runtime_checkable
class SettingsStore(Protocol):
    """Named global settings of the store."""

    def read_int(self, name: str) -> int:
        """
        Read a setting as an integer.

        Returns `UNSET_SENTINEL` (-1) when the setting is not configured.

        Raises
        ------
        StoreReadError
            If the read fails or the stored value is not an integer.
        """
        ...

    def write_value(self, name: str, value: Any) -> None:
        """
        Persist a setting globally.

        Raises
        ------
        StoreWriteError
            If the write fails.
        """
        ...


__all__ = ["ColumnResolver", "QueryExecutor", "SettingsStore"]
