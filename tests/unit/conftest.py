"""
In-memory collaborators for unit tests: no database required.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import pytest

from stmtscope.domain.errors import ResolverError, StoreReadError, StoreWriteError
from stmtscope.domain.models import UNSET_SENTINEL
from stmtscope.statement.builder import SelectQuery
from stmtscope.statement.fields import STATEMENT_FIELDS
from stmtscope.statement.service import StatementService

# Every source column referenced by the field catalog.
ALL_COLUMNS: Set[str] = {col for field in STATEMENT_FIELDS.values() for col in field.columns}


class FakeResolver:
    def __init__(self, columns: Iterable[str] = ALL_COLUMNS, fail: bool = False) -> None:
        self.columns = set(columns)
        self.fail = fail
        self.calls: List[str] = []

    def get_columns(self, table: str) -> Set[str]:
        self.calls.append(table)
        if self.fail:
            raise ResolverError("information_schema unavailable", table=table)
        return set(self.columns)


class FakeExecutor:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows = rows or []
        self.queries: List[SelectQuery] = []

    def fetch_all(self, query: SelectQuery) -> List[Dict[str, Any]]:
        self.queries.append(query)
        return [dict(row) for row in self.rows]

    def fetch_one(self, query: SelectQuery) -> Optional[Dict[str, Any]]:
        self.queries.append(query)
        return dict(self.rows[0]) if self.rows else None

    @property
    def rendered(self) -> List[Tuple[str, List[Any]]]:
        return [query.render() for query in self.queries]


class FakeSettingsStore:
    """
    Settings held in a dict; missing names read back as the unset sentinel.

    `fail_read` / `fail_write` name a setting whose access raises.
    """

    def __init__(
        self,
        values: Optional[Dict[str, Any]] = None,
        fail_read: Optional[str] = None,
        fail_write: Optional[str] = None,
    ) -> None:
        self.values: Dict[str, Any] = dict(values or {})
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.reads: List[str] = []
        self.writes: List[Tuple[str, Any]] = []

    def read_int(self, name: str) -> int:
        self.reads.append(name)
        if name == self.fail_read:
            raise StoreReadError(f"cannot read {name}", setting=name)
        raw = self.values.get(name)
        if raw is None or raw == "":
            return UNSET_SENTINEL
        try:
            return int(raw)
        except ValueError as exc:
            raise StoreReadError(f"{name} is not an integer", setting=name) from exc

    def write_value(self, name: str, value: Any) -> None:
        if name == self.fail_write:
            raise StoreWriteError(f"cannot write {name}", setting=name)
        self.writes.append((name, value))
        self.values[name] = value


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def fake_settings_store() -> FakeSettingsStore:
    return FakeSettingsStore()


@pytest.fixture
def service(
    fake_executor: FakeExecutor,
    fake_resolver: FakeResolver,
    fake_settings_store: FakeSettingsStore,
) -> StatementService:
    return StatementService(
        executor=fake_executor,
        resolver=fake_resolver,
        settings_store=fake_settings_store,
    )
