"""Record store contract: insert/select/update/delete by table and filter.

Filters are plain mappings of column name to either a literal (equality)
or a comparison marker:

    {"identifier": "203.0.113.1", "first_attempt_at": Gte(cutoff)}

``update`` and ``delete`` return the number of rows they touched, so callers
can build compare-and-set writes by including the expected old value in the
filter.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

Row = dict[str, Any]
Where = Mapping[str, Any]

ATTEMPT_WINDOWS = "attempt_windows"
ASSESSMENT_SESSIONS = "assessment_sessions"
ANSWER_RECORDS = "answer_records"
SECURITY_INCIDENTS = "security_incidents"
TEST_ITEMS = "test_items"
PROFILES = "profiles"


@dataclass(frozen=True)
class Gte:
    value: Any


@dataclass(frozen=True)
class Lt:
    value: Any


class RecordStore(ABC):
    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        ...

    @abstractmethod
    async def select_where(
        self,
        table: str,
        where: Where | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        ...

    @abstractmethod
    async def update(self, table: str, where: Where, patch: Row) -> int:
        ...

    @abstractmethod
    async def delete(self, table: str, where: Where) -> int:
        ...

    async def select_one(self, table: str, where: Where) -> Row | None:
        rows = await self.select_where(table, where, limit=1)
        return rows[0] if rows else None

    async def close(self) -> None:
        return None
