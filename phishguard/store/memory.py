"""Process-local record store, used by tests and `store_backend=memory`."""
import copy
from typing import Any, Mapping

from phishguard.store.base import Gte, Lt, RecordStore, Row, Where


def _matches(row: Row, where: Where | None) -> bool:
    if not where:
        return True
    for column, cond in where.items():
        value = row.get(column)
        if isinstance(cond, Gte):
            if value is None or value < cond.value:
                return False
        elif isinstance(cond, Lt):
            if value is None or not value < cond.value:
                return False
        elif value != cond:
            return False
    return True


class MemoryRecordStore(RecordStore):
    def __init__(self, tables: Mapping[str, list[Row]] | None = None) -> None:
        self._tables: dict[str, list[Row]] = {}
        for name, rows in (tables or {}).items():
            self._tables[name] = [dict(r) for r in rows]

    def _rows(self, table: str) -> list[Row]:
        return self._tables.setdefault(table, [])

    async def insert(self, table: str, row: Row) -> Row:
        stored = copy.deepcopy(dict(row))
        self._rows(table).append(stored)
        return copy.deepcopy(stored)

    async def select_where(
        self,
        table: str,
        where: Where | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        rows = [r for r in self._rows(table) if _matches(r, where)]
        if order_by:
            # rows missing the column sort last either way
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def update(self, table: str, where: Where, patch: Row) -> int:
        count = 0
        for row in self._rows(table):
            if _matches(row, where):
                row.update(copy.deepcopy(dict(patch)))
                count += 1
        return count

    async def delete(self, table: str, where: Where) -> int:
        rows = self._rows(table)
        keep = [r for r in rows if not _matches(r, where)]
        removed = len(rows) - len(keep)
        self._tables[table] = keep
        return removed

    def count(self, table: str, where: Where | None = None) -> int:
        return sum(1 for r in self._rows(table) if _matches(r, where))

    def dump(self, table: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._rows(table)]
