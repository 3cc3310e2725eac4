"""Record store backed by async SQLAlchemy Core statements over the ORM tables."""
import logging
from datetime import datetime, timezone

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from phishguard.core.errors import StoreUnavailable
from phishguard.db.base import Base
from phishguard.store.base import Gte, Lt, RecordStore, Row, Where

logger = logging.getLogger(__name__)


def _as_utc(value):
    # SQLite hands back naive datetimes; everything is stored as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyRecordStore(RecordStore):
    def __init__(
        self,
        sessionmaker: async_sessionmaker,
        metadata=Base.metadata,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._metadata = metadata
        self._engine = engine

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "SqlAlchemyRecordStore":
        return cls(async_sessionmaker(engine, expire_on_commit=False), engine=engine)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Disposed database engine")

    def _table(self, name: str) -> Table:
        try:
            return self._metadata.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table: {name}") from None

    def _clauses(self, table: Table, where: Where | None) -> list:
        clauses = []
        for column_name, cond in (where or {}).items():
            column = table.c[column_name]
            if isinstance(cond, Gte):
                clauses.append(column >= cond.value)
            elif isinstance(cond, Lt):
                clauses.append(column < cond.value)
            elif cond is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == cond)
        return clauses

    async def _execute(self, table_name: str, stmt, commit: bool):
        try:
            async with self._sessionmaker() as db:
                result = await db.execute(stmt)
                if commit:
                    await db.commit()
                    return result.rowcount
                return [{k: _as_utc(v) for k, v in row._mapping.items()} for row in result.all()]
        except SQLAlchemyError as e:
            logger.error("Record store error on %s: %s", table_name, e)
            raise StoreUnavailable(f"Record store error on {table_name}") from e

    async def insert(self, table: str, row: Row) -> Row:
        t = self._table(table)
        await self._execute(table, insert(t).values(**row), commit=True)
        return dict(row)

    async def select_where(
        self,
        table: str,
        where: Where | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        t = self._table(table)
        stmt = select(t).where(*self._clauses(t, where))
        if order_by:
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._execute(table, stmt, commit=False)

    async def update(self, table: str, where: Where, patch: Row) -> int:
        t = self._table(table)
        stmt = update(t).where(*self._clauses(t, where)).values(**patch)
        return await self._execute(table, stmt, commit=True)

    async def delete(self, table: str, where: Where) -> int:
        t = self._table(table)
        stmt = delete(t).where(*self._clauses(t, where))
        return await self._execute(table, stmt, commit=True)
