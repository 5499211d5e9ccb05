"""Resource Repository: async SQLAlchemy queries for one ORM model.

Invariants:
    - Lists are ordered by the requested sort fields, then id ascending
    - Filters are column -> allowed values, combined with AND, each matched with IN
    - Nothing here commits; the caller owns the transaction
"""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from addressbook.core.query_params import SortField
from addressbook.db.base import Base


class ResourceRepository:
    def __init__(self, db: AsyncSession, model: type[Base]):
        self.db = db
        self.model = model

    def _filtered(self, stmt: Select, filters: dict[str, list[Any]]) -> Select:
        for column, values in filters.items():
            stmt = stmt.where(getattr(self.model, column).in_(values))
        return stmt

    async def get(self, resource_id: int, refresh: bool = False) -> Any | None:
        stmt = select(self.model).where(self.model.id == resource_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, ids: Iterable[int]) -> list[Any]:
        ids = list(ids)
        if not ids:
            return []
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id.in_(ids))
            .order_by(self.model.id),
        )
        return list(result.scalars().all())

    async def count(self, filters: dict[str, list[Any]]) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(self.model), filters,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def list_rows(
        self,
        filters: dict[str, list[Any]],
        sort: Sequence[SortField] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Any]:
        stmt = self._filtered(select(self.model), filters)
        for field in sort:
            column = getattr(self.model, field.name)
            stmt = stmt.order_by(column.desc() if field.descending else column.asc())
        stmt = stmt.order_by(self.model.id.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    def add(self, entity: Any) -> None:
        self.db.add(entity)

    async def delete(self, entity: Any) -> None:
        await self.db.delete(entity)
