"""Generic base DAO — CRUD (ORM) + keyset pagination (Core)."""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from modsync.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 1000
PAGE_SIZE_DEFAULT = 100


def _clamp_page_size(page_size: int) -> int:
    return max(PAGE_SIZE_MIN, min(page_size, PAGE_SIZE_MAX))


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    async def get_by_id(self, session: AsyncSession, pk: int) -> ModelT | None:
        if pk is None:
            raise ValueError("pk must not be None")
        return await session.get(self.model, pk)

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        result = await session.execute(stmt)
        return result.scalars().first()

    # ── Core methods ─────────────────────────────────────────────────────

    async def keyset_page(
        self,
        session: AsyncSession,
        query: Select,
        *,
        after: int = 0,
        limit: int = PAGE_SIZE_DEFAULT,
        descending: bool = False,
    ) -> list[ModelT]:
        """Apply integer-id keyset pagination to *query*.

        Ascending pages return rows with ``id > after``; descending pages
        return rows with ``id < after``. ``after=0`` starts from the first
        row in either direction. Callers should NOT add their own
        ORDER BY / LIMIT.
        """
        table = self.model.__table__

        if after:
            query = query.where(table.c.id < after if descending else table.c.id > after)

        order = table.c.id.desc() if descending else table.c.id.asc()
        query = query.order_by(order).limit(_clamp_page_size(limit))

        result = await session.execute(query)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, query: Select | None = None) -> int:
        """Return the row count for *query*, or total rows if query is None."""
        if query is None:
            query = select(func.count()).select_from(self.model.__table__)
        else:
            query = select(func.count()).select_from(query.subquery())

        result = await session.execute(query)
        return result.scalar_one()
