"""Base repository with the common session handling."""
from abc import ABC
from typing import Any, Generic, List, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

T = TypeVar("T", bound=DeclarativeBase)


class BaseRepository(ABC, Generic[T]):
    """Base repository with common CRUD operations."""

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def get_by_fields(self, *order_by: Any, **filters: Any) -> List[T]:
        """Get entities by multiple field values."""
        stmt = select(self.model)

        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)

        if order_by:
            stmt = stmt.order_by(*order_by)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_by_fields(self, **filters: Any) -> int:
        """Delete entities by field values."""
        stmt = delete(self.model)
        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
