"""Shared base entity for all database models."""
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class BaseEntity(DeclarativeBase):
    """Base class for all database entities."""

    def to_dict(self) -> dict[str, Any]:
        """Convert entity instance to dictionary."""
        return {
            column.name: getattr(self, column.key)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        """String representation of the entity."""
        identity = inspect(self).identity or tuple(
            getattr(self, column.key) for column in self.__table__.primary_key.columns
        )
        return f"<{self.__class__.__name__}{identity}>"


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
