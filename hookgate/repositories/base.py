"""Shared async SQLAlchemy helpers for repositories.

Every helper converts driver/ORM failures into ``DataStoreError`` so the
service layer can fail closed without knowing about SQLAlchemy.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.core.errors import DataStoreError


class BaseRepository:
    """Thin wrapper over an ``AsyncSession``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _one_or_none(self, query: Select) -> Any:
        try:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise DataStoreError("query failed") from exc

    async def _all(self, query: Select) -> list[Any]:
        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise DataStoreError("query failed") from exc

    async def _scalar(self, query: Select) -> Any:
        try:
            return await self.db.scalar(query)
        except SQLAlchemyError as exc:
            raise DataStoreError("query failed") from exc

    async def _add(self, instance: Any) -> Any:
        """Add and flush. ``IntegrityError`` is re-raised untouched for callers."""
        self.db.add(instance)
        try:
            await self.db.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise DataStoreError("insert failed") from exc
        return instance

    async def _delete(self, instance: Any) -> None:
        try:
            await self.db.delete(instance)
        except SQLAlchemyError as exc:
            raise DataStoreError("delete failed") from exc
        await self._flush()

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise DataStoreError("flush failed") from exc

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            raise DataStoreError("commit failed") from exc
