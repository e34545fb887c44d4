"""Usage Ledger: append-only admission log with trailing-window counts."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select

from hookgate.models.api_key_usage import ApiKeyUsage
from hookgate.repositories.base import BaseRepository


class UsageLedger(BaseRepository):
    """Rows are only ever inserted; expiry is implicit in the window query."""

    async def record(self, api_key_id: UUID, used_at: datetime) -> ApiKeyUsage:
        return await self._add(ApiKeyUsage(api_key_id=api_key_id, used_at=used_at))

    async def count_since(self, api_key_id: UUID, since: datetime) -> int:
        query = (
            select(func.count())
            .select_from(ApiKeyUsage)
            .where(ApiKeyUsage.api_key_id == api_key_id)
            .where(ApiKeyUsage.used_at >= since)
        )
        return int(await self._scalar(query) or 0)

    async def count_in_window(self, api_key_id: UUID, now: datetime, window: timedelta) -> int:
        """Admissions for ``api_key_id`` in the trailing ``window`` ending at ``now``."""
        return await self.count_since(api_key_id, now - window)
