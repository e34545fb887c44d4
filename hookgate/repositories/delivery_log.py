"""Delivery Log: append-only record of webhook delivery attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from hookgate.models.webhook_delivery import WebhookDelivery
from hookgate.repositories.base import BaseRepository


class DeliveryLog(BaseRepository):
    """One row per attempt; rows are never updated."""

    async def record(
        self,
        *,
        webhook_id: UUID,
        tenant_id: UUID,
        event_type: str,
        payload: dict[str, Any],
        status: str,
        attempt: int,
        response_code: int,
        error: str | None,
        attempted_at: datetime,
    ) -> WebhookDelivery:
        return await self._add(
            WebhookDelivery(
                webhook_id=webhook_id,
                tenant_id=tenant_id,
                event_type=event_type,
                payload=payload,
                status=status,
                attempt=attempt,
                response_code=response_code,
                error=error,
                attempted_at=attempted_at,
            )
        )

    async def list_for_webhook(
        self, tenant_id: UUID, webhook_id: UUID, *, limit: int = 50
    ) -> list[WebhookDelivery]:
        """Newest attempts first; works after the endpoint itself is deleted."""
        query = (
            select(WebhookDelivery)
            .where(WebhookDelivery.tenant_id == tenant_id)
            .where(WebhookDelivery.webhook_id == webhook_id)
            .order_by(WebhookDelivery.attempted_at.desc(), WebhookDelivery.attempt.desc())
            .limit(limit)
        )
        return await self._all(query)
