"""Key Registry: tenant-scoped access to API keys and webhook endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from hookgate.models.api_key import ApiKey
from hookgate.models.webhook import Webhook
from hookgate.repositories.base import BaseRepository


class KeyRegistry(BaseRepository):
    """Reads and writes ``ApiKey`` and ``Webhook`` rows.

    Every tenant-owned operation takes ``tenant_id`` and filters on it. The
    only unscoped read is the hash lookup used by admission, where the
    tenant is not yet known.
    """

    # API keys

    async def find_api_key_by_hash(self, key_hash: str) -> ApiKey | None:
        return await self._one_or_none(select(ApiKey).where(ApiKey.key_hash == key_hash))

    async def add_api_key(
        self,
        *,
        tenant_id: UUID,
        name: str,
        key_prefix: str,
        key_hash: str,
        permissions: list[str],
        rate_limit: int,
    ) -> ApiKey:
        return await self._add(
            ApiKey(
                tenant_id=tenant_id,
                name=name,
                key_prefix=key_prefix,
                key_hash=key_hash,
                permissions=permissions,
                rate_limit=rate_limit,
            )
        )

    async def list_api_keys(self, tenant_id: UUID) -> list[ApiKey]:
        query = (
            select(ApiKey)
            .where(ApiKey.tenant_id == tenant_id)
            .order_by(ApiKey.created_at.desc())
        )
        return await self._all(query)

    async def get_api_key(self, tenant_id: UUID, key_id: UUID) -> ApiKey | None:
        query = select(ApiKey).where(ApiKey.id == key_id).where(ApiKey.tenant_id == tenant_id)
        return await self._one_or_none(query)

    async def mark_api_key_used(self, api_key: ApiKey, used_at: datetime) -> None:
        api_key.last_used_at = used_at
        await self._flush()

    async def revoke_api_key(self, api_key: ApiKey, revoked_at: datetime) -> ApiKey:
        # Revocation is permanent; an existing timestamp is never overwritten
        if api_key.revoked_at is None:
            api_key.revoked_at = revoked_at
            await self._flush()
        return api_key

    # Webhooks

    async def add_webhook(
        self,
        *,
        tenant_id: UUID,
        url: str,
        secret: str,
        events: list[str],
        enabled: bool,
    ) -> Webhook:
        return await self._add(
            Webhook(
                tenant_id=tenant_id,
                url=url,
                secret=secret,
                events=events,
                enabled=enabled,
            )
        )

    async def list_webhooks(self, tenant_id: UUID) -> list[Webhook]:
        query = (
            select(Webhook)
            .where(Webhook.tenant_id == tenant_id)
            .order_by(Webhook.created_at.desc())
        )
        return await self._all(query)

    async def get_webhook(self, tenant_id: UUID, webhook_id: UUID) -> Webhook | None:
        query = select(Webhook).where(Webhook.id == webhook_id).where(Webhook.tenant_id == tenant_id)
        return await self._one_or_none(query)

    async def update_webhook(
        self,
        webhook: Webhook,
        *,
        url: str | None = None,
        events: list[str] | None = None,
        enabled: bool | None = None,
    ) -> Webhook:
        if url is not None:
            webhook.url = url
        if events is not None:
            webhook.events = events
        if enabled is not None:
            webhook.enabled = enabled
        await self._flush()
        return webhook

    async def delete_webhook(self, webhook: Webhook) -> None:
        await self._delete(webhook)

    async def list_subscribed_webhooks(self, tenant_id: UUID, event_type: str) -> list[Webhook]:
        """Enabled endpoints of ``tenant_id`` subscribed to ``event_type``."""
        query = (
            select(Webhook)
            .where(Webhook.tenant_id == tenant_id)
            .where(Webhook.enabled.is_(True))
            .order_by(Webhook.created_at.asc())
        )
        # Event sets are small JSON lists; membership is checked here so the
        # query stays portable across JSON backends.
        return [webhook for webhook in await self._all(query) if webhook.subscribes_to(event_type)]
