"""Webhook endpoint management for tenants."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.core.config import Settings, get_settings
from hookgate.core.destinations import validate_webhook_url
from hookgate.core.errors import WebhookUrlError
from hookgate.core.signing import generate_webhook_secret
from hookgate.core.structured_logging import log_json
from hookgate.models.enums import WebhookEventType
from hookgate.models.webhook import Webhook
from hookgate.models.webhook_delivery import WebhookDelivery
from hookgate.repositories.delivery_log import DeliveryLog
from hookgate.repositories.key_registry import KeyRegistry

logger = logging.getLogger(__name__)

DEFAULT_EVENTS = [WebhookEventType.NEWSLETTER_SENT.value]


class WebhookService:
    """Service for registering and maintaining webhook endpoints."""

    def __init__(self, db: AsyncSession, *, settings: Settings | None = None):
        """Initialize webhook service.

        Args:
            db: Database session
            settings: Application settings (defaults to cached settings)
        """
        self.db = db
        self.registry = KeyRegistry(db)
        self.delivery_log = DeliveryLog(db)
        self.allow_private = (settings or get_settings()).webhook_allow_private_destinations

    def _validated_url(self, url: str | None) -> str:
        try:
            return validate_webhook_url(url, allow_private=self.allow_private)
        except WebhookUrlError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from None

    async def _get_or_404(self, tenant_id: UUID, webhook_id: UUID) -> Webhook:
        webhook = await self.registry.get_webhook(tenant_id, webhook_id)
        if webhook is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Webhook not found",
            )
        return webhook

    async def list_webhooks(self, tenant_id: UUID) -> list[Webhook]:
        return await self.registry.list_webhooks(tenant_id)

    async def create_webhook(
        self,
        tenant_id: UUID,
        *,
        url: str | None,
        events: list[str] | None = None,
        enabled: bool = True,
    ) -> tuple[Webhook, str]:
        """Register an endpoint and generate its signing secret.

        Unknown event names are dropped. When ``events`` is omitted the endpoint
        subscribes to ``newsletter.sent``; an explicit list is stored as filtered,
        even if that leaves it empty.

        Args:
            tenant_id: Owning tenant
            url: HTTPS target URL
            events: Requested event subscriptions
            enabled: Initial enabled flag

        Returns:
            Tuple of (created Webhook, plaintext secret)

        Raises:
            HTTPException: 400 if the URL is rejected
        """
        target = self._validated_url(url)
        if events is None:
            subscribed = list(DEFAULT_EVENTS)
        else:
            subscribed = WebhookEventType.filter_known(events)
        secret = generate_webhook_secret()

        webhook = await self.registry.add_webhook(
            tenant_id=tenant_id,
            url=target,
            secret=secret,
            events=subscribed,
            enabled=enabled,
        )

        log_json(
            logger,
            logging.INFO,
            "webhook_created",
            tenant_id=tenant_id,
            webhook_id=webhook.id,
            events=subscribed,
        )
        return webhook, secret

    async def update_webhook(
        self,
        tenant_id: UUID,
        webhook_id: UUID,
        *,
        url: str | None = None,
        events: list[str] | None = None,
        enabled: bool | None = None,
    ) -> Webhook:
        """Change URL, subscriptions or enabled flag; the secret is never rotated here.

        Raises:
            HTTPException: 404 if the endpoint does not belong to the tenant
            HTTPException: 400 if a new URL is rejected
        """
        webhook = await self._get_or_404(tenant_id, webhook_id)

        target = self._validated_url(url) if url is not None else None
        subscribed = None
        if events is not None:
            subscribed = WebhookEventType.filter_known(events)

        webhook = await self.registry.update_webhook(
            webhook, url=target, events=subscribed, enabled=enabled
        )
        log_json(
            logger,
            logging.INFO,
            "webhook_updated",
            tenant_id=tenant_id,
            webhook_id=webhook.id,
            enabled=webhook.enabled,
        )
        return webhook

    async def delete_webhook(self, tenant_id: UUID, webhook_id: UUID) -> None:
        """Remove an endpoint. Its delivery history is retained.

        Raises:
            HTTPException: 404 if the endpoint does not belong to the tenant
        """
        webhook = await self._get_or_404(tenant_id, webhook_id)
        await self.registry.delete_webhook(webhook)
        log_json(logger, logging.INFO, "webhook_deleted", tenant_id=tenant_id, webhook_id=webhook_id)

    async def list_deliveries(
        self, tenant_id: UUID, webhook_id: UUID, *, limit: int = 50
    ) -> list[WebhookDelivery]:
        """Most recent delivery attempts for an endpoint, newest first.

        History outlives the endpoint, so a deleted endpoint's ID still lists
        its past attempts.
        """
        return await self.delivery_log.list_for_webhook(tenant_id, webhook_id, limit=limit)
