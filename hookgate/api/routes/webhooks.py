"""Tenant webhook management routes (service token auth)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.api.deps import require_service_token
from hookgate.core.database import get_db
from hookgate.schemas.delivery import DeliveryAttemptItem, DeliveryListResponse
from hookgate.schemas.webhooks import (
    WebhookCreatedResponse,
    WebhookCreateRequest,
    WebhookListResponse,
    WebhookResponse,
    WebhookUpdateRequest,
)
from hookgate.services.webhook_service import WebhookService

router = APIRouter(dependencies=[Depends(require_service_token)])


@router.get(
    "/{tenant_id}/webhooks",
    response_model=WebhookListResponse,
    summary="List webhook endpoints",
)
async def list_webhooks(
    tenant_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> WebhookListResponse:
    service = WebhookService(db)
    webhooks = await service.list_webhooks(tenant_id)
    return WebhookListResponse(webhooks=[WebhookResponse.model_validate(w) for w in webhooks])


@router.post(
    "/{tenant_id}/webhooks",
    response_model=WebhookCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a webhook endpoint",
)
async def create_webhook(
    tenant_id: UUID,
    request: WebhookCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> WebhookCreatedResponse:
    """Register an endpoint. The signing secret is returned only in this response."""
    service = WebhookService(db)
    webhook, secret = await service.create_webhook(
        tenant_id,
        url=request.url,
        events=request.events,
        enabled=request.enabled,
    )
    await db.commit()
    return WebhookCreatedResponse(webhook=WebhookResponse.model_validate(webhook), secret=secret)


@router.patch(
    "/{tenant_id}/webhooks/{webhook_id}",
    response_model=WebhookResponse,
    summary="Update a webhook endpoint",
)
async def update_webhook(
    tenant_id: UUID,
    webhook_id: UUID,
    request: WebhookUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> WebhookResponse:
    service = WebhookService(db)
    webhook = await service.update_webhook(
        tenant_id,
        webhook_id,
        url=request.url,
        events=request.events,
        enabled=request.enabled,
    )
    await db.commit()
    return WebhookResponse.model_validate(webhook)


@router.delete(
    "/{tenant_id}/webhooks/{webhook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a webhook endpoint",
)
async def delete_webhook(
    tenant_id: UUID,
    webhook_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete an endpoint; its delivery history stays listable."""
    service = WebhookService(db)
    await service.delete_webhook(tenant_id, webhook_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{tenant_id}/webhooks/{webhook_id}/deliveries",
    response_model=DeliveryListResponse,
    summary="Recent delivery attempts for an endpoint",
)
async def list_deliveries(
    tenant_id: UUID,
    webhook_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> DeliveryListResponse:
    service = WebhookService(db)
    deliveries = await service.list_deliveries(tenant_id, webhook_id, limit=limit)
    return DeliveryListResponse(
        deliveries=[DeliveryAttemptItem.model_validate(d) for d in deliveries]
    )
