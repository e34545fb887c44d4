"""Tenant API key management routes (service token auth)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.api.deps import require_service_token
from hookgate.core.database import get_db
from hookgate.schemas.api_keys import (
    ApiKeyCreatedResponse,
    ApiKeyCreateRequest,
    ApiKeyListResponse,
    ApiKeyResponse,
)
from hookgate.services.api_key_service import ApiKeyService

router = APIRouter(dependencies=[Depends(require_service_token)])


@router.get(
    "/{tenant_id}/api-keys",
    response_model=ApiKeyListResponse,
    summary="List API keys",
)
async def list_api_keys(
    tenant_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiKeyListResponse:
    """List a tenant's keys, newest first. Hashes and plaintext are never returned."""
    service = ApiKeyService(db)
    keys = await service.list_keys(tenant_id)
    return ApiKeyListResponse(keys=[ApiKeyResponse.model_validate(k) for k in keys])


@router.post(
    "/{tenant_id}/api-keys",
    response_model=ApiKeyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an API key",
)
async def create_api_key(
    tenant_id: UUID,
    request: ApiKeyCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiKeyCreatedResponse:
    service = ApiKeyService(db)
    api_key, plaintext = await service.issue_key(
        tenant_id,
        name=request.name,
        permissions=request.permissions,
        rate_limit=request.rate_limit,
    )
    await db.commit()
    return ApiKeyCreatedResponse(key=ApiKeyResponse.model_validate(api_key), api_key=plaintext)


@router.post(
    "/{tenant_id}/api-keys/{key_id}/revoke",
    response_model=ApiKeyResponse,
    summary="Revoke an API key",
)
async def revoke_api_key(
    tenant_id: UUID,
    key_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiKeyResponse:
    """Revoke a key permanently. Repeating the call is a no-op."""
    service = ApiKeyService(db)
    api_key = await service.revoke_key(tenant_id, key_id)
    await db.commit()
    return ApiKeyResponse.model_validate(api_key)
