"""API key issuance and revocation."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.core.config import Settings, get_settings
from hookgate.core.signing import api_key_prefix, generate_api_key, hash_api_key
from hookgate.core.structured_logging import log_json
from hookgate.models.api_key import ApiKey
from hookgate.models.enums import ApiKeyPermission
from hookgate.repositories.key_registry import KeyRegistry

logger = logging.getLogger(__name__)

DEFAULT_KEY_NAME = "API Key"


class ApiKeyService:
    """Service for tenant API keys.

    Only the SHA-256 hash of a key is stored. The plaintext is returned once,
    from ``issue_key``, and cannot be recovered afterwards.
    """

    def __init__(self, db: AsyncSession, *, settings: Settings | None = None):
        self.db = db
        self.registry = KeyRegistry(db)
        self.default_rate_limit = (settings or get_settings()).default_rate_limit

    async def issue_key(
        self,
        tenant_id: UUID,
        *,
        name: str | None = None,
        permissions: list[str] | None = None,
        rate_limit: int | None = None,
    ) -> tuple[ApiKey, str]:
        """Create a key for a tenant.

        Args:
            tenant_id: Owning tenant
            name: Display name (defaults to "API Key")
            permissions: Requested permissions; unknown names are dropped
            rate_limit: Admissions allowed per window

        Returns:
            Tuple of (created ApiKey, plaintext key)

        Raises:
            HTTPException: 409 if the generated key collides with an existing one
        """
        plaintext = generate_api_key()
        granted = ApiKeyPermission.filter_known(permissions) or ApiKeyPermission.defaults()

        try:
            api_key = await self.registry.add_api_key(
                tenant_id=tenant_id,
                name=(name or "").strip() or DEFAULT_KEY_NAME,
                key_prefix=api_key_prefix(plaintext),
                key_hash=hash_api_key(plaintext),
                permissions=granted,
                rate_limit=rate_limit or self.default_rate_limit,
            )
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="API key could not be issued. Please retry.",
            ) from None

        log_json(
            logger,
            logging.INFO,
            "api_key_issued",
            tenant_id=tenant_id,
            api_key_id=api_key.id,
            key_prefix=api_key.key_prefix,
            permissions=granted,
        )
        return api_key, plaintext

    async def list_keys(self, tenant_id: UUID) -> list[ApiKey]:
        return await self.registry.list_api_keys(tenant_id)

    async def revoke_key(self, tenant_id: UUID, key_id: UUID) -> ApiKey:
        """Revoke a key. Revoking an already-revoked key keeps the first timestamp.

        Raises:
            HTTPException: 404 if the key does not belong to the tenant
        """
        api_key = await self.registry.get_api_key(tenant_id, key_id)
        if api_key is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="API key not found",
            )

        already_revoked = api_key.is_revoked
        api_key = await self.registry.revoke_api_key(api_key, datetime.now(UTC))
        if not already_revoked:
            log_json(
                logger,
                logging.INFO,
                "api_key_revoked",
                tenant_id=tenant_id,
                api_key_id=api_key.id,
            )
        return api_key
