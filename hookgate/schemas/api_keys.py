"""Pydantic schemas for API key issuance and listing."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyCreateRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    permissions: list[str] | None = None
    rate_limit: int | None = Field(None, ge=1)


class ApiKeyResponse(BaseModel):
    """Key metadata; neither the hash nor the plaintext is ever included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    key_prefix: str
    permissions: list[str]
    rate_limit: int
    last_used_at: datetime | None = None
    revoked_at: datetime | None = None
    created_at: datetime


class ApiKeyCreatedResponse(BaseModel):
    """Issuance response (plaintext shown once)."""

    key: ApiKeyResponse
    api_key: str
    message: str = Field(default="Store this key securely. It will not be shown again.")


class ApiKeyListResponse(BaseModel):
    keys: list[ApiKeyResponse]
