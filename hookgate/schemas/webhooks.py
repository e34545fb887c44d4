"""Pydantic schemas for webhook registration."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WebhookCreateRequest(BaseModel):
    """Register a new endpoint. ``events`` defaults to ``["newsletter.sent"]``."""

    url: str | None = None
    events: list[str] | None = None
    enabled: bool = True


class WebhookUpdateRequest(BaseModel):
    url: str | None = None
    events: list[str] | None = None
    enabled: bool | None = None


class WebhookResponse(BaseModel):
    """Endpoint as listed to its owner (secret never included)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    url: str
    events: list[str]
    enabled: bool
    created_at: datetime


class WebhookCreatedResponse(BaseModel):
    """Creation response; the only place the secret is ever returned."""

    webhook: WebhookResponse
    secret: str
    message: str = Field(default="Store the secret securely. It will not be shown again.")


class WebhookListResponse(BaseModel):
    webhooks: list[WebhookResponse]
