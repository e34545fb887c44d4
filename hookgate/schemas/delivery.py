"""Pydantic schemas for event triggering and delivery reports."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    """Event fired by an internal producer."""

    tenant_id: UUID
    event_type: str = Field(..., min_length=1, max_length=64)
    payload: dict[str, Any]


class DeliveryOutcome(BaseModel):
    """Final outcome of one endpoint's attempt chain."""

    webhook_id: UUID
    success: bool
    attempts: int
    response_code: int
    error: str | None = None


class DeliveryReport(BaseModel):
    """Summary returned once every chain has completed."""

    delivered: int
    total: int
    results: list[DeliveryOutcome] = Field(default_factory=list)


class DeliveryAttemptItem(BaseModel):
    """Delivery log entry as shown to the endpoint owner."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    webhook_id: UUID
    event_type: str
    status: str
    attempt: int
    response_code: int
    error: str | None = None
    attempted_at: datetime


class DeliveryListResponse(BaseModel):
    deliveries: list[DeliveryAttemptItem]
