"""SQLAlchemy models."""

from hookgate.models.api_key import ApiKey
from hookgate.models.api_key_usage import ApiKeyUsage
from hookgate.models.base import Base, BaseModel
from hookgate.models.enums import (
    AdmissionOutcome,
    ApiKeyPermission,
    DeliveryStatus,
    WebhookEventType,
)
from hookgate.models.webhook import Webhook
from hookgate.models.webhook_delivery import WebhookDelivery

__all__ = [
    "Base",
    "BaseModel",
    "AdmissionOutcome",
    "ApiKeyPermission",
    "DeliveryStatus",
    "WebhookEventType",
    "ApiKey",
    "ApiKeyUsage",
    "Webhook",
    "WebhookDelivery",
]
