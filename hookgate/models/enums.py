"""Enumerations for webhook events, delivery outcomes and API key scopes."""

from enum import Enum


class WebhookEventType(str, Enum):
    """Events tenants may subscribe a webhook endpoint to."""

    NEWSLETTER_SENT = "newsletter.sent"
    NEWSLETTER_OPENED = "newsletter.opened"
    NEWSLETTER_CLICKED = "newsletter.clicked"
    SOURCE_PROCESSED = "source.processed"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]

    @classmethod
    def filter_known(cls, names: list[str] | None) -> list[str]:
        """Keep known event names in input order, dropping unknowns and duplicates."""
        known = set(cls.values())
        result: list[str] = []
        for name in names or []:
            if name in known and name not in result:
                result.append(name)
        return result


class DeliveryStatus(str, Enum):
    """Outcome of a single delivery attempt."""

    DELIVERED = "delivered"
    FAILED = "failed"


class ApiKeyPermission(str, Enum):
    """Capabilities an API key can carry."""

    SOURCES_READ = "sources:read"
    SOURCES_WRITE = "sources:write"
    NEWSLETTERS_READ = "newsletters:read"
    NEWSLETTERS_WRITE = "newsletters:write"
    ANALYTICS_READ = "analytics:read"

    @classmethod
    def values(cls) -> list[str]:
        return [e.value for e in cls]

    @classmethod
    def defaults(cls) -> list[str]:
        return [cls.SOURCES_READ.value, cls.SOURCES_WRITE.value, cls.NEWSLETTERS_READ.value]

    @classmethod
    def filter_known(cls, names: list[str] | None) -> list[str]:
        known = set(cls.values())
        result: list[str] = []
        for name in names or []:
            if name in known and name not in result:
                result.append(name)
        return result


class AdmissionOutcome(str, Enum):
    """Result of an admission check."""

    ADMITTED = "admitted"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
