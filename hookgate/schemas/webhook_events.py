"""Typed payloads for each webhook event type.

The outer envelope (``event``, ``data``, ``timestamp``) is fixed; ``data``
is validated against the model registered for the event type. Extra
fields are kept so producers can add context without a schema change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hookgate.core.errors import UnknownEventTypeError
from hookgate.models.enums import WebhookEventType


class EventData(BaseModel):
    """Common base: every event refers to one platform object by id."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Identifier of the object the event is about")


class NewsletterSentData(EventData):
    subject: str | None = None
    recipient_count: int | None = Field(None, ge=0)
    sent_at: datetime | None = None


class NewsletterOpenedData(EventData):
    subscriber_id: str | None = None
    opened_at: datetime | None = None


class NewsletterClickedData(EventData):
    subscriber_id: str | None = None
    link_url: str | None = None
    clicked_at: datetime | None = None


class SourceProcessedData(EventData):
    status: str | None = None
    chunk_count: int | None = Field(None, ge=0)


EVENT_DATA_MODELS: dict[str, type[EventData]] = {
    WebhookEventType.NEWSLETTER_SENT.value: NewsletterSentData,
    WebhookEventType.NEWSLETTER_OPENED.value: NewsletterOpenedData,
    WebhookEventType.NEWSLETTER_CLICKED.value: NewsletterClickedData,
    WebhookEventType.SOURCE_PROCESSED.value: SourceProcessedData,
}


def validate_event_data(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate ``payload`` for ``event_type`` and return its JSON form.

    Raises:
        UnknownEventTypeError: if the event type is not in the vocabulary.
        pydantic.ValidationError: if the payload does not match its schema.
    """
    model = EVENT_DATA_MODELS.get(event_type)
    if model is None:
        raise UnknownEventTypeError(f"Unknown event type: {event_type}")
    return model.model_validate(payload).model_dump(mode="json", exclude_unset=True)


class WebhookEnvelope(BaseModel):
    """Exact body POSTed to endpoints; the signature covers its serialization."""

    event: str
    data: dict[str, Any]
    timestamp: str
