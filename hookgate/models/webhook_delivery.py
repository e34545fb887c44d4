"""Webhook delivery attempt model (one row per try)."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, Uuid

from hookgate.models.base import BaseModel, JSONType, utcnow


class WebhookDelivery(BaseModel):
    """Immutable record of a single delivery attempt.

    ``webhook_id`` deliberately has no foreign key: attempts outlive the
    endpoint they were sent to and never block its update or removal.
    """

    __tablename__ = "webhook_deliveries"

    webhook_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    tenant_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    event_type = Column(
        String(64),
        nullable=False,
    )
    payload = Column(
        JSONType,
        nullable=False,
    )
    status = Column(
        String(16),
        nullable=False,
    )
    attempt = Column(
        Integer,
        nullable=False,
    )
    response_code = Column(
        Integer,
        nullable=False,
        default=0,
    )
    error = Column(
        Text,
        nullable=True,
    )
    attempted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("idx_webhook_deliveries_webhook_time", "webhook_id", "attempted_at"),
        Index("idx_webhook_deliveries_tenant", "tenant_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<WebhookDelivery(id={self.id}, webhook_id={self.webhook_id}, "
            f"attempt={self.attempt}, status={self.status})>"
        )
