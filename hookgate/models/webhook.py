"""Webhook endpoint model."""

from sqlalchemy import Boolean, Column, Index, String, Text, Uuid, true

from hookgate.models.base import BaseModel, JSONType


class Webhook(BaseModel):
    """Tenant-registered HTTPS destination for signed event notifications."""

    __tablename__ = "webhooks"

    tenant_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    url = Column(
        Text,
        nullable=False,
    )
    secret = Column(
        String(128),
        nullable=False,
    )
    events = Column(
        JSONType,
        nullable=False,
        default=list,
    )
    enabled = Column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )

    __table_args__ = (Index("idx_webhooks_tenant_enabled", "tenant_id", "enabled"),)

    def subscribes_to(self, event_type: str) -> bool:
        return event_type in (self.events or [])

    def __repr__(self) -> str:
        return f"<Webhook(id={self.id}, tenant_id={self.tenant_id}, enabled={self.enabled})>"
