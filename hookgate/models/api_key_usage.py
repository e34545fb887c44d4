"""Append-only API key usage log used for sliding-window rate limiting."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Uuid

from hookgate.models.base import BaseModel, utcnow


class ApiKeyUsage(BaseModel):
    """One admitted request for an API key."""

    __tablename__ = "api_key_usage"

    api_key_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("api_keys.id", ondelete="RESTRICT"),
        nullable=False,
    )
    used_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (Index("idx_api_key_usage_key_time", "api_key_id", "used_at"),)

    def __repr__(self) -> str:
        return f"<ApiKeyUsage(id={self.id}, api_key_id={self.api_key_id}, used_at={self.used_at})>"
