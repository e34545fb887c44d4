"""API key model for inbound admission control."""

from sqlalchemy import Column, DateTime, Integer, String, Uuid

from hookgate.models.base import BaseModel, JSONType


class ApiKey(BaseModel):
    """Tenant-issued API key. Only the SHA-256 hash of the key is stored."""

    __tablename__ = "api_keys"

    tenant_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    name = Column(
        String(100),
        nullable=False,
    )
    key_prefix = Column(
        String(16),
        nullable=False,
    )
    key_hash = Column(
        String(64),
        nullable=False,
        unique=True,
    )
    permissions = Column(
        JSONType,
        nullable=False,
        default=list,
    )
    rate_limit = Column(
        Integer,
        nullable=False,
        default=1000,
    )
    last_used_at = Column(
        DateTime(timezone=True),
        nullable=True,
    )
    revoked_at = Column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, tenant_id={self.tenant_id}, revoked_at={self.revoked_at})>"
