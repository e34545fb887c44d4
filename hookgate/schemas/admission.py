"""Pydantic schemas for the admission check."""

from uuid import UUID

from pydantic import BaseModel


class AdmissionRequest(BaseModel):
    """Body form of the admission check, for internal callers."""

    api_key: str | None = None


class AdmissionResponse(BaseModel):
    """Admission result; optional fields are omitted when unset."""

    valid: bool
    tenant_id: UUID | None = None
    permissions: list[str] | None = None
    rate_limit: int | None = None
    current_usage: int | None = None
    error: str | None = None
    retry_after: int | None = None
