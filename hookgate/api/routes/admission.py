"""API key admission routes."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.api.deps import get_admitted_key
from hookgate.core.database import get_db
from hookgate.core.errors import DataStoreError
from hookgate.models.enums import AdmissionOutcome
from hookgate.schemas.admission import AdmissionRequest, AdmissionResponse
from hookgate.services.admission_gateway import AdmissionDecision, AdmissionGateway

router = APIRouter()


@router.post(
    "/keys/validate",
    response_model=AdmissionResponse,
    response_model_exclude_none=True,
    summary="Validate an API key and count it against its rate limit",
    responses={
        401: {"model": AdmissionResponse},
        429: {"model": AdmissionResponse},
        500: {"model": AdmissionResponse},
    },
)
async def validate_api_key(
    body: AdmissionRequest | None = Body(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Admission check for a presented key.

    The X-API-Key header takes precedence over the ``api_key`` body field.
    An admitted check counts as one use of the key.
    """
    presented = x_api_key or (body.api_key if body else None)

    try:
        decision = await AdmissionGateway(db).admit(presented)
        if decision.admitted:
            await db.commit()
    except (DataStoreError, SQLAlchemyError):
        await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"valid": False, "error": "Internal error"},
        )

    headers = None
    if decision.outcome is AdmissionOutcome.RATE_LIMITED:
        headers = {"Retry-After": str(decision.retry_after)}

    return JSONResponse(
        status_code=decision.status_code,
        content=decision.to_response().model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


@router.get(
    "/usage",
    response_model=AdmissionResponse,
    response_model_exclude_none=True,
    summary="Current quota for the presented API key",
)
async def get_usage(
    decision: AdmissionDecision = Depends(get_admitted_key),
    db: AsyncSession = Depends(get_db),
) -> AdmissionResponse:
    """Report tenant, permissions and window usage for an admitted key."""
    await db.commit()
    return decision.to_response()
