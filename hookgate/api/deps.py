"""FastAPI dependencies for service-token auth, API key admission and delivery."""

import hmac

import httpx
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hookgate.core.config import get_settings
from hookgate.core.database import get_db, get_session_factory
from hookgate.core.errors import DataStoreError
from hookgate.models.enums import AdmissionOutcome
from hookgate.services.admission_gateway import AdmissionDecision, AdmissionGateway
from hookgate.services.delivery_engine import DeliveryEngine

# Bearer scheme for the internal service token; missing headers are handled below
security = HTTPBearer(auto_error=False)


async def require_service_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """Allow only callers presenting the internal service token.

    Raises:
        HTTPException: 401 if the token is missing or wrong
    """
    expected = get_settings().internal_service_token
    token = credentials.credentials if credentials else ""
    if not token or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - internal use only",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound client created in the application lifespan."""
    return request.app.state.http_client


def get_delivery_engine(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> DeliveryEngine:
    return DeliveryEngine(session_factory, http_client)


async def get_admitted_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_db),
) -> AdmissionDecision:
    """Admit the request's X-API-Key or stop it.

    The usage row written on admission is committed with the request
    session, so routes using this dependency must commit.

    Raises:
        HTTPException: 401 for missing, unknown or revoked keys
        HTTPException: 429 with Retry-After when the key is over its limit
        HTTPException: 500 if the key store is unavailable
    """
    gateway = AdmissionGateway(db)
    try:
        decision = await gateway.admit(x_api_key)
    except DataStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error",
        ) from None

    if decision.outcome is AdmissionOutcome.RATE_LIMITED:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=decision.error,
            headers={"Retry-After": str(decision.retry_after)},
        )
    if not decision.admitted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=decision.error,
        )
    return decision
