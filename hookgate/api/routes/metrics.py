"""Prometheus metrics endpoint."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Header, HTTPException, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from hookgate.core.config import get_settings

router = APIRouter()


def _presented_token(authorization: str | None, x_metrics_token: str | None) -> str | None:
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return x_metrics_token


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint(
    authorization: str | None = Header(default=None),
    x_metrics_token: str | None = Header(default=None, alias="X-Metrics-Token"),
) -> Response:
    """Expose delivery, admission and HTTP metrics.

    Open outside production. In production the endpoint is hidden unless
    METRICS_TOKEN is configured, and then requires that token.
    """
    settings = get_settings()
    if settings.environment == "production":
        if not settings.metrics_token:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        token = _presented_token(authorization, x_metrics_token)
        if not token or not hmac.compare_digest(token, settings.metrics_token):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
