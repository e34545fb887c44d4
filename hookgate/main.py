"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hookgate.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from hookgate.api.routes import admission, api_keys, events, metrics, webhooks
from hookgate.core.config import get_settings
from hookgate.core.errors import DataStoreError
from hookgate.core.structured_logging import log_json
from hookgate.services.delivery_engine import build_http_client

logger = logging.getLogger(__name__)

settings = get_settings()
docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One pooled client for all outbound webhook deliveries
    app.state.http_client = build_http_client(settings)
    try:
        yield
    finally:
        await app.state.http_client.aclose()


app = FastAPI(
    title="hookgate API",
    description="Signed webhook delivery and API key admission control",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if docs_enabled else None,
    redoc_url="/api/redoc" if docs_enabled else None,
    openapi_url="/api/openapi.json" if docs_enabled else None,
)

# Middleware configuration (applied in reverse order)
# 1. Request logging (outermost - logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.exception_handler(DataStoreError)
async def data_store_error_handler(request: Request, exc: DataStoreError) -> JSONResponse:
    log_json(
        logger,
        logging.ERROR,
        "data_store_error",
        path=request.url.path,
        error=str(exc.__cause__ or exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal error"},
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(admission.router, prefix="/api/v1", tags=["admission"])
app.include_router(events.router, prefix="/api/internal", tags=["events"])
app.include_router(webhooks.router, prefix="/api/internal/tenants", tags=["webhooks"])
app.include_router(api_keys.router, prefix="/api/internal/tenants", tags=["api-keys"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])
