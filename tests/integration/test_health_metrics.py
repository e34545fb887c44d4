"""Integration tests for health, metrics and request middleware."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_generated(client: AsyncClient):
    echoed = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
    generated = await client.get("/api/health")

    assert echoed.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]
    assert generated.headers["X-Request-ID"] != "req-123"


@pytest.mark.asyncio
async def test_metrics_exposes_admission_and_http_series(client: AsyncClient):
    await client.post("/api/v1/keys/validate")

    response = await client.get("/api/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "hookgate_http_requests_total" in response.text
    assert 'hookgate_admission_decisions_total{outcome="unauthorized"}' in response.text
