"""Integration tests for the internal event trigger."""

from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import Receiver, create_webhook

EVENTS_URL = "/api/internal/events"


def _event(tenant_id: UUID, event_type: str = "newsletter.sent", payload: dict | None = None):
    return {
        "tenant_id": str(tenant_id),
        "event_type": event_type,
        "payload": payload if payload is not None else {"id": "n1"},
    }


@pytest.mark.asyncio
async def test_requires_service_token(client: AsyncClient, tenant_id: UUID):
    response = await client.post(EVENTS_URL, json=_event(tenant_id))

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized - internal use only"


@pytest.mark.asyncio
async def test_delivers_to_subscribed_endpoint(
    client: AsyncClient,
    db: AsyncSession,
    tenant_id: UUID,
    service_headers: dict,
    receiver: Receiver,
):
    webhook = await create_webhook(db, tenant_id, url="https://example.com/hook")

    response = await client.post(EVENTS_URL, json=_event(tenant_id), headers=service_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["delivered"] == 1
    assert data["total"] == 1
    assert data["results"][0]["webhook_id"] == str(webhook.id)
    assert data["results"][0]["attempts"] == 1
    assert len(receiver.requests) == 1


@pytest.mark.asyncio
async def test_no_subscribers_reports_zero(
    client: AsyncClient, tenant_id: UUID, service_headers: dict, receiver: Receiver
):
    response = await client.post(EVENTS_URL, json=_event(tenant_id), headers=service_headers)

    assert response.status_code == 200
    assert response.json() == {"delivered": 0, "total": 0, "results": []}
    assert receiver.requests == []


@pytest.mark.asyncio
async def test_unknown_event_type_is_400(
    client: AsyncClient, tenant_id: UUID, service_headers: dict
):
    response = await client.post(
        EVENTS_URL, json=_event(tenant_id, event_type="newsletter.deleted"), headers=service_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown event type: newsletter.deleted"


@pytest.mark.asyncio
async def test_invalid_payload_is_400(client: AsyncClient, tenant_id: UUID, service_headers: dict):
    response = await client.post(
        EVENTS_URL,
        json=_event(tenant_id, payload={"recipient_count": -1}),
        headers=service_headers,
    )

    assert response.status_code == 400
    locations = [err["loc"] for err in response.json()["detail"]]
    assert ["id"] in locations


@pytest.mark.asyncio
async def test_malformed_tenant_id_is_422(client: AsyncClient, service_headers: dict):
    response = await client.post(
        EVENTS_URL,
        json={"tenant_id": "not-a-uuid", "event_type": "newsletter.sent", "payload": {"id": "n1"}},
        headers=service_headers,
    )

    assert response.status_code == 422
