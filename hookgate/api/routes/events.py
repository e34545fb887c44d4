"""Internal event trigger route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from hookgate.api.deps import get_delivery_engine, require_service_token
from hookgate.core.errors import UnknownEventTypeError
from hookgate.schemas.delivery import DeliveryReport, WebhookEvent
from hookgate.services.delivery_engine import DeliveryEngine

router = APIRouter(dependencies=[Depends(require_service_token)])


@router.post(
    "/events",
    response_model=DeliveryReport,
    summary="Deliver an event to a tenant's webhooks (service token auth)",
)
async def trigger_event(
    event: WebhookEvent,
    engine: DeliveryEngine = Depends(get_delivery_engine),
) -> DeliveryReport:
    """Fan the event out and return once every delivery chain has finished."""
    try:
        return await engine.deliver(event)
    except UnknownEventTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from None
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ],
        ) from None
