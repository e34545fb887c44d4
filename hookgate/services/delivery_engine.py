"""Webhook delivery engine (fan-out, signing, retry with backoff)."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hookgate.core.config import Settings, get_settings
from hookgate.core.destinations import Resolver, ensure_public_destination, system_resolver
from hookgate.core.errors import DataStoreError, DestinationBlockedError
from hookgate.core.metrics import observe_delivery_attempt
from hookgate.core.signing import sign
from hookgate.core.structured_logging import log_json
from hookgate.models.enums import DeliveryStatus
from hookgate.repositories.delivery_log import DeliveryLog
from hookgate.repositories.key_registry import KeyRegistry
from hookgate.schemas.delivery import DeliveryOutcome, DeliveryReport, WebhookEvent
from hookgate.schemas.webhook_events import WebhookEnvelope, validate_event_data

logger = logging.getLogger(__name__)

USER_AGENT = "hookgate-webhooks/1.0"
SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"


def build_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """HTTP client for outbound deliveries. Redirects are never followed."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.webhook_request_timeout_seconds),
        follow_redirects=False,
        headers={"User-Agent": USER_AGENT},
    )


@dataclass(frozen=True)
class _Target:
    """Snapshot of an endpoint taken before fan-out."""

    id: UUID
    url: str
    secret: str


@dataclass(frozen=True)
class _AttemptResult:
    response_code: int
    error: str | None = None
    # Refused or unencodable destinations will not succeed on retry
    terminal: bool = False
    duration_ms: float | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.response_code < 300


class DeliveryEngine:
    """Delivers one event to every matching endpoint of a tenant.

    Each endpoint gets an independent chain of up to ``max_attempts`` POSTs,
    run concurrently with the other chains. Every attempt is committed to the
    delivery log before the chain decides whether to retry.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        http_client: httpx.AsyncClient,
        *,
        settings: Settings | None = None,
        resolver: Resolver = system_resolver,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        settings = settings or get_settings()
        self.session_factory = session_factory
        self.http_client = http_client
        self.max_attempts = settings.webhook_max_attempts
        self.backoff_base_seconds = settings.webhook_backoff_base_seconds
        self.request_timeout_seconds = settings.webhook_request_timeout_seconds
        self.check_destinations = not settings.webhook_allow_private_destinations
        self.resolver = resolver
        self.sleep = sleep

    def backoff_seconds(self, attempt: int) -> float:
        """Delay after failed ``attempt`` (1-based): base, 2*base, 4*base, ..."""
        return self.backoff_base_seconds * 2 ** (attempt - 1)

    async def deliver(self, event: WebhookEvent) -> DeliveryReport:
        """Fan the event out to all subscribed endpoints and wait for every chain.

        Raises:
            UnknownEventTypeError: event type outside the vocabulary.
            pydantic.ValidationError: payload does not match the event schema.
            DataStoreError: endpoints could not be resolved.
        """
        data = validate_event_data(event.event_type, event.payload)
        targets = await self._resolve_targets(event.tenant_id, event.event_type)

        if not targets:
            log_json(
                logger,
                logging.INFO,
                "webhook_no_subscribers",
                tenant_id=event.tenant_id,
                event_type=event.event_type,
            )
            return DeliveryReport(delivered=0, total=0, results=[])

        outcomes = await asyncio.gather(
            *(
                self._run_chain(target, event.tenant_id, event.event_type, data)
                for target in targets
            )
        )
        delivered = sum(1 for outcome in outcomes if outcome.success)

        log_json(
            logger,
            logging.INFO,
            "webhook_event_delivered",
            tenant_id=event.tenant_id,
            event_type=event.event_type,
            delivered=delivered,
            total=len(targets),
        )
        return DeliveryReport(delivered=delivered, total=len(targets), results=list(outcomes))

    async def _resolve_targets(self, tenant_id: UUID, event_type: str) -> list[_Target]:
        async with self.session_factory() as session:
            webhooks = await KeyRegistry(session).list_subscribed_webhooks(tenant_id, event_type)
            return [_Target(id=w.id, url=w.url, secret=w.secret) for w in webhooks]

    async def _run_chain(
        self,
        target: _Target,
        tenant_id: UUID,
        event_type: str,
        data: dict[str, Any],
    ) -> DeliveryOutcome:
        envelope = WebhookEnvelope(
            event=event_type,
            data=data,
            timestamp=datetime.now(UTC).isoformat(),
        ).model_dump()
        # Serialized once: every retry sends (and signs) the same bytes
        body = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign(body, target.secret),
            EVENT_HEADER: event_type,
        }

        result = _AttemptResult(response_code=0)
        attempt = 0
        while attempt < self.max_attempts:
            attempt += 1
            result = await self._attempt(target, body, headers)
            status = DeliveryStatus.DELIVERED if result.ok else DeliveryStatus.FAILED
            observe_delivery_attempt(
                event_type=event_type, status=status.value, duration_ms=result.duration_ms
            )

            try:
                await self._record_attempt(
                    target=target,
                    tenant_id=tenant_id,
                    event_type=event_type,
                    payload=envelope,
                    status=status,
                    attempt=attempt,
                    result=result,
                )
            except (DataStoreError, SQLAlchemyError) as exc:
                log_json(
                    logger,
                    logging.ERROR,
                    "webhook_delivery_record_failed",
                    webhook_id=target.id,
                    event_type=event_type,
                    attempt=attempt,
                    error=str(exc.__cause__ or exc),
                )
                return DeliveryOutcome(
                    webhook_id=target.id,
                    success=result.ok,
                    attempts=attempt,
                    response_code=result.response_code,
                    error="Delivery log unavailable",
                )

            if result.ok:
                log_json(
                    logger,
                    logging.INFO,
                    "webhook_delivery_succeeded",
                    webhook_id=target.id,
                    event_type=event_type,
                    attempt=attempt,
                    response_code=result.response_code,
                )
                return DeliveryOutcome(
                    webhook_id=target.id,
                    success=True,
                    attempts=attempt,
                    response_code=result.response_code,
                )

            if result.terminal:
                break

            if attempt < self.max_attempts:
                delay = self.backoff_seconds(attempt)
                log_json(
                    logger,
                    logging.INFO,
                    "webhook_delivery_retry",
                    webhook_id=target.id,
                    event_type=event_type,
                    attempt=attempt,
                    response_code=result.response_code,
                    error=result.error,
                    retry_in_seconds=delay,
                )
                await self.sleep(delay)

        # No dead-letter queue: the failure is only visible in the log and the report
        log_json(
            logger,
            logging.WARNING,
            "webhook_delivery_failed",
            webhook_id=target.id,
            event_type=event_type,
            attempts=attempt,
            response_code=result.response_code,
            error=result.error,
        )
        return DeliveryOutcome(
            webhook_id=target.id,
            success=False,
            attempts=attempt,
            response_code=result.response_code,
            error=result.error,
        )

    async def _attempt(
        self, target: _Target, body: bytes, headers: dict[str, str]
    ) -> _AttemptResult:
        if self.check_destinations:
            try:
                await ensure_public_destination(target.url, self.resolver)
            except DestinationBlockedError as exc:
                return _AttemptResult(response_code=0, error=str(exc), terminal=True)
            except OSError as exc:
                return _AttemptResult(response_code=0, error=f"DNS resolution failed: {exc}")
            except UnicodeError as exc:
                # Host cannot be encoded for lookup; retrying cannot change that
                return _AttemptResult(
                    response_code=0, error=f"Invalid destination host: {exc}", terminal=True
                )

        start = time.perf_counter()
        try:
            response = await self.http_client.post(
                target.url,
                content=body,
                headers=headers,
                timeout=self.request_timeout_seconds,
                follow_redirects=False,
            )
        except httpx.InvalidURL as exc:
            return _AttemptResult(response_code=0, error=f"InvalidURL: {exc}", terminal=True)
        except httpx.HTTPError as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            message = f"{exc.__class__.__name__}: {exc}"
            return _AttemptResult(response_code=0, error=message[:500], duration_ms=duration_ms)

        duration_ms = (time.perf_counter() - start) * 1000
        code = response.status_code
        error = None if 200 <= code < 300 else f"HTTP {code}"
        return _AttemptResult(response_code=code, error=error, duration_ms=duration_ms)

    async def _record_attempt(
        self,
        *,
        target: _Target,
        tenant_id: UUID,
        event_type: str,
        payload: dict[str, Any],
        status: DeliveryStatus,
        attempt: int,
        result: _AttemptResult,
    ) -> None:
        async with self.session_factory() as session:
            log = DeliveryLog(session)
            await log.record(
                webhook_id=target.id,
                tenant_id=tenant_id,
                event_type=event_type,
                payload=payload,
                status=status.value,
                attempt=attempt,
                response_code=result.response_code,
                error=result.error,
                attempted_at=datetime.now(UTC),
            )
            await log.commit()
