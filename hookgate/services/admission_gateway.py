"""Admission gateway: API key validation and sliding-window rate limiting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.core.config import Settings, get_settings
from hookgate.core.errors import DataStoreError
from hookgate.core.metrics import observe_admission
from hookgate.core.signing import hash_api_key
from hookgate.core.structured_logging import log_json
from hookgate.models.enums import AdmissionOutcome
from hookgate.repositories.key_registry import KeyRegistry
from hookgate.repositories.usage_ledger import UsageLedger
from hookgate.schemas.admission import AdmissionResponse

logger = logging.getLogger(__name__)

MISSING_KEY_ERROR = "API key required. Provide X-API-Key header."
INVALID_KEY_ERROR = "Invalid API key"
REVOKED_KEY_ERROR = "API key has been revoked"
RATE_LIMITED_ERROR = "Rate limit exceeded. Try again later."


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of one admission check plus the quota metadata to report."""

    outcome: AdmissionOutcome
    error: str | None = None
    api_key_id: UUID | None = None
    tenant_id: UUID | None = None
    permissions: list[str] = field(default_factory=list)
    rate_limit: int | None = None
    current_usage: int | None = None
    retry_after: int | None = None

    @property
    def admitted(self) -> bool:
        return self.outcome is AdmissionOutcome.ADMITTED

    @property
    def status_code(self) -> int:
        if self.outcome is AdmissionOutcome.ADMITTED:
            return 200
        if self.outcome is AdmissionOutcome.RATE_LIMITED:
            return 429
        return 401

    def has_permission(self, permission: str) -> bool:
        return self.admitted and permission in self.permissions

    def to_response(self) -> AdmissionResponse:
        if self.admitted:
            return AdmissionResponse(
                valid=True,
                tenant_id=self.tenant_id,
                permissions=list(self.permissions),
                rate_limit=self.rate_limit,
                current_usage=self.current_usage,
            )
        if self.outcome is AdmissionOutcome.RATE_LIMITED:
            return AdmissionResponse(
                valid=False,
                error=self.error,
                rate_limit=self.rate_limit,
                current_usage=self.current_usage,
                retry_after=self.retry_after,
            )
        # Missing, unknown and revoked keys share one response shape
        return AdmissionResponse(valid=False, error=self.error)


def _unauthorized(error: str) -> AdmissionDecision:
    return AdmissionDecision(outcome=AdmissionOutcome.UNAUTHORIZED, error=error)


class AdmissionGateway:
    """Decides whether a request presenting an API key may proceed.

    The limit is a trailing-window count over the usage ledger, recomputed on
    every check. Concurrent bursts near the limit can overshoot slightly;
    no lock is taken. Data-store failures are raised as ``DataStoreError``
    and never turned into an admit or a reject.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = settings or get_settings()
        self.registry = KeyRegistry(db)
        self.ledger = UsageLedger(db)
        self.window = timedelta(seconds=settings.admission_window_seconds)
        self.retry_after_seconds = settings.admission_window_seconds
        self.clock = clock or (lambda: datetime.now(UTC))

    async def admit(self, presented_key: str | None) -> AdmissionDecision:
        try:
            decision = await self._decide(presented_key)
        except DataStoreError as exc:
            observe_admission("error")
            log_json(
                logger,
                logging.ERROR,
                "admission_store_error",
                error=str(exc.__cause__ or exc),
            )
            raise

        observe_admission(decision.outcome.value)
        if not decision.admitted:
            log_json(
                logger,
                logging.WARNING,
                "admission_rejected",
                outcome=decision.outcome.value,
                reason=decision.error,
                api_key_id=decision.api_key_id,
            )
        return decision

    async def _decide(self, presented_key: str | None) -> AdmissionDecision:
        if not presented_key:
            return _unauthorized(MISSING_KEY_ERROR)

        api_key = await self.registry.find_api_key_by_hash(hash_api_key(presented_key))
        if api_key is None:
            return _unauthorized(INVALID_KEY_ERROR)

        if api_key.is_revoked:
            return AdmissionDecision(
                outcome=AdmissionOutcome.UNAUTHORIZED,
                error=REVOKED_KEY_ERROR,
                api_key_id=api_key.id,
            )

        now = self.clock()
        current_usage = await self.ledger.count_in_window(api_key.id, now, self.window)

        if current_usage >= api_key.rate_limit:
            # Rejected requests are not recorded, so the count never grows here
            return AdmissionDecision(
                outcome=AdmissionOutcome.RATE_LIMITED,
                error=RATE_LIMITED_ERROR,
                api_key_id=api_key.id,
                rate_limit=api_key.rate_limit,
                current_usage=current_usage,
                retry_after=self.retry_after_seconds,
            )

        await self.ledger.record(api_key.id, now)
        await self.registry.mark_api_key_used(api_key, now)

        return AdmissionDecision(
            outcome=AdmissionOutcome.ADMITTED,
            api_key_id=api_key.id,
            tenant_id=api_key.tenant_id,
            permissions=list(api_key.permissions or []),
            rate_limit=api_key.rate_limit,
            current_usage=current_usage + 1,
        )
