"""Tests for API key admission and the sliding-window rate limit."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from hookgate.core.errors import DataStoreError
from hookgate.models.enums import AdmissionOutcome
from hookgate.repositories.usage_ledger import UsageLedger
from hookgate.services.admission_gateway import (
    INVALID_KEY_ERROR,
    MISSING_KEY_ERROR,
    REVOKED_KEY_ERROR,
    AdmissionDecision,
    AdmissionGateway,
)
from tests.conftest import create_api_key

EPOCH = datetime(2000, 1, 1, tzinfo=UTC)


async def _usage_count(db: AsyncSession, api_key_id) -> int:
    return await UsageLedger(db).count_since(api_key_id, EPOCH)


class TestRejections:
    """Missing, unknown and revoked keys."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("presented", [None, ""])
    async def test_missing_key(self, db, tenant_id, presented):
        api_key, _ = await create_api_key(db, tenant_id)

        decision = await AdmissionGateway(db).admit(presented)

        assert decision.outcome is AdmissionOutcome.UNAUTHORIZED
        assert decision.error == MISSING_KEY_ERROR
        assert decision.status_code == 401
        assert api_key.last_used_at is None
        assert await _usage_count(db, api_key.id) == 0

    @pytest.mark.asyncio
    async def test_unknown_key(self, db, tenant_id):
        api_key, _ = await create_api_key(db, tenant_id)

        decision = await AdmissionGateway(db).admit("nw_" + "f" * 48)

        assert decision.outcome is AdmissionOutcome.UNAUTHORIZED
        assert decision.error == INVALID_KEY_ERROR
        assert decision.tenant_id is None
        assert await _usage_count(db, api_key.id) == 0

    @pytest.mark.asyncio
    async def test_revoked_key_is_rejected_without_side_effects(self, db, tenant_id, clock):
        api_key, plaintext = await create_api_key(db, tenant_id, revoked=True)

        decision = await AdmissionGateway(db, clock=clock).admit(plaintext)

        assert decision.outcome is AdmissionOutcome.UNAUTHORIZED
        assert decision.error == REVOKED_KEY_ERROR
        assert api_key.last_used_at is None
        assert await _usage_count(db, api_key.id) == 0

    @pytest.mark.asyncio
    async def test_rejection_shapes_match(self, db, tenant_id):
        """Unknown and missing keys expose nothing beyond the error text."""
        missing = (await AdmissionGateway(db).admit(None)).to_response()
        unknown = (await AdmissionGateway(db).admit("nw_nope")).to_response()

        assert missing.model_dump(exclude_none=True).keys() == unknown.model_dump(
            exclude_none=True
        ).keys() == {"valid", "error"}


class TestAdmission:
    @pytest.mark.asyncio
    async def test_admitted_key_reports_quota_and_records_use(self, db, tenant_id, clock):
        api_key, plaintext = await create_api_key(db, tenant_id, rate_limit=10)

        decision = await AdmissionGateway(db, clock=clock).admit(plaintext)

        assert decision.admitted
        assert decision.status_code == 200
        assert decision.tenant_id == tenant_id
        assert decision.permissions == ["sources:read", "sources:write", "newsletters:read"]
        assert decision.rate_limit == 10
        assert decision.current_usage == 1
        assert api_key.last_used_at == clock.now
        assert await _usage_count(db, api_key.id) == 1

    @pytest.mark.asyncio
    async def test_single_request_limit(self, db, tenant_id, clock):
        """E2E: rate_limit=1 admits once, then rejects with a one-hour hint."""
        _, plaintext = await create_api_key(db, tenant_id, rate_limit=1)
        gateway = AdmissionGateway(db, clock=clock)

        first = await gateway.admit(plaintext)
        second = await gateway.admit(plaintext)

        assert first.admitted
        assert first.current_usage == 1
        assert second.outcome is AdmissionOutcome.RATE_LIMITED
        assert second.status_code == 429
        assert second.retry_after == 3600
        assert second.current_usage == 1

    @pytest.mark.asyncio
    async def test_sliding_window(self, db, tenant_id, clock):
        api_key, plaintext = await create_api_key(db, tenant_id, rate_limit=5)
        gateway = AdmissionGateway(db, clock=clock)

        usages = []
        for _ in range(5):
            decision = await gateway.admit(plaintext)
            assert decision.admitted
            usages.append(decision.current_usage)
            clock.advance(minutes=1)
        assert usages == [1, 2, 3, 4, 5]

        limited = await gateway.admit(plaintext)
        assert limited.outcome is AdmissionOutcome.RATE_LIMITED
        assert limited.current_usage == 5
        # Rejected checks are not recorded
        assert await _usage_count(db, api_key.id) == 5

        # First admission was at 12:00; at 13:00 it is still inside the window
        clock.now = datetime(2026, 1, 1, 13, 0, tzinfo=UTC)
        assert (await gateway.admit(plaintext)).outcome is AdmissionOutcome.RATE_LIMITED

        # Once it ages out exactly one slot frees up
        clock.now = datetime(2026, 1, 1, 13, 0, 30, tzinfo=UTC)
        reopened = await gateway.admit(plaintext)
        assert reopened.admitted
        assert reopened.current_usage == 5

    @pytest.mark.asyncio
    async def test_keys_are_limited_independently(self, db, tenant_id, clock):
        _, first_key = await create_api_key(db, tenant_id, rate_limit=1)
        _, second_key = await create_api_key(db, tenant_id, rate_limit=1)
        gateway = AdmissionGateway(db, clock=clock)

        assert (await gateway.admit(first_key)).admitted
        assert (await gateway.admit(second_key)).admitted
        assert not (await gateway.admit(first_key)).admitted


class TestFailClosed:
    @pytest.mark.asyncio
    async def test_count_failure_raises_instead_of_admitting(
        self, db, tenant_id, clock, monkeypatch
    ):
        api_key, plaintext = await create_api_key(db, tenant_id)
        gateway = AdmissionGateway(db, clock=clock)

        async def broken_count(*args, **kwargs):
            raise DataStoreError("query failed")

        monkeypatch.setattr(gateway.ledger, "count_in_window", broken_count)

        with pytest.raises(DataStoreError):
            await gateway.admit(plaintext)
        assert api_key.last_used_at is None

    @pytest.mark.asyncio
    async def test_lookup_failure_raises(self, db, monkeypatch):
        gateway = AdmissionGateway(db)

        async def broken_lookup(*args, **kwargs):
            raise DataStoreError("query failed")

        monkeypatch.setattr(gateway.registry, "find_api_key_by_hash", broken_lookup)

        with pytest.raises(DataStoreError):
            await gateway.admit("nw_" + "0" * 48)


class TestAdmissionDecision:
    def test_has_permission_requires_admission(self):
        admitted = AdmissionDecision(
            outcome=AdmissionOutcome.ADMITTED, permissions=["analytics:read"]
        )
        rejected = AdmissionDecision(
            outcome=AdmissionOutcome.RATE_LIMITED, permissions=["analytics:read"]
        )

        assert admitted.has_permission("analytics:read") is True
        assert admitted.has_permission("sources:write") is False
        assert rejected.has_permission("analytics:read") is False

    def test_rate_limited_response_carries_retry_hint(self):
        decision = AdmissionDecision(
            outcome=AdmissionOutcome.RATE_LIMITED,
            error="Rate limit exceeded. Try again later.",
            rate_limit=5,
            current_usage=5,
            retry_after=3600,
        )

        body = decision.to_response().model_dump(exclude_none=True)

        assert body == {
            "valid": False,
            "error": "Rate limit exceeded. Try again later.",
            "rate_limit": 5,
            "current_usage": 5,
            "retry_after": 3600,
        }
