"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("INTERNAL_SERVICE_TOKEN", "test-internal-service-token")

from hookgate.api.deps import get_delivery_engine, get_http_client  # noqa: E402
from hookgate.core.config import Settings, get_settings  # noqa: E402
from hookgate.core.database import get_db, get_session_factory  # noqa: E402
from hookgate.core.signing import api_key_prefix, generate_api_key, hash_api_key  # noqa: E402
from hookgate.core.signing import generate_webhook_secret  # noqa: E402
from hookgate.main import app  # noqa: E402
from hookgate.models.api_key import ApiKey  # noqa: E402
from hookgate.models.base import Base  # noqa: E402
from hookgate.models.enums import ApiKeyPermission  # noqa: E402
from hookgate.models.webhook import Webhook  # noqa: E402
from hookgate.services.delivery_engine import DeliveryEngine  # noqa: E402

PUBLIC_TEST_ADDRESS = "93.184.216.34"


class Receiver:
    """Scripted webhook receiver backed by ``httpx.MockTransport``.

    ``responses`` is consumed one item per request; an int is returned as
    the status code, an exception instance is raised. When exhausted,
    ``default_status`` is used.
    """

    def __init__(self, responses: list | None = None, default_status: int = 200):
        self.responses = list(responses or [])
        self.default_status = default_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.pop(0) if self.responses else self.default_status
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"ok": 200 <= outcome < 300})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


async def public_resolver(host: str, port: int) -> list[str]:
    return [PUBLIC_TEST_ADDRESS]


@pytest.fixture()
def settings() -> Settings:
    return get_settings()


@pytest.fixture()
def service_headers(settings: Settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {settings.internal_service_token}"}


@pytest.fixture()
def tenant_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh SQLite database file per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hookgate_test.db'}",
        echo=False,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Request-style session.

    Fixtures commit what they create: the delivery engine writes through
    its own sessions and SQLite allows a single writer.
    """
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture()
def receiver() -> Receiver:
    return Receiver()


@pytest.fixture()
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture()
async def http_client(receiver: Receiver) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with receiver.client() as http:
        yield http


@pytest.fixture()
def delivery_engine(
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
    settings: Settings,
    recorded_sleep: RecordingSleep,
) -> DeliveryEngine:
    return DeliveryEngine(
        session_factory,
        http_client,
        settings=settings,
        resolver=public_resolver,
        sleep=recorded_sleep,
    )


@pytest_asyncio.fixture(scope="function")
async def client(
    db: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
    delivery_engine: DeliveryEngine,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and delivery overrides.

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_delivery_engine] = lambda: delivery_engine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_webhook(
    db: AsyncSession,
    tenant_id: UUID,
    url: str = "https://example.com/hook",
    events: list[str] | None = None,
    enabled: bool = True,
    secret: str | None = None,
) -> Webhook:
    """Webhook factory; commits so engine sessions can see the row.

    Args:
        db: Database session
        tenant_id: Owning tenant
        url: Target URL
        events: Subscribed events (default: newsletter.sent)
        enabled: Enabled flag
        secret: Signing secret (default: generated)

    Returns:
        Created Webhook instance
    """
    webhook = Webhook(
        tenant_id=tenant_id,
        url=url,
        secret=secret or generate_webhook_secret(),
        events=events if events is not None else ["newsletter.sent"],
        enabled=enabled,
    )
    db.add(webhook)
    await db.commit()
    return webhook


async def create_api_key(
    db: AsyncSession,
    tenant_id: UUID,
    rate_limit: int = 1000,
    permissions: list[str] | None = None,
    revoked: bool = False,
) -> tuple[ApiKey, str]:
    """API key factory.

    Returns:
        Tuple of (committed ApiKey, plaintext key)
    """
    plaintext = generate_api_key()
    api_key = ApiKey(
        tenant_id=tenant_id,
        name="Test Key",
        key_prefix=api_key_prefix(plaintext),
        key_hash=hash_api_key(plaintext),
        permissions=permissions if permissions is not None else ApiKeyPermission.defaults(),
        rate_limit=rate_limit,
        revoked_at=datetime.now(UTC) if revoked else None,
    )
    db.add(api_key)
    await db.commit()
    return api_key, plaintext


class FrozenClock:
    """Controllable clock for sliding-window tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()
