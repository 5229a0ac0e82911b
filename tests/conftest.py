"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# Settings are cached on first use, so the test environment is fixed before any app import.
os.environ["GT_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["GT_JWT_SECRET"] = "test-secret-with-enough-length-for-hs256"
os.environ["GT_ADMIN_USERNAMES"] = '["boss"]'
os.environ["GT_ADMIN_RESET_PASSWORD"] = "wipe-it"
os.environ["GT_LOG_FORMAT"] = "console"
os.environ["GT_SECONDS_PER_COIN"] = "60"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from goldticket.config import get_settings  # noqa: E402
from goldticket.database import close_db, create_schema, get_session_factory, init_db  # noqa: E402
from goldticket.main import create_app  # noqa: E402
from goldticket.shop.seed import seed_shop_items  # noqa: E402
from tests.helpers import register_user  # noqa: E402

get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory database with schema and shop catalog.

    ASGITransport does not run the app lifespan, so setup happens here.
    """
    settings = get_settings()
    await init_db(settings.database_url)
    await create_schema()
    async with get_session_factory()() as db:
        await seed_shop_items(db)
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions.

    Commit any writes before issuing HTTP requests: the in-memory database
    shares one connection between this session and the app.
    """
    async with get_session_factory()() as session:
        yield session


@pytest.fixture
def mock_email_service(monkeypatch):
    """Mock the email service to prevent actual email sending."""
    mock_service = MagicMock()
    mock_service.send_template = AsyncMock(return_value=True)

    monkeypatch.setattr("goldticket.auth.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> dict:
    """A registered, logged-in normal user."""
    return await register_user(client, "alice")


@pytest_asyncio.fixture
async def admin(client: AsyncClient) -> dict:
    """A user listed in GT_ADMIN_USERNAMES, so registered with the admin role."""
    return await register_user(client, "boss", password="bosspass")
