"""
The Villagers Backend — Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, so all sessions share one connection) with the schema
       created from the ORM metadata. The postal directory is never called
       for real: service/API tests patch it, client tests use
       httpx.MockTransport.

Fixture Hierarchy (all function-scoped):
    engine
    ├── db_session:      AsyncSession for service-level tests
    ├── seeded_village:  one postal area (560001) with one village
    └── client:          HTTPX AsyncClient over the ASGI app, with
                         get_db_session routed to `engine`
    mock_directory:      patches the directory client used by PincodeService
    directory_payload:   a realistic "Success" response body
"""

import base64
import os

# Override settings BEFORE any villagers import: the settings singleton,
# the engine and the tenacity decorator read them at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["ENABLE_DEBUG_ROUTES"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from villagers import database  # noqa: E402
from villagers.database import Base  # noqa: E402
from villagers.models import PostalArea, Village  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """
    A plain session on the test engine.

    Tests commit explicitly where the behavior under test spans
    transactions (e.g. a second pincode lookup served from storage).
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_village(db_session):
    """Postal area 560001 (Bangalore, Karnataka) with the village "Shivajinagar"."""
    area = PostalArea(code="560001", state="Karnataka", district="Bangalore")
    village = Village(name="Shivajinagar", postal_area=area)
    db_session.add_all([area, village])
    await db_session.commit()
    return village


# ══════════════════════════════════════════════════════════════════════════
# Postal Directory Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def directory_payload():
    """
    Directory answer for 560001. "Bangalore G.P.O." is listed twice, as the
    real directory sometimes does.
    """
    return [
        {
            "Message": "Number of pincode(s) found:3",
            "Status": "Success",
            "PostOffice": [
                {"Name": "Bangalore G.P.O.", "District": "Bangalore", "State": "Karnataka"},
                {"Name": "Shivajinagar", "District": "Bangalore", "State": "Karnataka"},
                {"Name": "Bangalore G.P.O.", "District": "Bangalore", "State": "Karnataka"},
            ],
        }
    ]


@pytest.fixture
def mock_directory(directory_payload):
    """
    Replaces the directory client PincodeService talks to.

    Usage:
        async def test_x(mock_directory):
            mock_directory.lookup.return_value = [...]
            ...
            mock_directory.lookup.assert_awaited_once_with("560001")
    """
    directory = MagicMock()
    directory.lookup = AsyncMock(return_value=directory_payload)
    with patch("villagers.services.pincode_service.postal_directory", directory):
        yield directory


@pytest.fixture
def png_bytes():
    """A complete 1x1 PNG, so content sniffing sees the IHDR chunk."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(engine, monkeypatch):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    get_db_session is overridden with the same commit/rollback contract,
    bound to the test engine; /health pings the test engine too.
    """
    from villagers.main import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[database.get_db_session] = override_get_db_session
    monkeypatch.setattr(database, "engine", engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
