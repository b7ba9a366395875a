"""
TechGear Catalog Backend — Test Configuration (conftest.py)
=============================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked sessions, a throwaway
       SQLite catalog, an API client, seeded users and tokens).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── mock_handle:     DatabaseHandle stand-in for service unit tests
    ├── test_settings:   Settings pointing at a per-test SQLite file
    ├── test_app:        create_app(test_settings) with tables created
    ├── test_client:     HTTPX AsyncClient bound to test_app
    ├── registered_user: A User row inserted directly into the store
    └── auth_headers:    Bearer header for registered_user
"""

import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any app imports
# Why: The module-level app in app.main is built from the environment
os.environ["DATABASE_URL"] = ""
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from app.config import Settings  # noqa: E402
from app.database import Base  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models.user import Role, User  # noqa: E402

TEST_JWT_SECRET = "test-secret-not-real"

VALID_PRODUCT = {
    "title": "Mechanical Keyboard",
    "price": 129.99,
    "description": "Hot-swappable 75% board with PBT keycaps.",
    "image": "https://cdn.example.com/keyboard.png",
}


def make_settings(**overrides) -> Settings:
    """Settings for tests: fast readiness polling and a cheap bcrypt cost."""
    values = {
        "database_url": "",
        "jwt_secret": TEST_JWT_SECRET,
        "db_ready_poll_interval": 0,
        "db_ready_max_attempts": 2,
        "db_query_timeout": 5.0,
        "bcrypt_rounds": 4,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    A MagicMock that simulates AsyncSession behavior.
    Why:     Service tests should not require a real database.

    Usage:
        async def test_get_product(mock_db_session, mock_handle):
            mock_db_session.get.return_value = product
            result = await product_service.get_product(mock_db_session, mock_handle, pid)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_handle():
    """
    DatabaseHandle stand-in: run() awaits its argument, storage_errors()
    is a pass-through context manager.
    """
    handle = MagicMock()

    async def run(awaitable):
        return await awaitable

    @asynccontextmanager
    async def storage_errors(conflict_message="Resource already exists"):
        yield

    handle.run = AsyncMock(side_effect=run)
    handle.storage_errors = storage_errors
    return handle


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path):
    return make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")


@pytest_asyncio.fixture
async def test_app(test_settings):
    """
    A fresh application with its own database file and rate limiters.

    Tables are created from the ORM metadata; httpx's ASGITransport does not
    run the lifespan, so the handle connects lazily on the first request.
    """
    app = create_app(test_settings)
    engine = app.state.db._ensure_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    await app.state.db.dispose()


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def insert_user(app, email="owner@techgear.dev", role=Role.USER) -> User:
    """Insert a user row directly, bypassing /register."""
    handle = app.state.db
    await handle.ensure_ready()
    user = User(
        name="Catalog Owner",
        email=email,
        password_hash="not-a-real-digest",
        image="https://ui-avatars.com/api/?name=Catalog+Owner&background=random",
        role=role,
    )
    async with handle.session() as db:
        db.add(user)
    return user


@pytest_asyncio.fixture
async def registered_user(test_app):
    return await insert_user(test_app)


@pytest.fixture
def auth_headers(test_app, registered_user):
    token = test_app.state.auth_service.create_access_token(
        registered_user.id, registered_user.email
    )
    return {"Authorization": f"Bearer {token}"}
