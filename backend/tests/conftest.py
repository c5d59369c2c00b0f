"""
Book Keeper Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, tables from Base.metadata.create_all). API tests talk
       to the real FastAPI app through httpx's ASGITransport with
       get_db_session overridden to use that database.

Fixture Hierarchy:
    Function-scoped:
    ├── engine:            in-memory async engine with the schema created
    ├── db_session:        AsyncSession for service-level tests
    ├── mock_db_session:   AsyncMock session for pure policy tests
    ├── member / admin:    persisted users for service-level tests
    ├── test_client:       HTTPX AsyncClient against the app
    └── register_user:     registers + logs in over HTTP, returns (id, headers)
"""

import os

# Override settings BEFORE any bookkeeper import: config.settings, the token
# service and the module-level engine are all built at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-only-secret-0123456789abcdef0123456789"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bookkeeper.database import Base, get_db_session
import bookkeeper.models  # noqa: F401
from bookkeeper.models.user import User
from bookkeeper.schemas.user import UserRegister
from bookkeeper.services.user_service import user_service

PASSWORD = "secret123"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """In-memory database; StaticPool keeps the single connection alive."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        async def test_edit_foreign_user(mock_db_session):
            mock_db_session.get.return_value = None
            ...
    """
    session = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Persisted Users
# ══════════════════════════════════════════════════════════════════════════

async def _create_user(db: AsyncSession, email: str, role: str = "user", name: str = "Reader") -> User:
    return await user_service.create(
        db,
        UserRegister(name=name, email=email, password=PASSWORD, role=role),
    )


@pytest_asyncio.fixture
async def member(db_session) -> User:
    return await _create_user(db_session, "member@library.org", name="Mira Member")


@pytest_asyncio.fixture
async def other_member(db_session) -> User:
    return await _create_user(db_session, "other@library.org", name="Otto Other")


@pytest_asyncio.fixture
async def admin(db_session) -> User:
    return await _create_user(db_session, "admin@library.org", role="admin", name="Ada Admin")


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from bookkeeper.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(test_client):
    """
    Factory: register a user over HTTP, log in, and return
    (user_id, {"Authorization": "Bearer ..."}).
    """

    async def _register(email: str, role: str = "user", name: str = "Reader"):
        resp = await test_client.post(
            "/api/user/register",
            json={"name": name, "email": email, "password": PASSWORD, "role": role},
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["data"]["id"]

        resp = await test_client.post(
            "/api/user/login", json={"email": email, "password": PASSWORD}
        )
        assert resp.status_code == 200, resp.text
        return user_id, {"Authorization": f"Bearer {resp.json()['token']}"}

    return _register
