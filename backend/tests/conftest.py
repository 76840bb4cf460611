"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("SEARCH_MODE", "like")
os.environ.setdefault("SEARCH_CACHE_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from typing import AsyncGenerator
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from bonlog.core.database import Base, get_db
from bonlog.core.rate_limit import limiter
from bonlog.services.auth_service import auth_service
import bonlog.models  # noqa: F401  registers the tables on Base.metadata
from tests.fakes import FakeSessionFactory


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_engine():
    """A fresh in-memory database with the BON-LOG tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_sessions() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture(scope="function")
def client() -> TestClient:
    """Create a test client. Tests stub the search services they call."""
    async def override_get_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Bearer header for a regular user."""
    token = auth_service.create_access_token("viewer-1")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict:
    """Bearer header for an admin."""
    token = auth_service.create_access_token("admin-1", role="admin")
    return {"Authorization": f"Bearer {token}"}
