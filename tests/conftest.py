"""
Shared test fixtures for the VanTrack test suite.

Each test runs against its own in-memory SQLite database (aiosqlite +
StaticPool) injected through the ``get_db`` dependency.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vantrack.api.v1.deps import get_current_active_user, get_db, require_operator
from vantrack.api.v1.endpoints.auth import limiter
from vantrack.db.base import Base
from vantrack.main import app
from vantrack.models.user import User

# Login is rate limited per IP; every test client shares one address.
limiter.enabled = False

OPERATOR = User(
    id="op-1",
    name="Test Operator",
    email="operator@example.com",
    hashed_password="x",
    role="operator",
    capacity=0,
    is_active=True,
)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh database per test; tables created up front and dropped afterwards."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct service calls and queries."""
    async with session_factory() as session:
        yield session


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user():
    return OPERATOR


async def _override_require_operator():
    return OPERATOR


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient wired to the app, authenticated as an operator."""
    app.dependency_overrides[get_current_active_user] = _override_get_current_active_user
    app.dependency_overrides[require_operator] = _override_require_operator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def anon_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient that goes through the real token checks."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def signup(client: AsyncClient, user_id: str, role: str = "rider", **extra) -> dict:
    """Helper: register a user through the public signup route."""
    payload = {
        "id": user_id,
        "name": extra.pop("name", f"User {user_id}"),
        "email": extra.pop("email", f"{user_id.lower()}@example.com"),
        "password": extra.pop("password", "secret123"),
        "role": role,
        **extra,
    }
    resp = await client.post("/api/v1/auth/signup", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]
