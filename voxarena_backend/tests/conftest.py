"""
Pytest configuration and shared fixtures for VoxArena backend tests.

This module provides:
- An in-memory SQLite database with the full schema
- An httpx AsyncClient wired to the app with the session dependency overridden
- Small helpers for creating terms and personas through the API
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from voxarena_backend import middleware
from voxarena_backend.backend import create_app
from voxarena_backend.db_session import get_async_session
from voxarena_backend.models import Base


# ============================================================================
# Database
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ============================================================================
# API client
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory, monkeypatch):
    """AsyncClient against a fresh app; auth off, no description API key."""
    monkeypatch.setattr(middleware, "AUTH_TOKEN", None)
    monkeypatch.setattr(middleware, "MAX_JSON_BYTES", 1024 * 1024)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    app = create_app()

    async def override_get_async_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_get_async_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================================
# Data helpers
# ============================================================================

@pytest.fixture
def create_term(client):
    async def _create(category: str, term: str) -> dict:
        resp = await client.post("/api/taxonomy/terms", json={"category": category, "term": term})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def create_persona(client):
    async def _create(name: str, **fields) -> dict:
        body = {"name": name, "description": f"{name} test persona"}
        body.update(fields)
        resp = await client.post("/api/personas", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
