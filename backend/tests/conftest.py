"""
Groceree Backend - Test Configuration (conftest.py)
=====================================================

Function-scoped fixtures:
    ├── db_engine:          fresh in-memory SQLite database with all tables
    ├── session_factory:    sessions on that database (for direct assertions)
    ├── mock_db_session:    AsyncMock session for service unit tests
    ├── isolated_blob_store: (autouse) fresh storage root for every test
    ├── temp_storage:       empty directory for BlobStore unit tests
    ├── sample_image_bytes: minimal JPEG payload for uploads
    ├── test_client:        httpx AsyncClient wired to the app and db_engine
    ├── register:           creates an account, returns auth headers
    └── recipe_payload:     a valid create/update body
"""

import os
import tempfile

# Must run before any groceree import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="groceree_test_")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import groceree.models  # noqa: F401  (registers tables on Base.metadata)
from groceree.database import Base, enable_sqlite_foreign_keys, get_db_session
from groceree.main import app
from groceree.services.blob_service import blob_store


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """One in-memory database per test; StaticPool keeps it on one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for an AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def isolated_blob_store(tmp_path, monkeypatch):
    """Point the shared blob store at an empty directory for every test."""
    root = (tmp_path / "blobs").resolve()
    root.mkdir()
    monkeypatch.setattr(blob_store, "storage_root", root)
    return blob_store


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG-looking payload: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    httpx AsyncClient talking to the real app over ASGI.

    get_db_session is overridden to use the per-test database with the same
    commit-or-rollback behavior as production.
    """

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
def register(test_client):
    """
    Factory fixture: register an account and return its auth headers.

    Usage:
        alice = await register("alice")
        await test_client.get("/api/recipes", headers=alice)
    """

    async def _register(
        username: str = "alice",
        password: str = "correct-horse",
        first_name: str = None,
        last_name: str = "Tester",
    ) -> dict:
        response = await test_client.post(
            "/api/auth/register",
            json={
                "firstName": first_name or username.capitalize(),
                "lastName": last_name,
                "username": username,
                "password": password,
            },
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
def recipe_payload():
    return {
        "name": "Tomato Soup",
        "duration": 30,
        "servings": 4,
        "ingredients": [
            {"name": "Tomatoes", "amount": 800, "unit": "g"},
            {"name": "Olive oil", "amount": 2, "unit": "tbsp"},
            {"name": "Stock", "amount": 0.5, "unit": "l"},
        ],
        "instructions": [
            {"step": 1, "instruction": "Chop the tomatoes."},
            {"step": 2, "instruction": "Simmer with the stock for 20 minutes."},
            {"step": 3, "instruction": "Blend and season."},
        ],
    }
