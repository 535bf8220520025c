"""
ClassNotes Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file database (aiosqlite) and
       storage directory under tmp_path, so tests never share state.

Fixture Hierarchy (all function-scoped):
    test_settings ──┬── database ── db_session
                    ├── file_store ── note_service
                    └── app ── client ── auth_headers
    hasher, signer ── auth_service
    catalog_service
    mock_db_session: AsyncMock session for failure-path tests
"""

import os
import tempfile
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before classnotes.config builds the process-wide Settings
TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="classnotes_test_"), "default.db"
)
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="classnotes_uploads_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from classnotes.config import Settings  # noqa: E402
from classnotes.database import Database  # noqa: E402
from classnotes.main import create_app  # noqa: E402
from classnotes.services.auth_service import AuthService  # noqa: E402
from classnotes.services.catalog_service import CatalogService  # noqa: E402
from classnotes.services.file_service import FileStore  # noqa: E402
from classnotes.services.note_service import NoteService  # noqa: E402
from classnotes.services.security import Argon2PasswordHasher, JWTTokenSigner  # noqa: E402

# Lowest argon2-cffi accepts; hashing stays in the low milliseconds
FAST_ARGON2 = {"time_cost": 1, "memory_cost": 1024, "parallelism": 1}


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'classnotes.db'}",
        jwt_secret=TEST_SECRET,
        storage_root=str(tmp_path / "uploads"),
        max_file_size=1_048_576,
        argon2_time_cost=FAST_ARGON2["time_cost"],
        argon2_memory_cost=FAST_ARGON2["memory_cost"],
        argon2_parallelism=FAST_ARGON2["parallelism"],
        log_level="WARNING",
    )


# ── Persistence ───────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session for failure-path tests.

    Usage:
        mock_db_session.flush.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ── Services ──────────────────────────────────────────────────────────────

@pytest.fixture
def hasher() -> Argon2PasswordHasher:
    return Argon2PasswordHasher(**FAST_ARGON2)


@pytest.fixture
def signer() -> JWTTokenSigner:
    return JWTTokenSigner(secret_key=TEST_SECRET)


@pytest.fixture
def auth_service(hasher, signer) -> AuthService:
    return AuthService(hasher=hasher, signer=signer)


@pytest.fixture
def catalog_service() -> CatalogService:
    return CatalogService()


@pytest.fixture
def file_store(test_settings) -> FileStore:
    return FileStore(
        storage_root=test_settings.storage_root,
        max_file_size=test_settings.max_file_size,
        allowed_extensions=test_settings.allowed_extensions_set,
    )


@pytest.fixture
def note_service(file_store) -> NoteService:
    return NoteService(file_store=file_store)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Smallest byte string that starts like a PDF; content is never parsed."""
    return b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


# ── HTTP ──────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def app(test_settings):
    """
    A fresh application per test. ASGITransport does not run the
    lifespan, so the schema is created and the engine disposed here.
    """
    application = create_app(test_settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def auth_headers(client) -> dict:
    """Registers admin/admin123 and returns a Bearer header for it."""
    credentials = {"username": "admin", "password": "admin123"}
    response = await client.post("/api/register", json=credentials)
    assert response.status_code == 201
    response = await client.post("/api/login", json=credentials)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
