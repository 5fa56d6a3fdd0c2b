"""
LoveAlbum Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (service unit tests)
    ├── file_service_tmp: FileService rooted in a temporary directory
    ├── sample_image_bytes / sample_audio_bytes: Fake media content
    ├── database: Empty SQLite schema, dropped after the test
    ├── test_client: HTTPX AsyncClient talking to the app in-process
    └── admin_client: test_client carrying a valid admin session cookie
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
_tmp_root = tempfile.mkdtemp(prefix="lovealbum_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_root, 'test.db')}"
os.environ["STORAGE_ROOT"] = os.path.join(_tmp_root, "storage")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["JWT_SECRET"] = "test-secret-with-enough-length-for-hs256"
os.environ["ALBUM_CACHE_TTL"] = "300"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.config import settings  # noqa: E402
from app.database import async_session_factory, create_tables, drop_tables, engine  # noqa: E402
from app.services.album_cache import album_cache  # noqa: E402
from app.services.auth_service import auth_service  # noqa: E402

ADMIN_ACCOUNT = "admin"
ADMIN_PASSWORD = "correct horse battery"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost so hashing does not dominate the test run."""
    monkeypatch.setattr("app.services.auth_service.BCRYPT_ROUNDS", 4)


@pytest.fixture(autouse=True)
def clear_album_cache():
    album_cache.clear()
    yield
    album_cache.clear()


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_album_id(mock_db_session):
            mock_db_session.execute.return_value = make_result(album_id)
            result = await album_service.get_album_id(mock_db_session, "slug")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def _make_result(scalar=None, scalars=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    return result


@pytest.fixture
def make_result():
    """Builds stand-ins for the Result object returned by `await session.execute(...)`."""
    return _make_result


@pytest.fixture
def file_service_tmp(tmp_path):
    """A FileService writing below pytest's tmp_path (cleaned up automatically)."""
    from app.services.file_service import FileService

    return FileService(storage_root=str(tmp_path / "storage"))


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9)."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_audio_bytes():
    """An ID3 header followed by filler; only the extension is checked."""
    return b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\x00" * 2048


@pytest_asyncio.fixture
async def database():
    """Creates every table before the test and drops them afterwards."""
    await create_tables()
    yield
    await drop_tables()
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(test_client):
    """test_client logged in as the seeded admin."""
    async with async_session_factory() as session:
        async with session.begin():
            await auth_service.ensure_admin(session, ADMIN_ACCOUNT, ADMIN_PASSWORD)

    response = await test_client.post(
        "/api/admin/login",
        json={"admin_account": ADMIN_ACCOUNT, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    token = response.cookies[settings.admin_cookie_name]

    test_client.cookies.clear()
    test_client.cookies.set(settings.admin_cookie_name, token)
    return test_client
