"""Pytest configuration and fixtures for RackBox tests on a temporary SQLite file."""

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rackbox import database
from rackbox.config import (
    AccessConfig,
    DatabaseConfig,
    RackboxConfig,
    SecretsConfig,
    Settings,
    StorageConfig,
    reset_settings,
)
from rackbox.exception_handlers import setup_exception_handlers
from rackbox.services.access_gate import AccessGate
from rackbox.services.employees import add_employee

TEST_SECRET_KEY = "test-secret-key-for-edit-tokens-0123456789abcdef"


# Create a test-specific app to avoid lifespan conflicts
def create_test_app() -> FastAPI:
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from rackbox import __version__

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(title="RackBox Test", version=__version__, lifespan=test_lifespan)
    setup_exception_handlers(test_app)

    from rackbox.main import app as main_app

    for route in main_app.routes:
        test_app.routes.append(route)

    return test_app


_test_app: FastAPI | None = None


def get_test_app() -> FastAPI:
    """Get the test app singleton."""
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(data_dir: Path) -> Generator[Settings, None, None]:
    """Point the global settings at a per-test data directory and database."""
    config = RackboxConfig(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{data_dir / 'rackbox-test.db'}"),
        storage=StorageConfig(data_dir=data_dir, log_dir=data_dir / "logs"),
        access=AccessConfig(default_edit_secret="1234", edit_token_minutes=30),
    )
    test_settings = Settings(config=config, secrets=SecretsConfig(secret_key=TEST_SECRET_KEY))
    reset_settings(test_settings)
    yield test_settings
    reset_settings()


@pytest_asyncio.fixture
async def init_test_db(test_settings: Settings) -> AsyncGenerator[None, None]:
    """Create all tables in a fresh SQLite file for this test."""
    await database.init_db()
    yield
    await database.close_db()


@pytest_asyncio.fixture
async def session_factory(init_test_db) -> async_sessionmaker[AsyncSession]:
    return database.get_session_factory()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for service-level tests.

    Every read opens a write-locking transaction on SQLite, so tests that
    also call the HTTP API should use ``session_factory`` for short-lived
    sessions instead.
    """
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def employee(session_factory) -> str:
    """A registered employee id."""
    async with session_factory() as session:
        await add_employee(session, "E100", "Test Picker")
    return "E100"


@pytest_asyncio.fixture
async def client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client bound to the test database."""
    app = get_test_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def access_gate(test_settings: Settings) -> AccessGate:
    return AccessGate()


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create sample image bytes for testing."""
    # Minimal valid PNG (1x1 pixel, red)
    png_data = bytes([
        0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
        0x00, 0x00, 0x00, 0x0D,  # IHDR length
        0x49, 0x48, 0x44, 0x52,  # IHDR
        0x00, 0x00, 0x00, 0x01,  # width: 1
        0x00, 0x00, 0x00, 0x01,  # height: 1
        0x08, 0x02,  # bit depth: 8, color type: RGB
        0x00, 0x00, 0x00,  # compression, filter, interlace
        0x90, 0x77, 0x53, 0xDE,  # CRC
        0x00, 0x00, 0x00, 0x0C,  # IDAT length
        0x49, 0x44, 0x41, 0x54,  # IDAT
        0x08, 0xD7, 0x63, 0xF8, 0xFF, 0xFF, 0x3F, 0x00,  # compressed data
        0x05, 0xFE, 0x02, 0xFE,  # CRC
        0xA3, 0x1A, 0x8D, 0xEB,  # CRC
        0x00, 0x00, 0x00, 0x00,  # IEND length
        0x49, 0x45, 0x4E, 0x44,  # IEND
        0xAE, 0x42, 0x60, 0x82,  # CRC
    ])
    return png_data


@pytest.fixture
def rack_image(data_dir: Path, sample_image_bytes: bytes) -> Path:
    """A rack photograph stored in the image directory."""
    images = data_dir / "images"
    images.mkdir(parents=True, exist_ok=True)
    path = images / "aisle-3.png"
    path.write_bytes(sample_image_bytes)
    return path
