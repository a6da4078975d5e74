"""Pytest configuration and fixtures for Breezeline tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from breezeline.config import reset_config
from breezeline.db import connection
from breezeline.db.models import Base
from breezeline.models import LeadDraft, ProjectType, ServiceClass
from breezeline.portfolio.images import ImageStorage, ImageUpload
from breezeline.web.app import create_app

# Smallest byte string that passes the PNG signature check
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'breezeline-test.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("ADMIN_USERNAME", "admin")
    monkeypatch.setenv("ADMIN_PASSWORD", "test-password")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")  # bcrypt minimum, keeps tests fast
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for name in (
        "SMTP_USER",
        "SMTP_PASSWORD",
        "ADMIN_EMAIL",
        "REDIS_URL",
        "LEADS_BACKEND",
        "ENVIRONMENT",
        "STATIC_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    # Fresh config and engine per test
    reset_config()
    monkeypatch.setattr(connection, "_engine", None)
    monkeypatch.setattr(connection, "_session_factory", None)
    yield
    reset_config()


@pytest_asyncio.fixture()
async def session_factory():
    """In-memory database with every table, exposed as a committing session factory."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory():
        session = SessionLocal()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def image_storage(tmp_path) -> ImageStorage:
    """Image storage in a per-test directory."""
    return ImageStorage(tmp_path / "images", max_bytes=1024)


@pytest.fixture
def png_upload() -> ImageUpload:
    return ImageUpload(content=PNG_BYTES, filename="living-room.png", content_type="image/png")


@pytest.fixture
def sample_draft() -> LeadDraft:
    """2BHK Standard, 50 sqm at 2,200 AED per sqm."""
    return LeadDraft(
        project_type=ProjectType.TWO_BHK,
        service_class=ServiceClass.STANDARD,
        area=Decimal("50"),
        unit_price=Decimal("2200"),
        total_price=Decimal("110000"),
        phone="050 123 4567",
        email="client@example.com",
        contact_name="Layla",
    )


@pytest.fixture
def client():
    """TestClient over the full application, lifespan included."""
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """Same client, holding a valid admin session cookie."""
    response = client.post("/api/auth/login", json={"username": "admin", "password": "test-password"})
    assert response.status_code == 200
    return client
