"""Unit tests for startup validation."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from breezeline.models import ProjectType, ServiceClass
from breezeline.startup_validation import (
    StartupValidationError,
    validate_database_connection,
    validate_rate_table,
    validate_startup,
    validate_upload_directory,
)


@pytest.mark.asyncio
async def test_rate_table_is_complete():
    await validate_rate_table()


@pytest.mark.asyncio
async def test_incomplete_rate_table_fails_fast():
    missing = [(ProjectType.OFFICE, ServiceClass.PREMIUM)]
    with patch("breezeline.startup_validation.missing_rates", return_value=missing):
        with pytest.raises(StartupValidationError) as exc_info:
            await validate_rate_table()

    assert "Office/Premium" in str(exc_info.value)


@pytest.mark.asyncio
async def test_upload_directory_is_created(tmp_path):
    target = tmp_path / "new" / "uploads"

    await validate_upload_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []


@pytest.mark.asyncio
async def test_upload_directory_that_is_a_file_fails(tmp_path):
    blocker = tmp_path / "uploads"
    blocker.write_text("not a directory")

    with pytest.raises(StartupValidationError):
        await validate_upload_directory(blocker)


@pytest.mark.asyncio
async def test_database_connection(session_factory):
    async with session_factory() as session:
        await validate_database_connection(session)


@pytest.mark.asyncio
async def test_database_without_schema_fails():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    try:
        async with AsyncSession(engine) as session:
            with pytest.raises(StartupValidationError):
                await validate_database_connection(session)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_validate_startup_without_session():
    await validate_startup()
