"""Startup validation for Breezeline.

Fail fast and loud when the rate table, the database or the upload directory
is unusable, instead of failing on the first customer request.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from breezeline.config import AppConfig, MailConfig, get_config
from breezeline.db.models import CategoryModel
from breezeline.pricing.rates import missing_rates

logger = logging.getLogger(__name__)


class StartupValidationError(Exception):
    """Raised when startup validation fails."""
    pass


async def validate_rate_table() -> None:
    """Every project type / service class pair must carry a positive rate.

    Raises:
        StartupValidationError: If any pair is missing or non-positive
    """
    missing = missing_rates()
    if missing:
        pairs = ", ".join(f"{ptype.value}/{sclass.value}" for ptype, sclass in missing)
        raise StartupValidationError(f"Rate table incomplete: no positive rate for {pairs}")
    logger.info("✓ Rate table complete")


async def validate_database_connection(session: AsyncSession) -> None:
    """Validate database connection and schema.

    Args:
        session: Database session

    Raises:
        StartupValidationError: If database connection or schema is invalid
    """
    try:
        result = await session.execute(select(func.count()).select_from(CategoryModel))
        category_count = result.scalar()

        logger.info(f"✓ Database connection OK ({category_count} portfolio categories)")

    except Exception as e:
        raise StartupValidationError(
            f"Database connection failed: {e}. "
            "Check DATABASE_URL and run `breezeline init`."
        ) from e


async def validate_upload_directory(directory: Path | None = None) -> None:
    """The image directory must exist (it is created if absent) and accept writes.

    Raises:
        StartupValidationError: If the directory cannot be created or written
    """
    directory = Path(directory or get_config().uploads.directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, probe = tempfile.mkstemp(dir=directory, suffix=".probe")
        os.close(fd)
        os.unlink(probe)
    except OSError as e:
        raise StartupValidationError(
            f"Upload directory {directory} is not writable: {e}. "
            "Set UPLOAD_DIR to a writable path."
        ) from e

    logger.info(f"✓ Upload directory writable: {directory}")


async def validate_mail_config(mail: MailConfig | None = None) -> None:
    """Warn (never fail) when lead emails cannot be sent."""
    mail = mail or get_config().mail
    if not mail.configured:
        logger.warning(
            "⚠ SMTP_USER / SMTP_PASSWORD not set. Leads are stored but no emails are sent."
        )
    elif not mail.admin_recipient:
        logger.warning("⚠ No ADMIN_EMAIL configured; lead alerts have no recipient.")
    else:
        logger.info(f"✓ SMTP configured via {mail.smtp_host}:{mail.smtp_port}")


async def validate_startup(
    session: AsyncSession | None = None, config: AppConfig | None = None
) -> None:
    """Run all startup validations.

    Args:
        session: Database session (optional, will warn if not provided)
        config: Defaults to ``get_config()``

    Raises:
        StartupValidationError: If any critical validation fails
    """
    logger.info("Running startup validations...")

    config = config or get_config()
    await validate_rate_table()
    await validate_upload_directory(config.uploads.directory)
    await validate_mail_config(config.mail)

    if session is not None:
        await validate_database_connection(session)
    else:
        logger.warning("⚠ Database session not provided, skipping DB validations")

    logger.info("✓ All startup validations passed")
