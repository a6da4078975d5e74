"""Breezeline configuration management.

Loads configuration from environment variables with sensible defaults.
Follows UAE locale standards (AED currency, square metres).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class PricingConfig:
    """Estimate calculator policy."""

    currency: str = "AED"
    min_area: Decimal = Decimal("10")
    max_area: Decimal = Decimal("10000")


@dataclass
class LeadsConfig:
    """Lead store backend selection."""

    backend: str = "memory"  # memory or database
    capacity: int = 1000  # memory backend only


@dataclass
class MailConfig:
    """SMTP settings for lead notifications."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_name: str = "Breezeline Interiors"
    from_email: str = ""
    admin_email: str = ""
    timeout_seconds: int = 20

    @property
    def configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    @property
    def admin_recipient(self) -> str:
        return self.admin_email or self.smtp_user


@dataclass
class AuthConfig:
    """Admin account seed and session settings."""

    admin_username: str = "admin"
    admin_password: str = "changeme"
    session_ttl_hours: int = 24
    bcrypt_rounds: int = 12
    redis_url: str | None = None  # in-process sessions when unset
    cookie_secure: bool = False

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_hours * 3600


@dataclass
class UploadConfig:
    """Portfolio image upload policy."""

    directory: Path = Path("uploads")
    max_bytes: int = 5 * 1024 * 1024
    allowed_content_types: tuple[str, ...] = (
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    )


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    environment: str = "development"
    log_level: str = "INFO"
    static_dir: Path | None = None

    pricing: PricingConfig = field(default_factory=PricingConfig)
    leads: LeadsConfig = field(default_factory=LeadsConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    uploads: UploadConfig = field(default_factory=UploadConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy async connection string

        Optional (with defaults):
        - LEADS_BACKEND: "memory" (bounded, default) or "database"
        - SMTP_USER / SMTP_PASSWORD: email is skipped when either is empty
        - ADMIN_USERNAME / ADMIN_PASSWORD: seed for the admin account

        Raises:
            KeyError: If required environment variables are missing
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./breezeline.db"
            )

        environment = os.getenv("ENVIRONMENT", "development")
        if environment == "production" and not os.getenv("ADMIN_PASSWORD"):
            raise KeyError("ADMIN_PASSWORD environment variable is required in production.")

        leads_backend = os.getenv("LEADS_BACKEND", "memory").lower()
        if leads_backend not in ("memory", "database"):
            raise ValueError(f"LEADS_BACKEND must be 'memory' or 'database', got {leads_backend!r}")

        static_dir = os.getenv("STATIC_DIR")
        smtp_user = os.getenv("SMTP_USER", "")
        content_types = os.getenv("UPLOAD_ALLOWED_TYPES")

        return cls(
            environment=environment,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            static_dir=Path(static_dir) if static_dir else None,
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            pricing=PricingConfig(
                currency=os.getenv("CURRENCY", "AED"),
                min_area=Decimal(os.getenv("MIN_AREA", "10")),
                max_area=Decimal(os.getenv("MAX_AREA", "10000")),
            ),
            leads=LeadsConfig(
                backend=leads_backend,
                capacity=int(os.getenv("LEADS_CAPACITY", "1000")),
            ),
            mail=MailConfig(
                smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
                smtp_port=int(os.getenv("SMTP_PORT", "587")),
                smtp_user=smtp_user,
                smtp_password=os.getenv("SMTP_PASSWORD", ""),
                from_name=os.getenv("FROM_NAME", "Breezeline Interiors"),
                from_email=os.getenv("FROM_EMAIL", smtp_user),
                admin_email=os.getenv("ADMIN_EMAIL", ""),
                timeout_seconds=int(os.getenv("SMTP_TIMEOUT", "20")),
            ),
            auth=AuthConfig(
                admin_username=os.getenv("ADMIN_USERNAME", "admin"),
                admin_password=os.getenv("ADMIN_PASSWORD", "changeme"),
                session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", "24")),
                bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
                redis_url=os.getenv("REDIS_URL") or None,
                cookie_secure=os.getenv("COOKIE_SECURE", "false").lower() == "true",
            ),
            uploads=UploadConfig(
                directory=Path(os.getenv("UPLOAD_DIR", "uploads")),
                max_bytes=int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024))),
                allowed_content_types=(
                    tuple(t.strip() for t in content_types.split(",") if t.strip())
                    if content_types
                    else UploadConfig.allowed_content_types
                ),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config
    _config = None
