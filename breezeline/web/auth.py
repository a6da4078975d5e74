"""Admin authentication for the Breezeline API.

One admin account seeded from the environment, bcrypt password hashes, and
session tokens kept in Redis or, when Redis is not configured or unreachable,
in process memory.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from breezeline.config import AuthConfig
from breezeline.db.connection import SessionFactory
from breezeline.db.models import AdminAccountModel
from breezeline.errors import AuthError, StorageFault, ValidationError

logger = logging.getLogger(__name__)

# bcrypt ignores (or rejects) anything past 72 bytes
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class AdminContext:
    """Authenticated caller, passed explicitly into gated handlers."""

    admin_id: int
    username: str
    token: str


def hash_password(password: str, rounds: int = 12) -> str:
    """Return a salted bcrypt hash of the password."""
    encoded = password.encode()
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be 1 to {MAX_PASSWORD_BYTES} bytes long", field="password")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison. Malformed input never matches."""
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode())
    except ValueError:
        return False


# ============================================================================
# Session storage
# ============================================================================


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(ABC):
    """Token -> session data with a fixed time to live."""

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds

    def _new_session(self, admin_id: int, username: str) -> tuple[str, dict]:
        now = _now()
        return secrets.token_urlsafe(32), {
            "admin_id": admin_id,
            "username": username,
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(seconds=self.ttl_seconds)).isoformat(),
        }

    @staticmethod
    def _expired(data: dict) -> bool:
        try:
            return _now() > datetime.fromisoformat(data["expires_at"])
        except (KeyError, TypeError, ValueError):
            return True

    @abstractmethod
    async def create(self, admin_id: int, username: str) -> str:
        ...

    @abstractmethod
    async def get(self, token: str) -> dict | None:
        """Session data if the token is known and not expired."""

    @abstractmethod
    async def destroy(self, token: str) -> None:
        """Remove the session. Unknown tokens are ignored."""


class MemorySessionStore(SessionStore):
    """In-process session table."""

    def __init__(self, ttl_seconds: int):
        super().__init__(ttl_seconds)
        self._sessions: dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def create(self, admin_id: int, username: str) -> str:
        token, data = self._new_session(admin_id, username)
        async with self._lock:
            self._purge_expired()
            self._sessions[token] = data
        return token

    async def get(self, token: str) -> dict | None:
        async with self._lock:
            data = self._sessions.get(token)
            if data is None:
                return None
            if self._expired(data):
                del self._sessions[token]
                return None
            return data

    async def destroy(self, token: str) -> None:
        async with self._lock:
            self._sessions.pop(token, None)

    def _purge_expired(self) -> None:
        for token in [t for t, data in self._sessions.items() if self._expired(data)]:
            del self._sessions[token]

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Sessions in Redis with TTL, falling back to memory when Redis is down."""

    def __init__(self, redis_url: str, ttl_seconds: int):
        super().__init__(ttl_seconds)
        self.client = aioredis.from_url(redis_url, decode_responses=True)
        self.fallback = MemorySessionStore(ttl_seconds)

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    async def create(self, admin_id: int, username: str) -> str:
        token, data = self._new_session(admin_id, username)
        try:
            await self.client.setex(self._key(token), self.ttl_seconds, json.dumps(data))
        except (RedisConnectionError, RedisTimeoutError):
            logger.warning("Redis unavailable, using in-memory session storage")
            return await self.fallback.create(admin_id, username)
        return token

    async def get(self, token: str) -> dict | None:
        try:
            raw = await self.client.get(self._key(token))
        except (RedisConnectionError, RedisTimeoutError):
            return await self.fallback.get(token)

        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = None
        if data is None or self._expired(data):
            try:
                await self.client.delete(self._key(token))
            except (RedisConnectionError, RedisTimeoutError):
                logger.warning("Redis unavailable, expired session left to its TTL")
            return None
        return data

    async def destroy(self, token: str) -> None:
        try:
            await self.client.delete(self._key(token))
        except (RedisConnectionError, RedisTimeoutError):
            pass
        await self.fallback.destroy(token)


def build_session_store(config: AuthConfig) -> SessionStore:
    if config.redis_url:
        return RedisSessionStore(config.redis_url, config.session_ttl_seconds)
    return MemorySessionStore(config.session_ttl_seconds)


# ============================================================================
# Admin directory
# ============================================================================


class AdminDirectory:
    """Admin credential checks and session issuance."""

    def __init__(self, session_factory: SessionFactory, sessions: SessionStore, config: AuthConfig):
        self._session_factory = session_factory
        self.sessions = sessions
        self.config = config
        self._dummy_hash: str | None = None

    def _timing_hash(self) -> str:
        # Checked against when the username is unknown so both failures cost one bcrypt run
        if self._dummy_hash is None:
            self._dummy_hash = hash_password(secrets.token_hex(16), rounds=self.config.bcrypt_rounds)
        return self._dummy_hash

    async def bootstrap(self) -> bool:
        """Seed the admin account if none exists. Returns True when one was created."""
        try:
            async with self._session_factory() as session:
                count = (await session.execute(select(func.count(AdminAccountModel.id)))).scalar_one()
                if count:
                    return False

                if self.config.admin_password == "changeme":
                    logger.warning(
                        "Using default admin password 'changeme'. Set ADMIN_PASSWORD environment variable!"
                    )
                password_hash = await asyncio.to_thread(
                    hash_password, self.config.admin_password, self.config.bcrypt_rounds
                )
                session.add(
                    AdminAccountModel(username=self.config.admin_username, password_hash=password_hash)
                )
        except SQLAlchemyError as e:
            raise StorageFault("Failed to bootstrap admin account") from e

        logger.info("Created admin account '%s'", self.config.admin_username)
        return True

    async def _find(self, username: str) -> AdminAccountModel | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AdminAccountModel).where(AdminAccountModel.username == username)
                )
                return result.scalars().first()
        except SQLAlchemyError as e:
            raise StorageFault("Failed to look up admin account") from e

    async def login(self, username: str, password: str) -> AdminContext:
        """Check credentials and open a session.

        Raises:
            AuthError: If the username is unknown or the password does not match
        """
        account = await self._find(username)
        password_hash = account.password_hash if account else self._timing_hash()
        matches = await asyncio.to_thread(verify_password, password, password_hash)

        if account is None or not matches:
            logger.info("Failed admin login for '%s'", username)
            raise AuthError.invalid_credentials()

        token = await self.sessions.create(account.id, account.username)
        logger.info("Admin '%s' logged in", account.username)
        return AdminContext(admin_id=account.id, username=account.username, token=token)

    async def logout(self, token: str | None) -> None:
        if token:
            await self.sessions.destroy(token)

    async def authenticate(self, token: str | None) -> AdminContext | None:
        """Resolve a session token to its admin, or None."""
        if not token:
            return None
        data = await self.sessions.get(token)
        if not data:
            return None
        return AdminContext(admin_id=data["admin_id"], username=data["username"], token=token)
