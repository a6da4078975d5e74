"""Unit tests for admin authentication: hashing, sessions and the directory."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from breezeline.config import AuthConfig
from breezeline.errors import AuthError, ValidationError
from breezeline.web.auth import (
    AdminDirectory,
    MemorySessionStore,
    RedisSessionStore,
    build_session_store,
    hash_password,
    verify_password,
)

AUTH = AuthConfig(admin_username="admin", admin_password="correct-horse", bcrypt_rounds=4)


class TestPasswords:
    """Test bcrypt hashing."""

    def test_hash_and_verify(self):
        password_hash = hash_password("correct-horse", rounds=4)

        assert password_hash != "correct-horse"
        assert verify_password("correct-horse", password_hash) is True
        assert verify_password("wrong", password_hash) is False

    def test_hashes_are_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    @pytest.mark.parametrize("password", ["", "x" * 73])
    def test_rejects_unhashable_passwords(self, password):
        with pytest.raises(ValidationError):
            hash_password(password, rounds=4)

    def test_verify_never_raises(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
        assert verify_password("x" * 100, hash_password("x" * 72, rounds=4)) is False


class TestMemorySessionStore:
    """Test in-process sessions."""

    @pytest.mark.asyncio
    async def test_create_get_destroy(self):
        store = MemorySessionStore(ttl_seconds=60)

        token = await store.create(1, "admin")
        data = await store.get(token)

        assert data["admin_id"] == 1
        assert data["username"] == "admin"

        await store.destroy(token)
        assert await store.get(token) is None
        # Idempotent
        await store.destroy(token)

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self):
        store = MemorySessionStore(ttl_seconds=60)
        tokens = {await store.create(1, "admin") for _ in range(20)}
        assert len(tokens) == 20

    @pytest.mark.asyncio
    async def test_expired_session_is_rejected(self):
        store = MemorySessionStore(ttl_seconds=-1)

        token = await store.create(1, "admin")

        assert await store.get(token) is None
        assert len(store) == 0


class TestRedisSessionStore:
    """Test Redis sessions and the memory fallback."""

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_when_redis_is_down(self):
        store = RedisSessionStore("redis://localhost:6379/0", ttl_seconds=60)
        store.client = AsyncMock()
        store.client.setex.side_effect = RedisConnectionError("down")
        store.client.get.side_effect = RedisConnectionError("down")
        store.client.delete.side_effect = RedisConnectionError("down")

        token = await store.create(1, "admin")

        assert (await store.get(token))["username"] == "admin"
        await store.destroy(token)
        assert await store.get(token) is None

    @pytest.mark.asyncio
    async def test_uses_setex_with_ttl(self):
        store = RedisSessionStore("redis://localhost:6379/0", ttl_seconds=60)
        store.client = AsyncMock()

        token = await store.create(1, "admin")

        key, ttl, _ = store.client.setex.call_args.args
        assert key == f"session:{token}"
        assert ttl == 60

    @pytest.mark.asyncio
    async def test_corrupt_session_with_redis_failing_on_delete(self):
        store = RedisSessionStore("redis://localhost:6379/0", ttl_seconds=60)
        store.client = AsyncMock()
        store.client.get.return_value = "{not json"
        store.client.delete.side_effect = RedisTimeoutError("slow")

        assert await store.get("some-token") is None
        store.client.delete.assert_awaited_once_with("session:some-token")

    def test_build_session_store(self):
        assert isinstance(build_session_store(AuthConfig()), MemorySessionStore)
        assert isinstance(
            build_session_store(AuthConfig(redis_url="redis://localhost:6379/0")), RedisSessionStore
        )


class TestAdminDirectory:
    """Test login, logout and session resolution."""

    @pytest.fixture
    def directory(self, session_factory) -> AdminDirectory:
        return AdminDirectory(session_factory, MemorySessionStore(3600), AUTH)

    @pytest.mark.asyncio
    async def test_bootstrap_seeds_once(self, directory):
        assert await directory.bootstrap() is True
        assert await directory.bootstrap() is False

    @pytest.mark.asyncio
    async def test_login_and_authenticate(self, directory):
        await directory.bootstrap()

        admin = await directory.login("admin", "correct-horse")
        resolved = await directory.authenticate(admin.token)

        assert resolved == admin
        assert resolved.username == "admin"

    @pytest.mark.asyncio
    async def test_wrong_password(self, directory):
        await directory.bootstrap()

        with pytest.raises(AuthError) as exc_info:
            await directory.login("admin", "wrong")

        assert exc_info.value.message == "Invalid username or password"
        assert len(directory.sessions) == 0

    @pytest.mark.asyncio
    async def test_unknown_user_takes_the_same_bcrypt_path(self, directory):
        await directory.bootstrap()

        with patch("breezeline.web.auth.verify_password", wraps=verify_password) as spy:
            with pytest.raises(AuthError) as unknown:
                await directory.login("nobody", "correct-horse")
            with pytest.raises(AuthError) as wrong:
                await directory.login("admin", "wrong")

        assert spy.call_count == 2
        assert unknown.value.message == wrong.value.message
        # Unknown user is still checked against a real bcrypt hash
        dummy_hash = spy.call_args_list[0].args[1]
        assert dummy_hash.startswith("$2")

    @pytest.mark.asyncio
    async def test_logout_invalidates_session(self, directory):
        await directory.bootstrap()
        admin = await directory.login("admin", "correct-horse")

        await directory.logout(admin.token)

        assert await directory.authenticate(admin.token) is None
        # Idempotent, including without a token
        await directory.logout(admin.token)
        await directory.logout(None)

    @pytest.mark.asyncio
    async def test_authenticate_rejects_unknown_tokens(self, directory):
        assert await directory.authenticate(None) is None
        assert await directory.authenticate("") is None
        assert await directory.authenticate("forged-token") is None
