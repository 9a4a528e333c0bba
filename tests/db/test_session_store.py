# tests/db/test_session_store.py

import pytest
import redis.asyncio as redis
from unittest.mock import AsyncMock

from qr_attendance.config.config import settings
from qr_attendance.db.session_store import (
    InMemorySessionStore, RedisSessionStore, TEACHER_ID_KEY, create_session_store
)

TEST_REDIS_URL = "redis://localhost:6379/0"


@pytest.mark.asyncio
async def test_in_memory_store_round_trip():
    store = InMemorySessionStore()
    assert await store.get(TEACHER_ID_KEY) is None

    await store.set(TEACHER_ID_KEY, "T001")
    assert await store.get(TEACHER_ID_KEY) == "T001"

    await store.delete(TEACHER_ID_KEY)
    assert await store.get(TEACHER_ID_KEY) is None
    # Deleting a missing key is fine.
    await store.delete(TEACHER_ID_KEY)


@pytest.fixture
def redis_store():
    """A RedisSessionStore whose Redis connection is replaced by a mock."""
    pool = redis.ConnectionPool.from_url(TEST_REDIS_URL, decode_responses=True)
    store = RedisSessionStore(pool=pool, prefix="test")
    store._redis = AsyncMock()
    return store


@pytest.mark.asyncio
class TestRedisSessionStore:

    async def test_set_uses_prefixed_key(self, redis_store):
        await redis_store.set(TEACHER_ID_KEY, "T001")
        redis_store._redis.set.assert_awaited_once_with("test:teacher_id", "T001")

    async def test_get_returns_stored_string(self, redis_store):
        redis_store._redis.get.return_value = "T001"
        assert await redis_store.get(TEACHER_ID_KEY) == "T001"
        redis_store._redis.get.assert_awaited_once_with("test:teacher_id")

    async def test_get_missing_returns_none(self, redis_store):
        redis_store._redis.get.return_value = None
        assert await redis_store.get(TEACHER_ID_KEY) is None

    async def test_delete_uses_prefixed_key(self, redis_store):
        await redis_store.delete(TEACHER_ID_KEY)
        redis_store._redis.delete.assert_awaited_once_with("test:teacher_id")


def test_factory_defaults_to_in_memory(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_REDIS_URL", None)
    assert isinstance(create_session_store(), InMemorySessionStore)


def test_factory_uses_redis_when_configured(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_REDIS_URL", TEST_REDIS_URL)
    assert isinstance(create_session_store(), RedisSessionStore)


def test_factory_pool_decodes_responses(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_REDIS_URL", TEST_REDIS_URL)
    store = create_session_store()
    pool = store._redis.connection_pool
    assert pool.connection_kwargs["decode_responses"] is True
