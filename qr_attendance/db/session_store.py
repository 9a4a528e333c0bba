# qr_attendance/db/session_store.py

import logging
from typing import Dict, Optional

import redis.asyncio as redis

from ..config.config import settings

logger = logging.getLogger(__name__)

# Keys written after a successful teacher login
TEACHER_TOKEN_KEY = "teacher_token"
TEACHER_ID_KEY = "teacher_id"
TEACHER_ROLE_KEY = "teacher_role"
SESSION_KEYS = (TEACHER_TOKEN_KEY, TEACHER_ID_KEY, TEACHER_ROLE_KEY)


class InMemorySessionStore:
    """
    Process-local session store. Used when no Redis URL is configured and in tests.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisSessionStore:
    """
    Session store backed by Redis, so the login survives restarts of the
    scanner process. Keys are namespaced with a prefix. The pool must be
    created with decode_responses=True so reads come back as str.
    """

    def __init__(self, pool: redis.ConnectionPool, prefix: str = settings.SESSION_KEY_PREFIX):
        self._redis = redis.Redis(connection_pool=pool)
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        """Reads one session entry."""
        return await self._redis.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        """Writes one session entry. Session entries do not expire on their own."""
        await self._redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        """Removes one session entry."""
        await self._redis.delete(self._key(key))


def create_session_store():
    """
    Builds the store selected by SESSION_REDIS_URL: Redis when set, in-memory otherwise.
    """
    if settings.SESSION_REDIS_URL:
        pool = redis.ConnectionPool.from_url(settings.SESSION_REDIS_URL, decode_responses=True)
        logger.info("Using Redis session store.")
        return RedisSessionStore(pool=pool)
    logger.info("SESSION_REDIS_URL not set, using in-memory session store.")
    return InMemorySessionStore()
