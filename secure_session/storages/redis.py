"""Redis-backed session record store.

Works with any async client exposing ``get``, ``setex`` and ``delete``
(e.g. ``redis.asyncio.Redis``); the client is owned by the caller.
"""
from typing import Any, Optional

from ..conf import SESSION_REDIS_PREFIX
from ..exceptions import BackendError
from .abstract import AbstractStore


class RedisStore(AbstractStore):
    """Stores session blobs in Redis with a per-record TTL."""

    def __init__(
        self,
        redis: Any,
        ttl: Optional[int] = None,
        prefix: str = SESSION_REDIS_PREFIX,
        **kwargs
    ):
        super().__init__(ttl=ttl, **kwargs)
        self._redis = redis
        self._prefix = prefix

    def _redis_key(self, session_id: str) -> str:
        """Build Redis key."""
        return f"{self._prefix}{session_id}"

    async def read(self, session_id: str) -> Optional[bytes]:
        try:
            blob = await self._redis.get(self._redis_key(session_id))
        except Exception as err:
            raise BackendError(f"Cannot read session from Redis: {err}") from err
        if isinstance(blob, str):
            blob = blob.encode("utf-8")
        return blob

    async def write(self, session_id: str, blob: bytes) -> bool:
        try:
            await self._redis.setex(self._redis_key(session_id), self._ttl, blob)
        except Exception as err:
            raise BackendError(f"Cannot write session to Redis: {err}") from err
        return True

    async def destroy(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._redis_key(session_id))
        except Exception as err:
            raise BackendError(f"Cannot remove session from Redis: {err}") from err
