"""In-memory session record store."""
from typing import Optional

from cachetools import TTLCache

from ..conf import SESSION_MAX_ITEMS
from .abstract import AbstractStore


class MemoryStore(AbstractStore):
    """In-memory store using a cachetools TTLCache.

    Suitable for single-process deployments, development and tests.
    """

    def __init__(self, max_sessions: int = SESSION_MAX_ITEMS, ttl: Optional[int] = None, **kwargs):
        super().__init__(ttl=ttl, **kwargs)
        self._cache: TTLCache = TTLCache(maxsize=max_sessions, ttl=self._ttl)

    def __len__(self) -> int:
        return len(self._cache)

    async def read(self, session_id: str) -> Optional[bytes]:
        return self._cache.get(session_id)

    async def write(self, session_id: str, blob: bytes) -> bool:
        self._cache[session_id] = blob
        return True

    async def destroy(self, session_id: str) -> None:
        self._cache.pop(session_id, None)
