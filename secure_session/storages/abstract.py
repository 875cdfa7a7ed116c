"""Base class for Session Record storages."""
import abc
from typing import Optional

from ..conf import SESSION_LIFETIME


class AbstractStore(metaclass=abc.ABCMeta):
    """Abstract Session Record Store.

    ``read`` returns exactly what was last written for a session id, or
    None when the record does not exist or has expired. Durability, locking
    and expiry are left to each backend.
    """

    def __init__(self, ttl: Optional[int] = None, **kwargs) -> None:
        self._ttl: int = ttl or SESSION_LIFETIME * 60

    @property
    def ttl(self) -> int:
        return self._ttl

    @abc.abstractmethod
    async def read(self, session_id: str) -> Optional[bytes]:
        """Return the raw blob stored for session_id, None if absent."""

    @abc.abstractmethod
    async def write(self, session_id: str, blob: bytes) -> bool:
        """Persist blob verbatim, replacing any prior value."""

    @abc.abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Remove the record for session_id, ignoring missing ones."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} ttl={self._ttl}>"
