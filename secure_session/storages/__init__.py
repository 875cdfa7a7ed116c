"""Session record backends.

Each backend stores opaque blobs keyed by session id and never transforms them.
"""
from .abstract import AbstractStore
from .memory import MemoryStore
from .file import FileStore
from .redis import RedisStore

__all__ = (
    "AbstractStore",
    "MemoryStore",
    "FileStore",
    "RedisStore",
)
