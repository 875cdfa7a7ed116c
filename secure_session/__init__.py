"""Secure Session — encrypted, namespaced session state.

Security Note (Threat Model):
    Payloads are decrypted in process memory for the lifetime of a request.
    The default AES-CBC codec gives confidentiality only; a tampered record
    is discarded when it fails to decrypt or decode, and is otherwise
    indistinguishable from valid data. Use ``cipher_backend="aesgcm"`` for
    integrity-checked records.
"""
from .version import __version__
from .conf import DEFAULT_NAMESPACE, SessionConfig, generate_encryption_key
from .exceptions import (
    SessionError,
    ConfigurationError,
    DecryptionError,
    SerializationError,
    BackendError,
    InvalidSessionIdError,
)
from .crypto import EncryptionCodec, client_fingerprint
from .data import SessionData, SessionStatus
from .namespace import NamespacedAccessor
from .handler import EncryptedSessionHandler
from .storages import AbstractStore, MemoryStore, FileStore, RedisStore
from .rotation import rotate_encryption_key

__all__ = [
    "__version__",
    "DEFAULT_NAMESPACE",
    "SessionConfig",
    "generate_encryption_key",
    "SessionError",
    "ConfigurationError",
    "DecryptionError",
    "SerializationError",
    "BackendError",
    "InvalidSessionIdError",
    "EncryptionCodec",
    "client_fingerprint",
    "SessionData",
    "SessionStatus",
    "NamespacedAccessor",
    "EncryptedSessionHandler",
    "AbstractStore",
    "MemoryStore",
    "FileStore",
    "RedisStore",
    "rotate_encryption_key",
]
