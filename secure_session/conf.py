"""
Session Configuration — defaults and validated settings.

Reads settings from environment variables:
    SESSION_ENCRYPTION_KEY = <secret string>  (optional, disables encryption if unset)
    SESSION_NAMESPACE = <namespace label>
    SESSION_CIPHER_BACKEND = aes-cbc | aesgcm
    SESSION_SERIALIZER = json | pickle
    SESSION_SAVE_PATH = <directory for file-backed sessions>
    SESSION_LIFETIME = <minutes>

Security Note:
    Never log key material. Only log backend names and namespaces.
"""
import os
import base64
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("navigator.session")

DEFAULT_NAMESPACE = "navigator"
SESSION_LIFETIME = 24  # minutes
SESSION_MAX_ITEMS = 10000
SESSION_FILE_PREFIX = "sess_"
SESSION_REDIS_PREFIX = "session:"

SALT_SIZE = 16
CIPHER_BACKENDS = ("aes-cbc", "aesgcm")
SERIALIZERS = ("json", "pickle")


def generate_encryption_key() -> str:
    """Generate a random 32-byte secret and return it as a base64 string.

    This is a utility for operators to generate new keys.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class SessionConfig(BaseModel):
    """Validated session configuration."""

    encryption_key: Optional[str] = Field(default=None, repr=False)
    namespace: str = Field(default=DEFAULT_NAMESPACE, min_length=1)
    cipher_backend: str = Field(default="aes-cbc")
    serializer: str = Field(default="json")
    save_path: Optional[str] = None
    lifetime: int = Field(default=SESSION_LIFETIME, ge=1)
    max_sessions: int = Field(default=SESSION_MAX_ITEMS, ge=1)
    bind_client: bool = True
    require_crypto: bool = True

    @field_validator("encryption_key")
    @classmethod
    def validate_key(cls, v: Optional[str]) -> Optional[str]:
        """An empty key is a mistake, not a way to disable encryption."""
        if v is not None and not v:
            raise ValueError("encryption_key cannot be empty")
        return v

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @field_validator("serializer")
    @classmethod
    def validate_serializer(cls, v: str) -> str:
        """Validate serializer is supported."""
        v = v.lower()
        if v not in SERIALIZERS:
            raise ValueError(f"Unsupported serializer: {v}")
        return v

    @property
    def ttl(self) -> int:
        """Session lifetime in seconds."""
        return self.lifetime * 60

    @property
    def encrypted(self) -> bool:
        return self.encryption_key is not None

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create SessionConfig by loading values from environment.

        Returns:
            Populated SessionConfig instance.
        """
        config = cls(
            encryption_key=os.environ.get("SESSION_ENCRYPTION_KEY") or None,
            namespace=os.environ.get("SESSION_NAMESPACE", DEFAULT_NAMESPACE),
            cipher_backend=os.environ.get("SESSION_CIPHER_BACKEND", "aes-cbc"),
            serializer=os.environ.get("SESSION_SERIALIZER", "json"),
            save_path=os.environ.get("SESSION_SAVE_PATH") or None,
            lifetime=int(os.environ.get("SESSION_LIFETIME", SESSION_LIFETIME)),
        )
        logger.debug(
            "Session config loaded: namespace=%s cipher=%s encrypted=%s",
            config.namespace, config.cipher_backend, config.encrypted,
        )
        return config
