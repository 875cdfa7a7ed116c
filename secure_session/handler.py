"""
EncryptedSessionHandler — decrypts session records on read, encrypts on write.

Provides the public API between the host and the session backend:
- ``load(session_id)`` — fetch and decrypt a record into a ``SessionData``
- ``read(session_id)`` / ``write(session_id, payload)`` — raw payload access
- ``save(session)`` / ``destroy(session_id)``
- ``accessor(payload, namespace)`` — namespaced view over a payload

A record that cannot be decrypted or decoded is discarded: the session
starts empty and the failure is logged and counted. Backend errors are
propagated to the caller.

Security Note:
    Never log secrets, derived keys or payloads. Only log truncated
    session ids, sizes and outcomes.
"""
import logging
from typing import Any, Optional, Union

from .conf import DEFAULT_NAMESPACE, SessionConfig
from .crypto import EncryptionCodec, cipher_available
from .data import SessionData, SessionStatus
from .exceptions import ConfigurationError, DecryptionError, SerializationError
from .namespace import NamespacedAccessor
from .serializers import get_serializer
from .storages import AbstractStore, FileStore, MemoryStore

logger = logging.getLogger("navigator.session")


def _short(session_id: str) -> str:
    return f"{session_id[:8]}..." if len(session_id) > 8 else session_id


class EncryptedSessionHandler:
    """Session handler that encrypts payloads at rest.

    Args:
        store: backend holding the opaque blobs.
        encryption_key: secret for the codec; when None, payloads are
            stored as plain serialized bytes.
        fingerprint: request-context value appended to the key (see
            ``crypto.client_fingerprint``); a different fingerprint on
            read is a decrypt failure.
        cipher_backend: ``aes-cbc`` or ``aesgcm``.
        serializer: ``json`` or ``pickle``.
        namespace: default namespace for accessors.
        require_crypto: fail at construction if the cipher is unavailable.
    """

    def __init__(
        self,
        store: AbstractStore,
        encryption_key: Optional[Union[str, bytes]] = None,
        *,
        fingerprint: Optional[str] = None,
        cipher_backend: str = "aes-cbc",
        serializer: str = "json",
        namespace: str = DEFAULT_NAMESPACE,
        require_crypto: bool = True,
    ):
        self._store = store
        self._serializer = get_serializer(serializer)
        self._namespace = namespace
        self._codec: Optional[EncryptionCodec] = None
        self.decrypt_failures: int = 0
        if encryption_key is not None:
            if not encryption_key:
                raise ConfigurationError("Encryption key cannot be empty")
            if require_crypto and not cipher_available(cipher_backend):
                raise ConfigurationError(
                    f"Cipher {cipher_backend} needs to be available to encrypt session data."
                )
            if fingerprint:
                if isinstance(encryption_key, bytes):
                    encryption_key += fingerprint.encode("utf-8")
                else:
                    encryption_key += fingerprint
            self._codec = EncryptionCodec(encryption_key, cipher_backend)
        logger.debug(
            "Session handler ready: store=%r encrypted=%s serializer=%s",
            store, self.encrypted, self._serializer.name,
        )

    @classmethod
    def from_config(
        cls,
        config: SessionConfig,
        store: Optional[AbstractStore] = None,
        fingerprint: Optional[str] = None,
    ) -> "EncryptedSessionHandler":
        """Build a handler (and its store, when not given) from a SessionConfig."""
        if store is None:
            if config.save_path:
                store = FileStore(config.save_path, ttl=config.ttl)
            else:
                store = MemoryStore(max_sessions=config.max_sessions, ttl=config.ttl)
        return cls(
            store,
            config.encryption_key,
            fingerprint=fingerprint if config.bind_client else None,
            cipher_backend=config.cipher_backend,
            serializer=config.serializer,
            namespace=config.namespace,
            require_crypto=config.require_crypto,
        )

    def __repr__(self) -> str:
        return f"<EncryptedSessionHandler store={self._store!r} encrypted={self.encrypted}>"

    @property
    def store(self) -> AbstractStore:
        return self._store

    @property
    def encrypted(self) -> bool:
        return self._codec is not None

    # ------------------------------------------------------------------
    # Payload <-> blob
    # ------------------------------------------------------------------

    def encode(self, payload: dict) -> bytes:
        data = self._serializer.dumps(payload)
        if self._codec is None:
            return data
        return self._codec.encrypt(data).encode("ascii")

    def decode(self, blob: bytes) -> dict:
        """Convert a stored blob back into a payload.

        Raises:
            DecryptionError: blob cannot be decrypted.
            SerializationError: decrypted bytes are not a payload.
        """
        data = blob if self._codec is None else self._codec.decrypt(blob)
        return self._serializer.loads(data)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self, session_id: str) -> SessionData:
        """Read and decrypt a session record.

        Returns:
            SessionData with status NEW (no record), LOADED, or UNREADABLE
            (record discarded, empty payload).

        Raises:
            BackendError: the store could not be read.
        """
        blob = await self._store.read(session_id)
        if not blob:
            return SessionData(session_id, status=SessionStatus.NEW, namespace=self._namespace)
        try:
            payload = self.decode(blob)
        except (DecryptionError, SerializationError) as err:
            self.decrypt_failures += 1
            logger.warning(
                "Discarding unreadable session %s: %s", _short(session_id), err,
            )
            return SessionData(
                session_id, status=SessionStatus.UNREADABLE, namespace=self._namespace
            )
        logger.debug("Session loaded: %s", _short(session_id))
        return SessionData(
            session_id, payload, status=SessionStatus.LOADED, namespace=self._namespace
        )

    async def read(self, session_id: str) -> dict:
        """Return the decrypted payload of a session, empty if none is usable."""
        session = await self.load(session_id)
        return session.session_data()

    async def write(self, session_id: str, payload: dict) -> bool:
        """Serialize, encrypt and persist a payload.

        Raises:
            SerializationError: payload contains unsupported values.
            BackendError: the store could not be written.
        """
        blob = self.encode(payload)
        result = await self._store.write(session_id, blob)
        logger.debug("Session saved: %s (%d bytes)", _short(session_id), len(blob))
        return result

    async def save(self, session: SessionData) -> bool:
        return await self.write(session.session_id, session.session_data())

    async def destroy(self, session_id: str) -> None:
        await self._store.destroy(session_id)
        logger.debug("Session destroyed: %s", _short(session_id))

    def accessor(self, payload: Any, namespace: Optional[str] = None) -> NamespacedAccessor:
        """Return an accessor bound to a namespace of payload.

        ``payload`` may be a SessionData or a plain payload dict.
        """
        if isinstance(payload, SessionData):
            payload = payload.session_data()
        return NamespacedAccessor(payload, namespace or self._namespace)
