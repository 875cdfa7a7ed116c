"""
Session Crypto Core — Key/IV derivation and payload encryption/decryption.

Every encryption draws a fresh random salt:
- Derivation: SHA-512(secret ++ salt) → key = D[0:32], iv = D[32:48]
- Cipher: AES-256-CBC with PKCS7 padding (default) or AES-256-GCM
- Blob: base64(salt 16B ++ cipher_bytes)

The blob layout is the persisted contract; offline tooling must honor it.

Security Note:
    Never log plaintext, secrets or derived material.
    The CBC backend provides confidentiality only, a tampered blob is
    detected only when it breaks the padding (or the payload decoding).
"""
import os
import base64
import binascii
import logging
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .conf import SALT_SIZE, CIPHER_BACKENDS
from .exceptions import ConfigurationError, DecryptionError

logger = logging.getLogger("navigator.session")

KEY_LENGTH = 32  # AES-256
IV_SIZE = 16
NONCE_SIZE = 12  # GCM nonce
TAG_SIZE = 16
BLOCK_SIZE = 128  # bits

Secret = Union[str, bytes]


def _secret_bytes(secret: Secret) -> bytes:
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not secret:
        raise ValueError("Encryption secret cannot be empty")
    return secret


def _check_backend(cipher_backend: str) -> None:
    if cipher_backend not in CIPHER_BACKENDS:
        raise ConfigurationError(f"Unsupported cipher backend: {cipher_backend}")


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key_iv(secret: Secret, salt: bytes) -> tuple[bytes, bytes]:
    """Derive a 32-byte key and a 16-byte IV from secret and salt.

    Args:
        secret: Caller-supplied secret.
        salt: Random salt stored as the blob prefix.

    Returns:
        Tuple of (key, iv).
    """
    digest = hashes.Hash(hashes.SHA512())
    digest.update(_secret_bytes(secret) + salt)
    salted = digest.finalize()
    return salted[:KEY_LENGTH], salted[KEY_LENGTH:KEY_LENGTH + IV_SIZE]


def client_fingerprint(value: Union[str, bytes, None]) -> str:
    """MD5 hex digest of a request-context value (e.g. the User-Agent).

    Appending it to the secret binds decryption to the creating client.
    """
    if value is None:
        value = b""
    elif isinstance(value, str):
        value = value.encode("utf-8")
    digest = hashes.Hash(hashes.MD5())
    digest.update(value)
    return digest.finalize().hex()


def cipher_available(cipher_backend: str = "aes-cbc") -> bool:
    """Return True if the installed crypto backend supports the cipher."""
    _check_backend(cipher_backend)
    key = b"\x00" * KEY_LENGTH
    if cipher_backend == "aesgcm":
        mode = modes.GCM(b"\x00" * NONCE_SIZE)
    else:
        mode = modes.CBC(b"\x00" * IV_SIZE)
    return default_backend().cipher_supported(algorithms.AES(key), mode)


# ---------------------------------------------------------------------------
# Cipher primitives
# ---------------------------------------------------------------------------

def _cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    padder = padding.PKCS7(BLOCK_SIZE).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def _cbc_decrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    try:
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as err:
        # wrong key, corrupted data or a truncated block
        raise DecryptionError("Cannot decrypt session data") from err


def _gcm_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    return AESGCM(key).encrypt(iv[:NONCE_SIZE], plaintext, None)


def _gcm_decrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
    try:
        return AESGCM(key).decrypt(iv[:NONCE_SIZE], data, None)
    except InvalidTag as err:
        raise DecryptionError("Cannot decrypt session data") from err


# ---------------------------------------------------------------------------
# Public codec
# ---------------------------------------------------------------------------

def encrypt(plaintext: bytes, secret: Secret, cipher_backend: str = "aes-cbc") -> str:
    """Encrypt plaintext under a key derived from secret and a fresh salt.

    Args:
        plaintext: Bytes to encrypt (may be empty).
        secret: Caller-supplied secret.
        cipher_backend: ``aes-cbc`` or ``aesgcm``.

    Returns:
        base64(salt ++ cipher_bytes) as ASCII text.
    """
    _check_backend(cipher_backend)
    salt = os.urandom(SALT_SIZE)
    key, iv = derive_key_iv(secret, salt)
    if cipher_backend == "aesgcm":
        ct = _gcm_encrypt(plaintext, key, iv)
    else:
        ct = _cbc_encrypt(plaintext, key, iv)
    return base64.b64encode(salt + ct).decode("ascii")


def decrypt(blob: Union[str, bytes], secret: Secret, cipher_backend: str = "aes-cbc") -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    Args:
        blob: base64 text (str or ASCII bytes).
        secret: The secret used at encryption time.
        cipher_backend: Backend used at encryption time.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptionError: If the blob is malformed, tampered or the secret
            does not match.
    """
    _check_backend(cipher_backend)
    try:
        data = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError) as err:
        raise DecryptionError("Session blob is not valid base64") from err
    _min = SALT_SIZE + TAG_SIZE if cipher_backend == "aesgcm" else SALT_SIZE
    if len(data) < _min:
        raise DecryptionError(
            f"Session blob too short: {len(data)} bytes (minimum {_min})"
        )
    salt = data[:SALT_SIZE]
    key, iv = derive_key_iv(secret, salt)
    if cipher_backend == "aesgcm":
        return _gcm_decrypt(data[SALT_SIZE:], key, iv)
    return _cbc_decrypt(data[SALT_SIZE:], key, iv)


class EncryptionCodec:
    """Binds a secret and a cipher backend for repeated use.

    The secret is kept for the codec lifetime and is never exposed
    through ``repr()`` or error messages.
    """

    __slots__ = ("_secret", "_cipher_backend")

    def __init__(self, secret: Secret, cipher_backend: str = "aes-cbc"):
        _check_backend(cipher_backend)
        self._secret = _secret_bytes(secret)
        self._cipher_backend = cipher_backend

    def __repr__(self) -> str:
        return f"<EncryptionCodec cipher={self._cipher_backend}>"

    @property
    def cipher_backend(self) -> str:
        return self._cipher_backend

    def encrypt(self, plaintext: bytes) -> str:
        return encrypt(plaintext, self._secret, self._cipher_backend)

    def decrypt(self, blob: Union[str, bytes]) -> bytes:
        return decrypt(blob, self._secret, self._cipher_backend)
