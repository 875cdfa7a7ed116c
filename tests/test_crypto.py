"""
Tests for the session encryption codec.

Tests cover:
- Key/IV derivation
- Round-trip for both cipher backends
- Salt randomness and blob layout
- Tampering, wrong keys and malformed blobs
"""
import base64
import hashlib
import pytest

from secure_session.crypto import (
    EncryptionCodec,
    cipher_available,
    client_fingerprint,
    decrypt,
    derive_key_iv,
    encrypt,
)
from secure_session.exceptions import ConfigurationError, DecryptionError


BACKENDS = ("aes-cbc", "aesgcm")


def flip_byte(blob: str, position: int) -> str:
    """Flip one byte of the decoded blob and re-encode it."""
    raw = bytearray(base64.b64decode(blob))
    raw[position] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


# --- Test Key Derivation ---

class TestKeyDerivation:
    """Tests for derive_key_iv."""

    def test_derivation_matches_sha512_split(self):
        """Test key and iv are the first 48 bytes of SHA-512(secret ++ salt)."""
        salt = b"\x01" * 16
        key, iv = derive_key_iv("s3cret", salt)
        digest = hashlib.sha512(b"s3cret" + salt).digest()
        assert key == digest[:32]
        assert iv == digest[32:48]

    def test_derivation_depends_on_salt(self):
        """Test different salts give different keys."""
        key1, _ = derive_key_iv(b"s3cret", b"\x00" * 16)
        key2, _ = derive_key_iv(b"s3cret", b"\x01" * 16)
        assert key1 != key2

    def test_empty_secret_rejected(self):
        """Test an empty secret is refused."""
        with pytest.raises(ValueError):
            derive_key_iv("", b"\x00" * 16)


# --- Test Encryption Round-trip ---

class TestRoundTrip:
    """Tests for encrypt/decrypt round-trips."""

    @pytest.mark.parametrize("backend", BACKENDS)
    @pytest.mark.parametrize("plaintext", [b"", b"a", b"x" * 16, b"\x00\xff" * 100])
    def test_roundtrip(self, backend, plaintext):
        """Test decrypt(encrypt(P, K), K) == P."""
        blob = encrypt(plaintext, "s3cret", backend)
        assert decrypt(blob, "s3cret", backend) == plaintext

    def test_blob_is_printable_base64(self):
        """Test the blob is base64 text."""
        blob = encrypt(b"payload", "s3cret")
        assert isinstance(blob, str)
        assert base64.b64encode(base64.b64decode(blob)).decode("ascii") == blob

    def test_blob_layout(self):
        """Test blob is salt(16) followed by block-aligned ciphertext."""
        raw = base64.b64decode(encrypt(b"x" * 20, "s3cret"))
        assert len(raw) == 16 + 32

    def test_secret_not_embedded(self):
        """Test the secret never appears in the blob."""
        raw = base64.b64decode(encrypt(b"payload", "s3cret"))
        assert b"s3cret" not in raw

    def test_decrypt_accepts_bytes(self):
        """Test decrypt takes the ASCII bytes form of the blob."""
        blob = encrypt(b"payload", b"s3cret").encode("ascii")
        assert decrypt(blob, b"s3cret") == b"payload"

    def test_known_blob(self):
        """Test a blob built by hand with the documented layout decrypts."""
        from cryptography.hazmat.primitives import padding
        from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
        salt = b"0123456789abcdef"
        digest = hashlib.sha512(b"s3cret" + salt).digest()
        padder = padding.PKCS7(128).padder()
        padded = padder.update(b"hello") + padder.finalize()
        encryptor = Cipher(algorithms.AES(digest[:32]), modes.CBC(digest[32:48])).encryptor()
        blob = base64.b64encode(salt + encryptor.update(padded) + encryptor.finalize())
        assert decrypt(blob, "s3cret") == b"hello"


# --- Test Non-determinism ---

class TestSaltRandomness:
    """Tests for per-call salts."""

    @pytest.mark.parametrize("backend", BACKENDS)
    def test_same_input_different_blobs(self, backend):
        """Test two encryptions of the same data differ."""
        assert encrypt(b"same", "s3cret", backend) != encrypt(b"same", "s3cret", backend)

    def test_salts_differ(self):
        """Test the embedded salts differ."""
        salt1 = base64.b64decode(encrypt(b"same", "s3cret"))[:16]
        salt2 = base64.b64decode(encrypt(b"same", "s3cret"))[:16]
        assert salt1 != salt2


# --- Test Failures ---

class TestDecryptFailures:
    """Tests for typed decryption failures."""

    @pytest.mark.parametrize("backend", BACKENDS)
    def test_wrong_key(self, backend):
        """Test a different key never returns the plaintext."""
        blob = encrypt(b"top secret payload", "key-one", backend)
        try:
            result = decrypt(blob, "key-two", backend)
        except DecryptionError:
            return
        assert result != b"top secret payload"

    @pytest.mark.parametrize("backend", BACKENDS)
    def test_tampered_ciphertext(self, backend):
        """Test flipping any ciphertext byte never yields the original."""
        plaintext = b"a" * 40
        blob = encrypt(plaintext, "s3cret", backend)
        size = len(base64.b64decode(blob))
        for position in range(16, size):
            try:
                result = decrypt(flip_byte(blob, position), "s3cret", backend)
            except DecryptionError:
                continue
            assert result != plaintext

    def test_tampered_salt(self):
        """Test flipping a salt byte never yields the original."""
        blob = encrypt(b"payload", "s3cret")
        try:
            result = decrypt(flip_byte(blob, 0), "s3cret")
        except DecryptionError:
            return
        assert result != b"payload"

    def test_gcm_detects_tampering(self):
        """Test the authenticated backend rejects any modification."""
        blob = encrypt(b"payload", "s3cret", "aesgcm")
        with pytest.raises(DecryptionError):
            decrypt(flip_byte(blob, 20), "s3cret", "aesgcm")

    def test_short_blob(self):
        """Test a blob shorter than the salt is malformed."""
        blob = base64.b64encode(b"short").decode("ascii")
        with pytest.raises(DecryptionError):
            decrypt(blob, "s3cret")

    def test_salt_only_blob(self):
        """Test a blob without ciphertext fails on padding."""
        blob = base64.b64encode(b"\x00" * 16).decode("ascii")
        with pytest.raises(DecryptionError):
            decrypt(blob, "s3cret")

    def test_unaligned_ciphertext(self):
        """Test a truncated ciphertext fails cleanly."""
        raw = base64.b64decode(encrypt(b"x" * 40, "s3cret"))
        blob = base64.b64encode(raw[:-3])
        with pytest.raises(DecryptionError):
            decrypt(blob, "s3cret")

    def test_not_base64(self):
        """Test garbage input is a decrypt failure."""
        with pytest.raises(DecryptionError):
            decrypt("not-valid-data!!!", "s3cret")

    def test_unknown_backend(self):
        """Test unknown cipher names are configuration errors."""
        with pytest.raises(ConfigurationError):
            encrypt(b"x", "s3cret", "rot13")


# --- Test Codec and helpers ---

class TestEncryptionCodec:
    """Tests for the EncryptionCodec wrapper."""

    def test_codec_roundtrip(self):
        codec = EncryptionCodec("s3cret")
        assert codec.decrypt(codec.encrypt(b"payload")) == b"payload"

    def test_codec_interoperates_with_functions(self):
        """Test the codec uses the same blob format as encrypt()."""
        codec = EncryptionCodec("s3cret", "aesgcm")
        assert decrypt(codec.encrypt(b"payload"), "s3cret", "aesgcm") == b"payload"

    def test_repr_hides_secret(self):
        codec = EncryptionCodec("s3cret")
        assert "s3cret" not in repr(codec)
        assert "aes-cbc" in repr(codec)

    def test_cipher_available(self):
        assert cipher_available("aes-cbc") is True
        assert cipher_available("aesgcm") is True

    def test_client_fingerprint(self):
        """Test fingerprint is the md5 hex digest of the value."""
        ua = "Mozilla/5.0"
        assert client_fingerprint(ua) == hashlib.md5(ua.encode()).hexdigest()
        assert client_fingerprint(None) == hashlib.md5(b"").hexdigest()
