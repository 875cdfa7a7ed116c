"""
Session Key Rotation — re-encryption of stored session blobs under a new key.

Rotating the encryption key without migrating data makes every live session
unreadable (they would be discarded as empty). ``rotate_encryption_key``
re-encrypts the given records in place. Records already sealed with the new
key fail to decrypt with the old one; they are counted as errors and left
untouched, so a rerun never corrupts rotated records.

Security Note:
    Plaintext exists in memory only during re-encryption of each record.
    Never log plaintext, ciphertext or keys.
"""
import logging
from typing import Union
from collections.abc import Iterable

from .crypto import decrypt, encrypt
from .exceptions import DecryptionError
from .storages import AbstractStore

logger = logging.getLogger("navigator.session")


async def rotate_encryption_key(
    store: AbstractStore,
    session_ids: Iterable[str],
    old_key: Union[str, bytes],
    new_key: Union[str, bytes],
    cipher_backend: str = "aes-cbc",
) -> dict:
    """Re-encrypt the records of session_ids from old_key to new_key.

    Args:
        store: backend holding the blobs.
        session_ids: ids of the records to rotate.
        old_key: key the records are currently sealed with (including any
            client fingerprint suffix).
        new_key: replacement key.
        cipher_backend: cipher used for both keys.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped.

    Raises:
        BackendError: the store failed; records rotated so far stay rotated.
    """
    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}
    logger.info("Starting session key rotation (cipher=%s)", cipher_backend)

    for session_id in session_ids:
        stats["total"] += 1
        blob = await store.read(session_id)
        if not blob:
            stats["skipped"] += 1
            continue
        try:
            plaintext = decrypt(blob, old_key, cipher_backend)
        except DecryptionError as err:
            logger.error(
                "Error rotating session %s: %s", session_id[:8], err,
            )
            stats["errors"] += 1
            continue
        new_blob = encrypt(plaintext, new_key, cipher_backend)
        await store.write(session_id, new_blob.encode("ascii"))
        stats["rotated"] += 1

    logger.info("Session key rotation complete: %s", stats)
    return stats
