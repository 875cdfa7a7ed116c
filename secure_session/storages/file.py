"""File-backed session record store.

One ``sess_<id>`` file per session under ``save_path``; records older than
the store ttl read as absent and are removed. ``purge_expired()`` sweeps
the whole directory.
"""
import os
import re
import time
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from ..conf import SESSION_FILE_PREFIX
from ..exceptions import BackendError, ConfigurationError, InvalidSessionIdError
from .abstract import AbstractStore

logger = logging.getLogger("navigator.session")

_SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_,-]+")


class FileStore(AbstractStore):
    """Stores each session blob in its own file.

    Blocking file I/O runs in a worker thread.
    """

    def __init__(self, save_path: Union[str, Path], ttl: Optional[int] = None, **kwargs):
        super().__init__(ttl=ttl, **kwargs)
        self._path = Path(save_path)
        if not self._path.is_dir() or not os.access(self._path, os.W_OK):
            raise ConfigurationError(
                f"Session save path is not writable: {self._path}"
            )

    @property
    def path(self) -> Path:
        return self._path

    def _filename(self, session_id: str) -> Path:
        if not session_id or not _SESSION_ID_PATTERN.fullmatch(session_id):
            raise InvalidSessionIdError("Invalid session id for file storage")
        return self._path.joinpath(f"{SESSION_FILE_PREFIX}{session_id}")

    def _expired(self, filename: Path) -> bool:
        return time.time() - filename.stat().st_mtime > self._ttl

    def _read(self, filename: Path) -> Optional[bytes]:
        try:
            if self._expired(filename):
                filename.unlink(missing_ok=True)
                return None
            return filename.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as err:
            raise BackendError(f"Cannot read session file: {err}") from err

    def _write(self, filename: Path, blob: bytes) -> bool:
        tmp = filename.with_suffix(".tmp")
        try:
            tmp.write_bytes(blob)
            os.replace(tmp, filename)
        except OSError as err:
            raise BackendError(f"Cannot write session file: {err}") from err
        return True

    def _destroy(self, filename: Path) -> None:
        try:
            filename.unlink(missing_ok=True)
        except OSError as err:
            raise BackendError(f"Cannot remove session file: {err}") from err

    async def read(self, session_id: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, self._filename(session_id))

    async def write(self, session_id: str, blob: bytes) -> bool:
        result = await asyncio.to_thread(self._write, self._filename(session_id), blob)
        logger.debug("Session file written: %s bytes", len(blob))
        return result

    async def destroy(self, session_id: str) -> None:
        await asyncio.to_thread(self._destroy, self._filename(session_id))

    def _purge(self) -> int:
        removed = 0
        for filename in self._path.glob(f"{SESSION_FILE_PREFIX}*"):
            try:
                if self._expired(filename):
                    filename.unlink(missing_ok=True)
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as err:
                raise BackendError(f"Cannot purge session files: {err}") from err
        return removed

    async def purge_expired(self) -> int:
        """Remove every expired session file; returns how many were removed."""
        removed = await asyncio.to_thread(self._purge)
        logger.debug("Expired session files purged: %d", removed)
        return removed
