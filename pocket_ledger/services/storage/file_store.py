"""
JSON File Storage Implementation

Each store key lives in its own file, `<data_dir>/<key>.json`.

TRADEOFFS:
- One file per key keeps single-key writes atomic (write a temp file,
  then os.replace over the old one)
- No cross-key transactions; callers write the dependent key last
- File I/O runs in a worker thread so the event loop never blocks

Transient OS errors (locked files, full buffers) are retried with
exponential backoff before surfacing as StorageError.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pocket_ledger.services.storage.interface import (
    CorruptRecordError,
    KeyValueStoreInterface,
    StorageError,
)


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

logger = structlog.get_logger(__name__)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    File-backed implementation of the key-value store.

    The data directory is created on first write.
    """

    def __init__(self, data_dir: Path, retry_attempts: int = 3):
        self._data_dir = Path(data_dir).expanduser()
        self._retrying = Retrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File that holds a key's blob."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self._data_dir / f"{key}.json"

    # -------------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # -------------------------------------------------------------------------

    def _read_sync(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_sync(self, path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove_sync(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return await asyncio.to_thread(self._retrying.copy(), self._read_sync, path)
        except UnicodeDecodeError as e:
            raise CorruptRecordError(key, f"not UTF-8 text ({e.reason})")
        except OSError as e:
            logger.error("store_read_failed", key=key, error=str(e))
            raise StorageError(f"Failed to read '{key}': {e}")

    async def set(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._retrying.copy(), self._write_sync, path, blob)
        except OSError as e:
            logger.error("store_write_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write '{key}': {e}")

    async def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._retrying.copy(), self._remove_sync, path)
        except OSError as e:
            logger.error("store_remove_failed", key=key, error=str(e))
            raise StorageError(f"Failed to remove '{key}': {e}")
