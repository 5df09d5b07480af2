"""
In-Memory Key-Value Store

Used for tests and for throwaway sessions (LEDGER_STORAGE_BACKEND=memory).
Nothing survives the process.
"""

from typing import Optional

from pocket_ledger.services.storage.interface import KeyValueStoreInterface


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed implementation of the key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, blob: str) -> None:
        self._data[key] = blob

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw blobs, keyed by store key."""
        return dict(self._data)
