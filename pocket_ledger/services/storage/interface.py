"""
Abstract Storage Interface

DESIGN DECISION: The ledger only needs a string-keyed store of serialized
blobs. Keeping the interface this small allows us to:
1. Use an in-memory store for testing
2. Back the ledger with JSON files on the device
3. Swap in any other key-value backend later

Each operation is atomic for a single key. There is no cross-key
transaction guarantee; callers order their writes accordingly.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pocket_ledger.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the persistent key-value store.

    Any storage implementation must implement these methods and raise
    StorageError (never a backend-specific exception) on failure.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Args:
            key: Store key (e.g. 'users', 'transactions')

        Returns:
            The blob, or None if the key is absent

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def set(self, key: str, blob: str) -> None:
        """
        Replace the blob stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never modify entries.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptRecordError(StorageError):
    """A stored blob is not valid JSON or does not match its schema."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Corrupt record under '{key}': {message}")
