"""
Record Store

Serialization glue between pydantic models and the key-value store, plus
the single-writer discipline every mutation goes through.

DESIGN DECISION: Each key holds a whole collection (all users, all
transactions), so changing one record means read -> modify -> write of
the full blob. Two interleaved writers would each read the same prior
list and the second write would drop the first one's change. Every
read-modify-write therefore runs inside an asyncio.Lock owned by the key.

Blobs are JSON written with the model aliases, so the field names match
what the mobile app stored under the same keys.
"""

import asyncio
import json
from typing import Callable, Optional, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from pocket_ledger.models.audit import AuditEvent
from pocket_ledger.services.storage.interface import (
    AuditStorageInterface,
    CorruptRecordError,
    KeyValueStoreInterface,
    StorageError,
)


# Store keys
USERS_KEY = "users"
SESSION_KEY = "userSession"
TRANSACTIONS_KEY = "transactions"
AUDIT_LOG_KEY = "auditLog"

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")

logger = structlog.get_logger(__name__)


class RecordStore:
    """
    Typed access to the collections and single records in a key-value store.

    One RecordStore (and so one lock per key) must be shared by everything
    that writes to the same underlying store.
    """

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    def lock_for(self, key: str) -> asyncio.Lock:
        """The writer lock guarding a key."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    async def _get(self, key: str) -> Optional[str]:
        try:
            return await self._store.get(key)
        except StorageError:
            raise
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}")

    async def _set(self, key: str, blob: str) -> None:
        try:
            await self._store.set(key, blob)
        except StorageError:
            raise
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    def _decode(self, key: str, blob: str, adapter: TypeAdapter):
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(key, f"invalid JSON ({e.msg})")
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise CorruptRecordError(key, f"{e.error_count()} schema error(s)")

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    async def load_list(self, key: str, model: type[M]) -> list[M]:
        """Read a collection; an absent key is an empty collection."""
        blob = await self._get(key)
        if blob is None:
            return []
        return self._decode(key, blob, TypeAdapter(list[model]))

    async def save_list(self, key: str, items: list[M], model: type[M]) -> None:
        blob = TypeAdapter(list[model]).dump_json(
            items, by_alias=True, exclude_none=True
        )
        await self._set(key, blob.decode("utf-8"))

    async def update_list(
        self,
        key: str,
        model: type[M],
        mutate: Callable[[list[M]], tuple[Optional[list[M]], R]],
    ) -> R:
        """
        Read-modify-write a collection under the key's writer lock.

        Args:
            key: Store key of the collection
            model: Record type of the collection
            mutate: Receives the current records and returns
                    (new_records_or_None, result). None skips the write.

        Returns:
            Whatever mutate returned as its result

        Exceptions raised by mutate propagate and nothing is written.
        """
        async with self.lock_for(key):
            items = await self.load_list(key, model)
            updated, result = mutate(items)
            if updated is not None:
                await self.save_list(key, updated, model)
                logger.debug("collection_written", key=key, count=len(updated))
            return result

    # -------------------------------------------------------------------------
    # Single records
    # -------------------------------------------------------------------------

    async def load_one(self, key: str, model: type[M]) -> Optional[M]:
        blob = await self._get(key)
        if blob is None:
            return None
        return self._decode(key, blob, TypeAdapter(model))

    async def save_one(self, key: str, record: M) -> None:
        async with self.lock_for(key):
            await self._set(key, record.model_dump_json(by_alias=True, exclude_none=True))

    async def delete(self, key: str) -> None:
        async with self.lock_for(key):
            try:
                await self._store.remove(key)
            except StorageError:
                raise
            except OSError as e:
                raise StorageError(f"Failed to remove '{key}': {e}")


class KeyValueAuditStorage(AuditStorageInterface):
    """
    Audit log kept under the 'auditLog' key.

    Only the most recent `limit` events are retained.
    """

    def __init__(self, records: RecordStore, limit: int = 500):
        self._records = records
        self._limit = limit

    async def append_event(self, event: AuditEvent) -> bool:
        def append(events: list[AuditEvent]):
            events.append(event)
            return events[-self._limit:], True

        return await self._records.update_list(AUDIT_LOG_KEY, AuditEvent, append)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = await self._records.load_list(AUDIT_LOG_KEY, AuditEvent)
        return list(reversed(events))[:limit]
