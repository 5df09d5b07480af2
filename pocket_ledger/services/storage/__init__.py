"""
Storage Services Package

Provides the abstract key-value interface, its in-memory and JSON file
implementations, and the typed record store built on top of them.
"""

from pocket_ledger.services.storage.interface import (
    AuditStorageInterface,
    CorruptRecordError,
    KeyValueStoreInterface,
    StorageError,
)
from pocket_ledger.services.storage.file_store import JsonFileKeyValueStore
from pocket_ledger.services.storage.memory import InMemoryKeyValueStore
from pocket_ledger.services.storage.records import (
    AUDIT_LOG_KEY,
    SESSION_KEY,
    TRANSACTIONS_KEY,
    USERS_KEY,
    KeyValueAuditStorage,
    RecordStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "CorruptRecordError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "RecordStore",
    # Keys
    "AUDIT_LOG_KEY",
    "SESSION_KEY",
    "TRANSACTIONS_KEY",
    "USERS_KEY",
]
