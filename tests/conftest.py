"""
Shared fixtures.

Repositories run against an in-memory store with a cheap hash iteration
count. SlowKeyValueStore yields to the event loop on every call, which is
what lets interleaved read-modify-writes actually interleave.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from pocket_ledger.services.identity import IdentityRepository, PasswordHasher
from pocket_ledger.services.ledger import TransactionRepository
from pocket_ledger.services.storage import (
    InMemoryKeyValueStore,
    RecordStore,
    StorageError,
)
from pocket_ledger.validation import InputValidator


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class SlowKeyValueStore(InMemoryKeyValueStore):
    """In-memory store that suspends before every operation."""

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(0.01)
        return await super().get(key)

    async def set(self, key: str, blob: str) -> None:
        await asyncio.sleep(0.01)
        await super().set(key, blob)


class FailingWriteStore(InMemoryKeyValueStore):
    """In-memory store whose writes fail once `fail_writes` is set."""

    fail_writes = False

    async def set(self, key: str, blob: str) -> None:
        if self.fail_writes:
            raise StorageError(f"disk full writing '{key}'")
        await super().set(key, blob)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def records(store) -> RecordStore:
    return RecordStore(store)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(iterations=1000, salt_bytes=16)


@pytest.fixture
def validator() -> InputValidator:
    return InputValidator(min_password_length=6, tz=timezone.utc)


@pytest.fixture
def identity(records, validator, hasher) -> IdentityRepository:
    return IdentityRepository(records, validator=validator, hasher=hasher)


@pytest.fixture
def ledger(records, validator) -> TransactionRepository:
    return TransactionRepository(records, validator=validator, clock=lambda: FIXED_NOW)


@pytest.fixture
def slow_records() -> RecordStore:
    return RecordStore(SlowKeyValueStore())


@pytest.fixture
def failing_store() -> FailingWriteStore:
    return FailingWriteStore()
