"""
Tests for the key-value stores and the record store.
"""

import asyncio
import json
from decimal import Decimal

import pytest

from pocket_ledger.models import AuditEventBuilder, Session, Transaction
from pocket_ledger.services.storage import (
    AUDIT_LOG_KEY,
    SESSION_KEY,
    TRANSACTIONS_KEY,
    CorruptRecordError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    RecordStore,
    StorageError,
)


def make_transaction(tx_id: str, user_id: str = "a@b.co", amount: str = "10") -> Transaction:
    return Transaction(id=tx_id, user_id=user_id, title=f"tx {tx_id}", amount=Decimal(amount))


class TestInMemoryStore:
    """Tests for InMemoryKeyValueStore."""

    def test_get_set_remove(self):
        """Test the basic key-value contract."""
        store = InMemoryKeyValueStore()

        async def scenario():
            assert await store.get("users") is None
            await store.set("users", "[]")
            assert await store.get("users") == "[]"
            await store.remove("users")
            assert await store.get("users") is None

        asyncio.run(scenario())

    def test_remove_absent_key(self):
        """Test removing an absent key is not an error."""
        asyncio.run(InMemoryKeyValueStore().remove("userSession"))


class TestJsonFileStore:
    """Tests for JsonFileKeyValueStore."""

    def test_roundtrip_writes_one_file_per_key(self, tmp_path):
        """Test a blob lands in <data_dir>/<key>.json and reads back."""
        store = JsonFileKeyValueStore(tmp_path / "data")

        async def scenario():
            await store.set("transactions", '[{"id": "1"}]')
            return await store.get("transactions")

        assert asyncio.run(scenario()) == '[{"id": "1"}]'
        assert (tmp_path / "data" / "transactions.json").exists()

    def test_missing_key_reads_none(self, tmp_path):
        """Test an absent key reads as None without creating anything."""
        store = JsonFileKeyValueStore(tmp_path / "data")
        assert asyncio.run(store.get("users")) is None
        assert not (tmp_path / "data").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test atomic replace does not leave temp files behind."""
        store = JsonFileKeyValueStore(tmp_path)

        async def scenario():
            await store.set("users", "[1]")
            await store.set("users", "[1, 2]")
            return await store.get("users")

        assert asyncio.run(scenario()) == "[1, 2]"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json"]

    def test_remove_is_idempotent(self, tmp_path):
        """Test removing twice is not an error."""
        store = JsonFileKeyValueStore(tmp_path)

        async def scenario():
            await store.set("userSession", "{}")
            await store.remove("userSession")
            await store.remove("userSession")
            return await store.get("userSession")

        assert asyncio.run(scenario()) is None

    def test_invalid_key_rejected(self, tmp_path):
        """Test keys cannot escape the data directory."""
        store = JsonFileKeyValueStore(tmp_path)
        with pytest.raises(ValueError):
            store.path_for("../etc/passwd")

    def test_transient_write_error_is_retried(self, tmp_path, monkeypatch):
        """Test a single OSError on write is retried and succeeds."""
        store = JsonFileKeyValueStore(tmp_path, retry_attempts=3)
        original = store._write_sync
        calls = {"count": 0}

        def flaky_write(path, blob):
            calls["count"] += 1
            if calls["count"] == 1:
                raise OSError("resource temporarily unavailable")
            original(path, blob)

        monkeypatch.setattr(store, "_write_sync", flaky_write)
        asyncio.run(store.set("users", "[]"))

        assert calls["count"] == 2
        assert (tmp_path / "users.json").read_text() == "[]"

    def test_persistent_write_error_becomes_storage_error(self, tmp_path, monkeypatch):
        """Test exhausted retries surface as StorageError."""
        store = JsonFileKeyValueStore(tmp_path, retry_attempts=2)

        def broken_write(path, blob):
            raise OSError("read-only file system")

        monkeypatch.setattr(store, "_write_sync", broken_write)
        with pytest.raises(StorageError, match="read-only"):
            asyncio.run(store.set("users", "[]"))

    def test_non_utf8_file_is_corrupt(self, tmp_path):
        """Test undecodable bytes surface as CorruptRecordError."""
        (tmp_path / "users.json").write_bytes(b"\xff\xfe\x00")
        store = JsonFileKeyValueStore(tmp_path)
        with pytest.raises(CorruptRecordError):
            asyncio.run(store.get("users"))


class TestRecordStore:
    """Tests for typed access and the single-writer discipline."""

    def test_absent_collection_is_empty(self, records):
        """Test a missing key loads as an empty list."""
        assert asyncio.run(records.load_list(TRANSACTIONS_KEY, Transaction)) == []

    def test_collection_written_with_aliases(self, records, store):
        """Test blobs use the stored field names."""
        asyncio.run(records.save_list(TRANSACTIONS_KEY, [make_transaction("1")], Transaction))

        data = json.loads(store.snapshot()[TRANSACTIONS_KEY])
        assert data[0]["userId"] == "a@b.co"
        assert "user_id" not in data[0]

    def test_invalid_json_is_corrupt(self, store, records):
        """Test a non-JSON blob raises CorruptRecordError."""
        asyncio.run(store.set(TRANSACTIONS_KEY, "not json"))
        with pytest.raises(CorruptRecordError, match="transactions"):
            asyncio.run(records.load_list(TRANSACTIONS_KEY, Transaction))

    def test_schema_mismatch_is_corrupt(self, store, records):
        """Test a blob that is JSON but not the expected shape raises CorruptRecordError."""
        asyncio.run(store.set(SESSION_KEY, json.dumps({"email": "a@b.co"})))
        with pytest.raises(CorruptRecordError):
            asyncio.run(records.load_one(SESSION_KEY, Session))

    def test_corrupt_record_is_storage_error(self):
        """Test callers catching StorageError also catch corrupt records."""
        assert issubclass(CorruptRecordError, StorageError)

    def test_update_skips_write_when_unchanged(self, store, records):
        """Test returning None from the mutation leaves the store untouched."""
        result = asyncio.run(
            records.update_list(TRANSACTIONS_KEY, Transaction, lambda items: (None, "noop"))
        )
        assert result == "noop"
        assert TRANSACTIONS_KEY not in store.snapshot()

    def test_update_error_writes_nothing(self, store, records):
        """Test an exception inside the mutation aborts the write."""
        asyncio.run(records.save_list(TRANSACTIONS_KEY, [make_transaction("1")], Transaction))
        before = store.snapshot()[TRANSACTIONS_KEY]

        def explode(items):
            items.append(make_transaction("2"))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(records.update_list(TRANSACTIONS_KEY, Transaction, explode))
        assert store.snapshot()[TRANSACTIONS_KEY] == before

    def test_concurrent_updates_are_serialized(self, slow_records):
        """Test interleaved read-modify-writes on one key lose nothing."""
        def appender(tx_id):
            def append(items):
                items.append(make_transaction(tx_id))
                return items, tx_id
            return append

        async def scenario():
            await asyncio.gather(*(
                slow_records.update_list(TRANSACTIONS_KEY, Transaction, appender(str(i)))
                for i in range(1, 6)
            ))
            return await slow_records.load_list(TRANSACTIONS_KEY, Transaction)

        stored = asyncio.run(scenario())
        assert sorted(t.id for t in stored) == ["1", "2", "3", "4", "5"]

    def test_delete_absent_record(self, records):
        """Test deleting an absent single record is not an error."""
        asyncio.run(records.delete(SESSION_KEY))


class TestKeyValueAuditStorage:
    """Tests for the store-backed audit log."""

    def test_append_and_read_newest_first(self, records):
        """Test events come back newest first."""
        storage = KeyValueAuditStorage(records)

        async def scenario():
            await storage.append_event(AuditEventBuilder.signed_in("a@b.co"))
            await storage.append_event(AuditEventBuilder.signed_out("a@b.co"))
            return await storage.get_recent_events()

        events = asyncio.run(scenario())
        assert [e.event_type.value for e in events] == ["signed_out", "signed_in"]

    def test_log_is_capped(self, records, store):
        """Test only the most recent events are kept."""
        storage = KeyValueAuditStorage(records, limit=2)

        async def scenario():
            for email in ("a@b.co", "b@b.co", "c@b.co"):
                await storage.append_event(AuditEventBuilder.signed_in(email))

        asyncio.run(scenario())
        kept = json.loads(store.snapshot()[AUDIT_LOG_KEY])
        assert [e["entity_id"] for e in kept] == ["b@b.co", "c@b.co"]
