"""Tests for typed access to the persisted documents."""

from __future__ import annotations

import json

from block_index.containers import CacheSnapshot, SyncStatus
from block_index.storage import KEYS, BlockCacheStore, MemoryKeyValueStore
from tests.block_index.helpers import FakeClock, make_account, make_auth, make_entry


class TestBlockCache:
    """Tests for snapshot persistence."""

    async def test_load_absent_is_none(self, store: BlockCacheStore) -> None:
        """No snapshot has been written yet."""
        assert await store.load() is None

    async def test_save_then_load(self, store: BlockCacheStore) -> None:
        """A saved snapshot loads back equal."""
        alice = make_account("alice", display_name="Alice")
        snapshot = CacheSnapshot(
            followed_accounts=[alice],
            entries={alice.id: make_entry(alice, ["did:plc:t"], last_synced_at=5.0)},
            last_full_sync_at=5.0,
            owner_id="did:plc:me",
        )

        await store.save(snapshot)
        loaded = await store.load()

        assert loaded == snapshot
        assert loaded is not None
        assert loaded.entries[alice.id].probabilistic_set.might_contain("did:plc:t")

    async def test_saved_document_is_camel_case(
        self, store: BlockCacheStore, backend: MemoryKeyValueStore
    ) -> None:
        """The stored document uses camelCase keys under 'blockCache'."""
        await store.save(CacheSnapshot.empty("did:plc:me"))

        raw = await backend.get(KEYS.BLOCK_CACHE)
        assert raw is not None
        document = json.loads(raw)
        assert document["ownerId"] == "did:plc:me"
        assert document["lastFullSyncAt"] == 0.0
        assert document["followedAccounts"] == []
        assert document["entries"] == {}

    async def test_corrupt_document_loads_as_none(
        self, store: BlockCacheStore, backend: MemoryKeyValueStore
    ) -> None:
        """An unreadable snapshot is treated as a cold cache."""
        await backend.set(KEYS.BLOCK_CACHE, '{"entries": 7}')
        assert await store.load() is None

    async def test_truncated_filter_loads_as_none(
        self, store: BlockCacheStore, backend: MemoryKeyValueStore
    ) -> None:
        """A filter whose bit vector is shorter than its size is rejected on load."""
        alice = make_account("alice")
        snapshot = CacheSnapshot(
            owner_id="did:plc:me",
            entries={alice.id: make_entry(alice, ["did:plc:t"])},
        )
        document = json.loads(snapshot.to_json())
        document["entries"][alice.id]["probabilisticSet"]["bits"] = "AA=="
        await backend.set(KEYS.BLOCK_CACHE, json.dumps(document))

        assert await store.load() is None

    def test_create_empty(self) -> None:
        """An empty snapshot belongs to its owner and has no data."""
        snapshot = BlockCacheStore.create_empty("did:plc:me")
        assert snapshot.owner_id == "did:plc:me"
        assert snapshot.followed_accounts == []
        assert snapshot.entries == {}
        assert snapshot.last_full_sync_at == 0.0


class TestSyncStatus:
    """Tests for status persistence."""

    async def test_default_status(self, store: BlockCacheStore) -> None:
        """With nothing persisted the status is all zeros."""
        assert await store.load_status() == SyncStatus()

    async def test_update_merges_and_stamps_heartbeat(
        self, store: BlockCacheStore, clock: FakeClock
    ) -> None:
        """Updates merge into the stored status and refresh the heartbeat."""
        await store.update_status(total_count=10, running=True)
        clock.advance(30)
        status = await store.update_status(synced_count=4)

        assert status.total_count == 10
        assert status.synced_count == 4
        assert status.running is True
        assert status.last_heartbeat_at == clock.now
        assert await store.load_status() == status

    async def test_reset_clears_progress_and_lock(self, store: BlockCacheStore) -> None:
        """Reset zeroes counters, drops errors and releases the lock."""
        await store.update_status(
            total_count=10,
            synced_count=10,
            last_sync_completed_at=99.0,
            running=True,
            errors=["boom"],
        )

        status = await store.reset_status()

        assert status.total_count == 0
        assert status.synced_count == 0
        assert status.last_sync_completed_at == 0.0
        assert status.running is False
        assert status.errors == []


class TestAuth:
    """Tests for auth persistence."""

    async def test_store_then_load(self, store: BlockCacheStore) -> None:
        """Stored auth loads back equal."""
        auth = make_auth()
        await store.store_auth(auth)
        assert await store.load_auth() == auth

    async def test_absent_auth_is_none(self, store: BlockCacheStore) -> None:
        """No auth has been stored yet."""
        assert await store.load_auth() is None

    def test_credentials_are_hidden_from_repr(self) -> None:
        """Tokens never appear in the repr used by logs."""
        text = repr(make_auth())
        assert "access-secret" not in text
        assert "refresh-secret" not in text
        assert "did:plc:subject" in text


class TestClear:
    """Tests for wiping the store."""

    async def test_clear_removes_all_documents(self, store: BlockCacheStore) -> None:
        """Snapshot, status and auth are all gone after clear."""
        await store.save(CacheSnapshot.empty("did:plc:me"))
        await store.update_status(total_count=3)
        await store.store_auth(make_auth())

        await store.clear()

        assert await store.load() is None
        assert await store.load_status() == SyncStatus()
        assert await store.load_auth() is None
