"""Tests for the JSON response cache."""

import json
import threading
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from apiweave.cache import CacheEntry, CacheStore, hash_key
from apiweave.errors import CacheReadError, InvalidKeyError


@pytest.fixture
def store(tmp_path: Path, clock) -> CacheStore:
    return CacheStore(name="test", base_path=tmp_path, clock=clock)


class TestCacheEntry:
    """Staleness of individual entries."""

    def test_fresh_within_ttl(self) -> None:
        entry = CacheEntry(key="k", value="v", created_at=100.0, ttl_seconds=10)
        assert not entry.is_stale(now=110.0)

    def test_stale_after_ttl(self) -> None:
        entry = CacheEntry(key="k", value="v", created_at=100.0, ttl_seconds=10)
        assert entry.is_stale(now=110.5)

    def test_zero_ttl_stale_after_any_delay(self) -> None:
        entry = CacheEntry(key="k", value="v", created_at=100.0, ttl_seconds=0)
        assert not entry.is_stale(now=100.0)
        assert entry.is_stale(now=100.001)

    def test_entries_are_immutable(self) -> None:
        entry = CacheEntry(key="k", value="v", created_at=100.0)
        with pytest.raises(PydanticValidationError):
            entry.value = "other"


class TestHashKey:
    """Bucket hash codes."""

    def test_stable_and_prefixed(self) -> None:
        assert hash_key("https://api.example.com/teams") == hash_key("https://api.example.com/teams")
        assert hash_key("abc").startswith("$")
        assert len(hash_key("abc")) == 9

    def test_rejects_non_string_keys(self) -> None:
        with pytest.raises(InvalidKeyError, match="strings"):
            hash_key(42)


class TestLookupAndStore:
    """Round trips, staleness and fresh-write protection."""

    def test_round_trip(self, store: CacheStore) -> None:
        store.store("k", "v", 300)
        assert store.lookup("k") == "v"

    def test_missing_key_is_absent(self, store: CacheStore) -> None:
        assert store.lookup("nope") is None

    def test_stale_lookup_returns_absent_and_evicts(self, store: CacheStore, clock) -> None:
        store.store("k", "v", 0)
        clock.advance(0.5)

        assert store.lookup("k") is None
        assert store.bucket_for("k") == ()
        assert "k" not in store

    def test_fresh_entry_not_overwritten(self, store: CacheStore) -> None:
        assert store.store("k", "v1", 300) is True
        assert store.store("k", "v2", 300) is False
        assert store.lookup("k") == "v1"

    def test_stale_entry_is_overwritten(self, store: CacheStore, clock) -> None:
        store.store("k", "v1", 10)
        clock.advance(11)

        assert store.store("k", "v2", 10) is True
        bucket = store.bucket_for("k")
        assert len(bucket) == 1
        assert bucket[0].value == "v2"
        assert store.lookup("k") == "v2"

    def test_non_string_key_rejected(self, store: CacheStore) -> None:
        with pytest.raises(InvalidKeyError):
            store.store(("tuple", "key"), "v")
        with pytest.raises(InvalidKeyError):
            store.lookup(7)

    def test_colliding_keys_share_bucket(self, store: CacheStore, monkeypatch) -> None:
        monkeypatch.setattr("apiweave.cache.json_store.hash_key", lambda key: "$00000000")

        store.store("first", "1")
        store.store("second", "2")

        assert len(store.bucket_for("first")) == 2
        assert store.lookup("first") == "1"
        assert store.lookup("second") == "2"
        assert store.lookup("third") is None


class TestDelete:
    """Exact-key deletion."""

    def test_delete_existing(self, store: CacheStore) -> None:
        store.store("k", "v")
        assert store.delete("k") is True
        assert store.lookup("k") is None

    def test_delete_missing(self, store: CacheStore) -> None:
        assert store.delete("k") is False

    def test_delete_only_matching_key_in_bucket(self, store: CacheStore, monkeypatch) -> None:
        monkeypatch.setattr("apiweave.cache.json_store.hash_key", lambda key: "$00000000")
        store.store("first", "1")
        store.store("second", "2")

        assert store.delete("second") is True
        assert store.delete("third") is False
        assert store.lookup("first") == "1"
        assert store.lookup("second") is None


class TestGarbageCollection:
    """collect_garbage removes stale entries only."""

    def test_removes_stale_entries(self, store: CacheStore, clock) -> None:
        store.store("short-1", "a", 5)
        store.store("short-2", "b", 5)
        store.store("long", "c", 500)
        clock.advance(10)

        assert store.collect_garbage() == 2
        assert len(store) == 1
        assert store.lookup("long") == "c"

    def test_persists_once(self, store: CacheStore, clock, monkeypatch) -> None:
        store.store("a", "1", 1)
        store.store("b", "2", 1)
        clock.advance(5)

        writes = []
        original = store._write_to_disk
        monkeypatch.setattr(store, "_write_to_disk", lambda: (writes.append(1), original()))

        store.collect_garbage()
        assert len(writes) == 1


class TestPersistence:
    """Snapshots on disk."""

    def test_snapshot_written_after_store(self, store: CacheStore) -> None:
        store.store("https://api.example.com/v1/teams/1", '{"teams": []}')

        payload = json.loads(store.file_path.read_text())
        assert payload["name"] == "test"
        (bucket,) = payload["buckets"].values()
        assert bucket[0]["key"] == "https://api.example.com/v1/teams/1"
        assert bucket[0]["value"] == '{"teams": []}'

    def test_reopen_rehydrates(self, tmp_path: Path, clock) -> None:
        first = CacheStore(name="shared", base_path=tmp_path, clock=clock)
        first.store("k", "v", 300)

        second = CacheStore(name="shared", base_path=tmp_path, clock=clock)
        assert second.lookup("k") == "v"
        assert len(second) == 1

    def test_file_named_after_store(self, tmp_path: Path) -> None:
        store = CacheStore(name="NHLPublicAPI", base_path=tmp_path)
        assert store.file_path == tmp_path / "NHLPublicAPI.cache"

    def test_corrupt_snapshot_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "broken.cache").write_text("{not json")
        with pytest.raises(CacheReadError, match="broken"):
            CacheStore(name="broken", base_path=tmp_path)

    def test_wrong_shape_snapshot_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "shape.cache").write_text(json.dumps({"name": "shape"}))
        with pytest.raises(CacheReadError):
            CacheStore(name="shape", base_path=tmp_path)

    def test_write_failure_is_swallowed(self, store: CacheStore, monkeypatch) -> None:
        def _fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "write_text", _fail)

        assert store.store("k", "v") is True
        assert store.lookup("k") == "v"


class TestConcurrency:
    """Serialized mutation from several threads."""

    def test_concurrent_stores_are_consistent(self, store: CacheStore) -> None:
        errors = []

        def _worker(n: int) -> None:
            for i in range(20):
                key = f"worker-{n}-{i}"
                store.store(key, str(i))
                if store.lookup(key) != str(i):
                    errors.append(key)

        threads = [threading.Thread(target=_worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store) == 80


class TestStats:
    def test_stats(self, store: CacheStore, clock) -> None:
        store.store("a", "1", 1)
        store.store("b", "2", 100)
        clock.advance(2)

        stats = store.stats()
        assert stats["name"] == "test"
        assert stats["entries"] == 2
        assert stats["stale"] == 1
        assert stats["size_bytes"] > 0
