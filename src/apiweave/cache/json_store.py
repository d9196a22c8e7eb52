"""Disk-backed response cache with TTL staleness.

Entries are grouped into buckets keyed by a CRC-32 hash of the original key;
a bucket holds every entry whose key hashes to the same code, and lookups
scan it for the exact key. The whole bucket map is serialized to JSON and
written after every mutation.

Storage structure:
    {cache_dir}/{name}.cache

Example snapshot:
    {
      "name": "NHLPublicAPI",
      "buckets": {
        "$1C291CA3": [
          {"key": "https://.../teams/1", "value": "{...}",
           "created_at": 1705276800.0, "ttl_seconds": 300}
        ]
      }
    }

Re-opening a store with the same name re-hydrates the snapshot; it never
truncates it. A snapshot that exists but cannot be read is fatal for that
store, while a failed write is logged and the in-memory state stays usable.
"""

import json
import logging
import threading
import time
import zlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from apiweave.errors import CacheReadError, InvalidKeyError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class CacheEntry(BaseModel):
    """A single cached value.

    Attributes:
        key: Original (un-hashed) key, the request URI for HTTP responses
        value: Opaque string payload, the raw response body
        created_at: Epoch seconds when the entry was written
        ttl_seconds: Lifetime in seconds
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    created_at: float
    ttl_seconds: int = Field(default=DEFAULT_TTL_SECONDS, ge=0)

    def is_stale(self, now: float | None = None) -> bool:
        """True once the entry's age exceeds its TTL."""
        if now is None:
            now = time.time()
        return now - self.created_at > self.ttl_seconds


def hash_key(key: Any) -> str:
    """CRC-32 hash code of a cache key, e.g. ``"$1C291CA3"``.

    Raises:
        InvalidKeyError: If key is not a string
    """
    if not isinstance(key, str):
        raise InvalidKeyError(
            f"Cache keys must be strings, got {type(key).__name__}: {key!r}"
        )
    return f"${zlib.crc32(key.encode('utf-8')):08X}"


class CacheStore:
    """Named key/value cache persisted as a single JSON snapshot.

    All operations take an internal re-entrant lock, so runs sharing a store
    see serialized mutations and a store followed by a lookup of the same key
    is consistent even while other keys change.

    Args:
        name: Store name; also the snapshot file stem
        base_path: Directory for the snapshot file. Defaults to 'cache/'.
        clock: Time source returning epoch seconds (injectable for tests)

    Raises:
        CacheReadError: If an existing snapshot cannot be read or parsed
    """

    def __init__(
        self,
        name: str = "default",
        base_path: str | Path = "cache",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.name = name
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._lock = threading.RLock()
        self._buckets: dict[str, list[CacheEntry]] = self._load()

    @property
    def file_path(self) -> Path:
        """Snapshot location for this store."""
        return self.base_path / f"{self.name}.cache"

    def _load(self) -> dict[str, list[CacheEntry]]:
        path = self.file_path
        if not path.exists():
            logger.debug("No cache snapshot at %s, starting empty", path)
            return {}

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            raw_buckets = payload["buckets"]
            buckets = {
                code: [CacheEntry.model_validate(entry) for entry in entries]
                for code, entries in raw_buckets.items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError,
                PydanticValidationError) as e:
            logger.error("Failed to read cache snapshot %s: %s", path, e)
            raise CacheReadError(
                f"Cannot load cache '{self.name}' from {path}: {e}",
                path=str(path),
            ) from e

        logger.info(
            "Found existing cache @ %s (%d entries)",
            path, sum(len(b) for b in buckets.values()),
        )
        return buckets

    def _write_to_disk(self) -> None:
        """Write the full snapshot. Failures are logged, never raised."""
        path = self.file_path
        tmp = path.with_suffix(path.suffix + ".tmp")
        payload = {
            "name": self.name,
            "buckets": {
                code: [entry.model_dump() for entry in entries]
                for code, entries in self._buckets.items()
            },
        }
        try:
            tmp.write_text(json.dumps(payload), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            logger.warning(
                "Failed to write cache snapshot %s: %s. "
                "Continuing with in-memory state.",
                path, e,
            )

    @staticmethod
    def _index_of(bucket: list[CacheEntry], key: str) -> int:
        for i, entry in enumerate(bucket):
            if entry.key == key:
                return i
        return -1

    def lookup(self, key: str) -> str | None:
        """Return the cached value for key, or None if absent.

        A stale match is deleted (and the deletion persisted) before
        reporting the key as absent.
        """
        code = hash_key(key)
        with self._lock:
            bucket = self._buckets.get(code)
            if not bucket:
                return None

            i = self._index_of(bucket, key)
            if i < 0:
                return None

            entry = bucket[i]
            if entry.is_stale(self._clock()):
                logger.debug("Cache entry for %s is stale, evicting", key)
                self._remove_at(code, i)
                self._write_to_disk()
                return None

            return entry.value

    def store(self, key: str, value: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> bool:
        """Store value under key.

        A fresh entry for the same key is never overwritten; a stale one is
        replaced in place. New keys are appended to their bucket.

        Returns:
            True if the snapshot changed, False if a fresh entry was kept
        """
        code = hash_key(key)
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )
        with self._lock:
            bucket = self._buckets.setdefault(code, [])
            i = self._index_of(bucket, key)
            if i >= 0:
                if not bucket[i].is_stale(self._clock()):
                    logger.debug("Fresh cache entry for %s kept", key)
                    return False
                bucket[i] = entry
            else:
                bucket.append(entry)

            logger.info("Adding %s to cache '%s'", key, self.name)
            self._write_to_disk()
            return True

    def delete(self, key: str) -> bool:
        """Delete the entry whose key matches exactly.

        Returns:
            True if an entry was removed
        """
        code = hash_key(key)
        with self._lock:
            bucket = self._buckets.get(code)
            if not bucket:
                return False
            i = self._index_of(bucket, key)
            if i < 0:
                return False
            self._remove_at(code, i)
            self._write_to_disk()
            return True

    def _remove_at(self, code: str, index: int) -> None:
        bucket = self._buckets[code]
        del bucket[index]
        if not bucket:
            del self._buckets[code]

    def collect_garbage(self) -> int:
        """Delete every stale entry and persist once.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            removed = 0
            for code in list(self._buckets):
                bucket = self._buckets[code]
                fresh = [entry for entry in bucket if not entry.is_stale(now)]
                removed += len(bucket) - len(fresh)
                if fresh:
                    self._buckets[code] = fresh
                else:
                    del self._buckets[code]

            self._write_to_disk()

        logger.info("Cache '%s': collected %d stale entries", self.name, removed)
        return removed

    def bucket_for(self, key: str) -> tuple[CacheEntry, ...]:
        """Raw view of the bucket key hashes into."""
        code = hash_key(key)
        with self._lock:
            return tuple(self._buckets.get(code, ()))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._buckets.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return any(entry.key == key for entry in self.bucket_for(key))

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with:
                - name: Store name
                - path: Snapshot path
                - buckets: Number of hash buckets
                - entries: Total entries
                - stale: Entries currently past their TTL
                - size_bytes: Snapshot size on disk (0 if never written)
        """
        with self._lock:
            now = self._clock()
            entries = [e for bucket in self._buckets.values() for e in bucket]
            path = self.file_path
            return {
                "name": self.name,
                "path": str(path),
                "buckets": len(self._buckets),
                "entries": len(entries),
                "stale": sum(1 for e in entries if e.is_stale(now)),
                "size_bytes": path.stat().st_size if path.exists() else 0,
            }
