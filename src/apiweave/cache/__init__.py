"""JSON response cache for apiweave.

One snapshot file per named store, TTL-based staleness, exact-key lookups
inside CRC-32 hash buckets.
"""

from apiweave.cache.json_store import DEFAULT_TTL_SECONDS, CacheEntry, CacheStore, hash_key

__all__ = ["DEFAULT_TTL_SECONDS", "CacheEntry", "CacheStore", "hash_key"]
