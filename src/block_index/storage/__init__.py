"""
Storage module for the persisted block cache.

Provides the key-value backend abstraction, its in-memory and SQLite
implementations, typed document access, and the quota guard.
"""

from .backend import KeyValueStore
from .cache_store import BlockCacheStore
from .memory import MemoryKeyValueStore
from .namespaces import KEYS, KV
from .quota import (
    DEFAULT_CEILING_BYTES,
    DEFAULT_PROACTIVE_RATIO,
    QuotaGuard,
    estimate_size,
    prune,
)
from .sqlite import SQLiteKeyValueStore

__all__ = [
    "BlockCacheStore",
    "DEFAULT_CEILING_BYTES",
    "DEFAULT_PROACTIVE_RATIO",
    "KEYS",
    "KV",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "QuotaGuard",
    "SQLiteKeyValueStore",
    "estimate_size",
    "prune",
]
