"""
Storage namespace definitions.

Defines the table schema for SQLite storage and the fixed keys under which
the engine keeps its documents.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KeyValueNamespace:
    """
    Namespace for the key-value table.

    Every document is a JSON string stored under a fixed key.
    """

    TABLE_NAME: str = "kv"
    """Table name for key-value storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            size INTEGER NOT NULL
        )
    """
    """SQL to create the key-value table. `size` caches the quota charge."""


@dataclass(frozen=True, slots=True)
class DocumentKeys:
    """Fixed keys for the engine's persisted documents."""

    BLOCK_CACHE: str = "blockCache"
    """Key for the CacheSnapshot document."""

    SYNC_STATUS: str = "syncStatus"
    """Key for the SyncStatus document."""

    AUTH: str = "authToken"
    """Key for the AuthContext document."""


KV = KeyValueNamespace()
KEYS = DocumentKeys()
