"""
SQLite implementation of the durable key-value store.

Documents are stored as JSON text in a single table. The table also records
the quota charge of each row, so enforcing the quota is one SUM query rather
than a scan of every value.
"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path

from block_index.exceptions import CapacityExceededError

from .backend import stored_size
from .namespaces import KV


class SQLiteKeyValueStore:
    """
    SQLite implementation of the KeyValueStore protocol.

    Stores documents in a single SQLite file.
    Blocking calls run in a worker thread so the event loop keeps serving
    lookups while a large snapshot is written.
    """

    def __init__(self, path: Path | str, quota_bytes: int | None = None) -> None:
        """
        Initialize SQLite storage.

        Creates the database file and table if they don't exist.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
            quota_bytes: Maximum total stored bytes, or None for unlimited.
        """
        self._path = Path(path) if isinstance(path, str) else path
        self.quota_bytes = quota_bytes

        # Calls are dispatched to worker threads.
        #
        # The check_same_thread=False flag allows those threads to share
        # this connection. The lock serializes them, since a single
        # connection cannot run two statements at once.
        self._conn = sqlite3.connect(
            str(self._path),
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._lock = asyncio.Lock()

        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        self._conn.execute(KV.CREATE_TABLE)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Synchronous Operations
    # -------------------------------------------------------------------------

    def _get(self, key: str) -> str | None:
        cursor = self._conn.execute(
            f"SELECT value FROM {KV.TABLE_NAME} WHERE key = ?",
            (key,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return row["value"]

    def _set(self, key: str, value: str) -> None:
        size = stored_size(key, value)

        # Check the quota before writing.
        #
        # The charge of the row being replaced is excluded, so overwriting
        # a document with a smaller one always succeeds.
        if self.quota_bytes is not None:
            cursor = self._conn.execute(
                f"SELECT COALESCE(SUM(size), 0) FROM {KV.TABLE_NAME} WHERE key != ?",
                (key,),
            )
            attempted = cursor.fetchone()[0] + size
            if attempted > self.quota_bytes:
                raise CapacityExceededError(
                    key, attempted_bytes=attempted, quota_bytes=self.quota_bytes
                )

        self._conn.execute(
            f"""
            INSERT OR REPLACE INTO {KV.TABLE_NAME} (key, value, size)
            VALUES (?, ?, ?)
            """,
            (key, value, size),
        )

        # Commit immediately to ensure durability.
        #
        # A checkpoint is only worth something if it survives the process.
        self._conn.commit()

    def _clear(self) -> None:
        self._conn.execute(f"DELETE FROM {KV.TABLE_NAME}")
        self._conn.commit()

    def used_bytes(self) -> int:
        """Total bytes currently stored."""
        cursor = self._conn.execute(f"SELECT COALESCE(SUM(size), 0) FROM {KV.TABLE_NAME}")
        return int(cursor.fetchone()[0])

    # -------------------------------------------------------------------------
    # KeyValueStore Protocol
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Retrieve a value."""
        async with self._lock:
            return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        """Store a value, enforcing the quota."""
        async with self._lock:
            await asyncio.to_thread(self._set, key, value)

    async def clear(self) -> None:
        """Remove every key."""
        async with self._lock:
            await asyncio.to_thread(self._clear)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteKeyValueStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
