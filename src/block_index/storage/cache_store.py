"""
Typed access to the engine's persisted documents.

The backing store only knows strings. BlockCacheStore owns the mapping from
the engine's containers to JSON documents under fixed keys:

- blockCache: the CacheSnapshot
- syncStatus: the SyncStatus
- authToken: the AuthContext

No read-modify-write atomicity is offered. The sync pass is the only writer
of the snapshot; status writes are single-document merges.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from block_index.containers import AuthContext, CacheSnapshot, SyncStatus

from .backend import KeyValueStore
from .namespaces import KEYS

logger = logging.getLogger(__name__)


class BlockCacheStore:
    """Persistent block cache, sync status and auth over a key-value backend."""

    def __init__(self, backend: KeyValueStore, time_fn: Callable[[], float]) -> None:
        """
        Initialize the store.

        Args:
            backend: Durable key-value backing store.
            time_fn: Wall-clock source used for heartbeats.
        """
        self.backend = backend
        self.time_fn = time_fn

    # -------------------------------------------------------------------------
    # Block Cache
    # -------------------------------------------------------------------------

    async def load(self) -> CacheSnapshot | None:
        """
        Load the persisted snapshot.

        Returns:
            The snapshot, or None if absent or unreadable.
        """
        raw = await self.backend.get(KEYS.BLOCK_CACHE)
        if raw is None:
            return None

        # A corrupt document is treated as a cold cache.
        #
        # The next pass rebuilds everything from the remote.
        try:
            return CacheSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable block cache: {exc.error_count()} errors")
            return None

    async def save(self, snapshot: CacheSnapshot) -> None:
        """
        Persist a snapshot.

        Raises:
            CapacityExceededError: If the backend rejects the write.
        """
        await self.backend.set(KEYS.BLOCK_CACHE, snapshot.to_json())

    @staticmethod
    def create_empty(owner_id: str) -> CacheSnapshot:
        """Create an empty snapshot owned by `owner_id`."""
        return CacheSnapshot.empty(owner_id)

    # -------------------------------------------------------------------------
    # Sync Status
    # -------------------------------------------------------------------------

    async def load_status(self) -> SyncStatus:
        """Load the sync status, or a zero status if none was persisted."""
        raw = await self.backend.get(KEYS.SYNC_STATUS)
        if raw is None:
            return SyncStatus()

        try:
            return SyncStatus.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable sync status")
            return SyncStatus()

    async def update_status(self, **changes: Any) -> SyncStatus:
        """
        Merge changes into the persisted status.

        Every write refreshes the heartbeat, so a live pass keeps its lock
        fresh simply by reporting progress.

        Args:
            **changes: SyncStatus fields (snake_case) to overwrite.

        Returns:
            The status as written.
        """
        current = await self.load_status()
        status = current.model_copy(
            update=changes | {"last_heartbeat_at": self.time_fn()},
        )
        await self.backend.set(KEYS.SYNC_STATUS, status.to_json())
        return status

    async def reset_status(self) -> SyncStatus:
        """Reset counters, errors and the lock."""
        return await self.update_status(
            total_count=0,
            synced_count=0,
            last_sync_completed_at=0.0,
            running=False,
            errors=[],
        )

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def load_auth(self) -> AuthContext | None:
        """Load the persisted auth context, if any."""
        raw = await self.backend.get(KEYS.AUTH)
        if raw is None:
            return None

        try:
            return AuthContext.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable auth context")
            return None

    async def store_auth(self, auth: AuthContext) -> None:
        """Persist the auth context."""
        await self.backend.set(KEYS.AUTH, auth.to_json())

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def clear(self) -> None:
        """Wipe every document."""
        await self.backend.clear()
