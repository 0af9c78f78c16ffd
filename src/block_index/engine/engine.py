"""
Engine facade over sync, lookup and persistence.

Every request the host can make maps to one coroutine here. Long-running
work (sync passes) is scheduled in the background; requests never wait
for a pass to finish.
"""

from __future__ import annotations

import asyncio
import logging

from block_index.containers import AuthContext, BlockingInfo, FollowedAccount, SyncStatus
from block_index.lookup import LookupService
from block_index.protocol import OriginCache, ProtocolClient
from block_index.storage import BlockCacheStore
from block_index.sync import SyncConfig, SyncService
from block_index.sync.config import INCOMPLETE_MIN_FOLLOWS, INCOMPLETE_MIN_RATIO

logger = logging.getLogger(__name__)

CLEAR_CACHE_SYNC_DELAY: float = 0.1
"""Delay between a cache reset and the pass it schedules, in seconds."""


class BlockIndexEngine:
    """Request handlers for the block index."""

    def __init__(
        self,
        store: BlockCacheStore,
        client: ProtocolClient,
        origin_cache: OriginCache,
        config: SyncConfig | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Persistent cache, status and auth.
            client: Remote graph queries.
            origin_cache: Origin cache shared with the client.
            config: Sync tunables.
        """
        self.store = store
        self.client = client
        self.origin_cache = origin_cache
        self.sync = SyncService(store=store, client=client, config=config or SyncConfig())
        self.lookups = LookupService(store, client)

    async def start(self) -> None:
        """Seed the origin cache from the persisted snapshot."""
        snapshot = await self.store.load()
        if snapshot is None:
            return
        added = self.origin_cache.populate(
            (entry_id, entry.origin) for entry_id, entry in snapshot.entries.items()
        )
        logger.info(f"Restored {added} cached service origins")

    async def shutdown(self) -> None:
        """Cancel scheduled passes."""
        await self.sync.cancel_pending()

    async def set_auth(self, auth: AuthContext) -> bool:
        """
        Store the subject's auth and sync if the cache needs it.

        A pass is scheduled for a new subject, an empty cache, or a large
        follow list with almost no entries (a pass that never finished).

        Returns:
            Whether a pass was scheduled.
        """
        existing = await self.store.load_auth()
        await self.store.store_auth(auth)
        logger.info("Auth stored")

        snapshot = await self.store.load()
        is_new_subject = existing is None or existing.subject_id != auth.subject_id
        is_empty = snapshot is None or not snapshot.followed_accounts
        is_incomplete = snapshot is not None and snapshot.is_incomplete(
            INCOMPLETE_MIN_FOLLOWS, INCOMPLETE_MIN_RATIO
        )

        if is_new_subject or is_empty or is_incomplete:
            reason = "new subject" if is_new_subject else "empty cache" if is_empty else "incomplete cache"
            logger.info(f"Triggering sync: {reason}")
            self.sync.schedule_pass()
            return True

        assert snapshot is not None
        logger.info(
            f"Skipping sync - cache looks complete ({len(snapshot.entries)} entries "
            f"for {len(snapshot.followed_accounts)} follows)"
        )
        return False

    def trigger_sync(self) -> asyncio.Task[bool]:
        """Schedule a pass and return immediately."""
        return self.sync.schedule_pass()

    async def get_lookup(self, target_id: str) -> BlockingInfo:
        """Fast-path lookup with unverified blockers."""
        return await self.lookups.lookup(target_id)

    async def verify_candidates(self, target_id: str, candidate_ids: list[str]) -> list[FollowedAccount]:
        """Confirm which candidates actually block the target."""
        logger.info(f"Verifying {len(candidate_ids)} candidates")
        snapshot = await self.store.load()
        return await self.lookups.verify(snapshot, target_id, candidate_ids)

    async def fetch_profile_blocks(self, target_id: str) -> list[str]:
        """The target's exact block list."""
        return await self.lookups.fetch_profile_blocks(target_id)

    async def get_sync_status(self) -> SyncStatus:
        """The persisted sync status."""
        return await self.store.load_status()

    async def clear_cache(self) -> None:
        """
        Reset the cache and status, then schedule a fresh pass.

        Auth survives the reset so the scheduled pass can run. The pass
        starts after a short delay, so a status read issued right after
        this call still sees the reset. A pass already in flight is
        abandoned and the new one queues behind it.
        """
        logger.info("Clearing cache and resetting sync status")
        self.sync.invalidate()
        await self.store.save(self.store.create_empty(""))
        await self.store.reset_status()
        self.origin_cache.clear()

        logger.info("Cache cleared, scheduling full sync")
        self.sync.schedule_pass(delay=CLEAR_CACHE_SYNC_DELAY, wait=True)
