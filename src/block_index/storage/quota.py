"""
Quota guard for the persisted block cache.

Why Prune By Age?
-----------------
Every entry holds a filter sized from its account's block count, but the
entries that matter for space are the heavy blockers, and their filters
are all in the same ballpark. Evicting the least recently synced entry first
approximates least-recently-useful eviction without per-entry accounting.

When It Runs
------------
1. **Proactively**: before a pass, if the cache exceeds 90% of the ceiling
2. **Reactively**: when the backend rejects a save for capacity; prune and
   retry exactly once
"""

from __future__ import annotations

import json
import logging
from typing import Final

from block_index import metrics
from block_index.containers import AccountBlockCacheEntry, CacheSnapshot
from block_index.exceptions import CapacityExceededError

from .cache_store import BlockCacheStore

logger = logging.getLogger(__name__)

DEFAULT_CEILING_BYTES: Final[int] = 8 * 1024 * 1024
"""Cache size ceiling. Leaves headroom under a 10 MiB backend quota."""

DEFAULT_PROACTIVE_RATIO: Final[float] = 0.9
"""Fraction of the ceiling above which a pass prunes before starting."""


def estimate_size(snapshot: CacheSnapshot) -> int:
    """Size of the snapshot's serialized form in bytes."""
    return len(snapshot.to_json().encode())


def _entry_footprint(entry_id: str, entry: AccountBlockCacheEntry) -> int:
    """
    Bytes an entry contributes to the serialized snapshot.

    Counts the quoted key, the colon, the entry document and a separator.
    Exact for every entry except the last, where it overcounts by one.
    """
    key = json.dumps(entry_id, ensure_ascii=False)
    return len(key.encode()) + 1 + len(entry.to_json().encode()) + 1


def prune(snapshot: CacheSnapshot, ceiling_bytes: int) -> int:
    """
    Evict the oldest entries until the snapshot fits under a ceiling.

    Entries go in non-decreasing `last_synced_at` order; ties keep their
    iteration order. Mutates the snapshot in place.

    Args:
        snapshot: Snapshot to prune.
        ceiling_bytes: Target serialized size.

    Returns:
        Number of entries removed. Afterwards the snapshot fits under the
        ceiling, or no entries remain.
    """
    size = estimate_size(snapshot)
    if size <= ceiling_bytes:
        return 0

    # Stable sort: equal timestamps keep dictionary order.
    by_age = sorted(snapshot.entries.items(), key=lambda item: item[1].last_synced_at)

    pruned = 0
    for entry_id, entry in by_age:
        # The running size is an estimate; confirm before stopping.
        if size <= ceiling_bytes:
            size = estimate_size(snapshot)
            if size <= ceiling_bytes:
                break

        size -= _entry_footprint(entry_id, entry)
        del snapshot.entries[entry_id]
        pruned += 1

    return pruned


class QuotaGuard:
    """Keeps the persisted cache under its ceiling."""

    def __init__(
        self,
        store: BlockCacheStore,
        ceiling_bytes: int = DEFAULT_CEILING_BYTES,
        proactive_ratio: float = DEFAULT_PROACTIVE_RATIO,
    ) -> None:
        self.store = store
        self.ceiling_bytes = ceiling_bytes
        self.proactive_ratio = proactive_ratio

    def needs_proactive_prune(self, snapshot: CacheSnapshot) -> bool:
        """Whether the snapshot is close enough to the ceiling to prune now."""
        return estimate_size(snapshot) > self.ceiling_bytes * self.proactive_ratio

    def prune(self, snapshot: CacheSnapshot) -> int:
        """Prune to the ceiling and record how many entries were evicted."""
        count = prune(snapshot, self.ceiling_bytes)
        if count > 0:
            metrics.cache_entries_pruned.inc(count)
            logger.info(f"Pruned {count} entries from cache to fit size limit")
        return count

    async def safe_save(self, snapshot: CacheSnapshot) -> bool:
        """
        Save, recovering from one capacity rejection.

        On CapacityExceededError the snapshot is pruned in place and the save
        retried once. Any other error propagates.

        Returns:
            True if the snapshot landed, False if the retry also failed.
        """
        try:
            await self.store.save(snapshot)
        except CapacityExceededError as exc:
            logger.warning(f"Quota exceeded, pruning cache: {exc}")
            self.prune(snapshot)
            try:
                await self.store.save(snapshot)
            except CapacityExceededError as retry_exc:
                logger.error(f"Failed to save cache even after pruning: {retry_exc}")
                return False
            logger.info("Saved pruned cache")

        metrics.cache_checkpoints.inc()
        metrics.cache_entries.set(len(snapshot.entries))
        metrics.cache_size_bytes.set(estimate_size(snapshot))
        return True
