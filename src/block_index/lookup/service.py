"""
Profile lookups against the cached filters.

Two-Phase Protocol
------------------
Filters can say "possibly blocks" for an account that does not. Answering
from filters alone is instant but may over-report; confirming every
candidate costs one remote fetch each. The lookup splits the difference:

1. **Candidates**: test the target against every followed account's filter.
   No network. The result contains every true blocker plus a few false
   positives.
2. **Verification**: on demand, fetch each candidate's current block list
   and keep only those that contain the target.

Verified blockers are always a subset of the candidates they were drawn from.
The reverse direction ("whom does this profile block") needs no filters:
the target's own block list is fetched directly.
"""

from __future__ import annotations

import asyncio
import logging

from block_index import metrics
from block_index.containers import BlockingInfo, CacheSnapshot, FollowedAccount
from block_index.protocol import ProtocolClient
from block_index.storage import BlockCacheStore

from .stats import cache_stats

logger = logging.getLogger(__name__)


class LookupService:
    """Answers "who among my follows blocks X" and "whom does X block"."""

    def __init__(self, store: BlockCacheStore, client: ProtocolClient) -> None:
        self.store = store
        self.client = client

    @staticmethod
    def candidates(snapshot: CacheSnapshot, target_id: str) -> list[FollowedAccount]:
        """
        Followed accounts whose filter might contain the target.

        Never misses an actual blocker whose entry is current. Follow order
        is preserved.
        """
        found: list[FollowedAccount] = []
        for account in snapshot.followed_accounts:
            entry = snapshot.entries.get(account.id)
            if entry is not None and entry.probabilistic_set.might_contain(target_id):
                found.append(entry.as_followed_account(account))
        return found

    async def verify(
        self,
        snapshot: CacheSnapshot | None,
        target_id: str,
        candidate_ids: list[str],
    ) -> list[FollowedAccount]:
        """
        Confirm candidates by fetching their current block lists.

        Candidates are checked concurrently. A candidate whose fetch fails
        is dropped. Input order is preserved.

        Args:
            snapshot: Cache used for origin hints and display data.
            target_id: The profile being looked up.
            candidate_ids: Accounts to check.

        Returns:
            Candidates whose block list contains the target.
        """
        entries = snapshot.entries if snapshot is not None else {}
        followed = snapshot.followed_by_id() if snapshot is not None else {}

        async def confirm(candidate_id: str) -> bool:
            entry = entries.get(candidate_id)
            try:
                blocks = await self.client.list_blocks(
                    candidate_id,
                    origin_hint=entry.origin if entry is not None else None,
                )
            except Exception as exc:
                logger.info(f"Could not verify {candidate_id}: {exc}")
                return False
            if target_id not in blocks:
                logger.debug(f"False positive: {candidate_id}")
                return False
            return True

        results = await asyncio.gather(*(confirm(cid) for cid in candidate_ids))

        confirmed: list[FollowedAccount] = []
        for candidate_id, ok in zip(candidate_ids, results, strict=True):
            if not ok:
                continue
            entry = entries.get(candidate_id)
            follow = followed.get(candidate_id)
            if entry is not None:
                confirmed.append(entry.as_followed_account(follow))
            elif follow is not None:
                confirmed.append(follow)
            else:
                confirmed.append(FollowedAccount(id=candidate_id, handle=candidate_id))

        metrics.verified_blockers.inc(len(confirmed))
        logger.info(f"Verified {len(confirmed)}/{len(candidate_ids)} actual blockers")
        return confirmed

    @staticmethod
    def blocking(snapshot: CacheSnapshot, profile_blocks: list[str]) -> list[FollowedAccount]:
        """Followed accounts the profile blocks, in follow order."""
        blocked = set(profile_blocks)
        return [account for account in snapshot.followed_accounts if account.id in blocked]

    async def fetch_profile_blocks(self, target_id: str) -> list[str]:
        """
        Fetch the target's exact block list.

        Raises:
            ProtocolError: If the fetch fails.
        """
        return await self.client.list_blocks(target_id)

    async def lookup(self, target_id: str, verified: bool = False) -> BlockingInfo:
        """
        Blocking relationships between the subject's follows and a profile.

        Args:
            target_id: The profile being viewed.
            verified: Confirm candidates remotely before reporting them.
                The default reports unverified candidates, which is instant
                but may include false positives.

        Returns:
            Blocked-by and blocking lists. Both are empty with no cache.
        """
        metrics.lookups.inc()

        snapshot = await self.store.load()
        if snapshot is None:
            logger.info("Cache state: empty")
            return BlockingInfo()

        stats = cache_stats(snapshot)
        logger.info(f"Cache state: {len(snapshot.followed_accounts)} follows, {stats}")

        found = self.candidates(snapshot, target_id)
        logger.info(f"Bloom filter candidates: {len(found)} accounts might block {target_id}")

        if verified:
            blocked_by = await self.verify(snapshot, target_id, [c.id for c in found])
        else:
            blocked_by = found

        try:
            profile_blocks = await self.fetch_profile_blocks(target_id)
        except Exception as exc:
            logger.info(f"Could not fetch profile blocks: {exc}")
            profile_blocks = []

        info = BlockingInfo(blocked_by=blocked_by, blocking=self.blocking(snapshot, profile_blocks))
        logger.info(
            f"Blocking info for {target_id}: {len(info.blocked_by)} blocked by"
            f"{'' if verified else ' (unverified)'}, {len(info.blocking)} blocking"
        )
        return info
