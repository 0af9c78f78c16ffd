"""The persisted block cache document."""

from __future__ import annotations

from pydantic import Field

from block_index.types import CamelModel

from .account import AccountBlockCacheEntry, FollowedAccount


class CacheSnapshot(CamelModel):
    """
    Everything the engine knows about the subject's follow graph.

    Every key in `entries` named a followed account when it was written.
    The follow list may later diverge (unfollows) without pruning; stale
    entries leave only through quota pruning or a full reset.
    """

    followed_accounts: list[FollowedAccount] = Field(default_factory=list)
    """The subject's follows, in the order the remote returned them."""

    entries: dict[str, AccountBlockCacheEntry] = Field(default_factory=dict)
    """Block filters keyed by followed account id."""

    last_full_sync_at: float = 0.0
    """Unix timestamp of the last checkpoint save; 0 if never synced."""

    owner_id: str = ""
    """Subject the cache belongs to. A different subject invalidates it."""

    @classmethod
    def empty(cls, owner_id: str) -> CacheSnapshot:
        """Create an empty snapshot owned by `owner_id`."""
        return cls(owner_id=owner_id)

    def followed_by_id(self) -> dict[str, FollowedAccount]:
        """Index the follow list by account id."""
        return {account.id: account for account in self.followed_accounts}

    def is_incomplete(self, min_follows: int, min_ratio: float) -> bool:
        """
        Heuristic for a pass that never finished.

        A large follow list with almost no entries means the block lists were
        never fetched. Small graphs are excluded since they may legitimately
        have no blockers.
        """
        follows = len(self.followed_accounts)
        return follows > min_follows and len(self.entries) < follows * min_ratio
