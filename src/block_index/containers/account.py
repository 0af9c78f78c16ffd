"""Followed accounts and their cached block filters."""

from __future__ import annotations

from pydantic import Field

from block_index.bloom import ProbabilisticSet
from block_index.types import CamelModel, StrictBaseModel


class FollowedAccount(StrictBaseModel):
    """
    An account the subject follows.

    Identity is `id`. Handle, display name and avatar are denormalized
    display data and may go stale between passes.
    """

    id: str
    """Opaque stable account identifier (a DID)."""

    handle: str
    """Human-readable handle at the time of the last fetch."""

    display_name: str | None = None
    """Optional display name."""

    avatar_ref: str | None = None
    """Optional avatar URL or blob reference."""


class AccountBlockCacheEntry(CamelModel):
    """
    Cached, compressed block list for a single followed account.

    Only accounts with at least one block get an entry. Most accounts block
    no one, so omitting them is the single largest space saving.
    """

    id: str
    """Identifier of the followed account this entry describes."""

    handle: str
    """Handle captured when the entry was written."""

    display_name: str | None = None
    """Display name captured when the entry was written."""

    avatar_ref: str | None = None
    """Avatar captured when the entry was written."""

    origin: str | None = None
    """Resolved service origin hosting the account's records, if known."""

    probabilistic_set: ProbabilisticSet
    """Bloom filter over the ids this account blocks."""

    block_count: int = Field(ge=1)
    """Number of blocks the filter was built from."""

    last_synced_at: float
    """Unix timestamp of the fetch that produced this entry."""

    def as_followed_account(self, fallback: FollowedAccount | None = None) -> FollowedAccount:
        """
        Project the entry to display data.

        Entry fields win; the follow record fills in missing optional fields.
        """
        return FollowedAccount(
            id=self.id,
            handle=self.handle or (fallback.handle if fallback else self.id),
            display_name=self.display_name or (fallback.display_name if fallback else None),
            avatar_ref=self.avatar_ref or (fallback.avatar_ref if fallback else None),
        )
