"""
Protocol client interface consumed by the engine.

The engine never speaks HTTP itself. It depends on this structural
interface, which the XRPC client implements and tests replace with a
scripted double.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from block_index.containers import FollowedAccount


@dataclass(frozen=True, slots=True)
class FollowsPage:
    """One page of a follow listing."""

    items: list[FollowedAccount] = field(default_factory=list)
    """Follows on this page."""

    cursor: str | None = None
    """Token for the next page, or None when exhausted."""


class ProtocolClient(Protocol):
    """
    Protocol for remote graph queries.

    Implementers should:
    - Retry rate limiting and transient failures internally
    - Return an empty block list when blocks are hidden or inaccessible
    - Raise ProtocolError subclasses when a request cannot be satisfied
    """

    default_origin: str
    """Service origin used for accounts whose origin cannot be resolved."""

    async def list_follows(self, subject_id: str, cursor: str | None = None) -> FollowsPage:
        """
        Fetch one page of the accounts `subject_id` follows.

        Args:
            subject_id: Account whose follows to list.
            cursor: Token from the previous page, or None for the first.

        Returns:
            The page and the next cursor.
        """
        ...

    async def list_all_follows(self, subject_id: str) -> list[FollowedAccount]:
        """
        Fetch the complete follow list.

        Returns:
            Every follow, deduplicated by id, in first-seen order.
        """
        ...

    async def list_blocks(self, account_id: str, origin_hint: str | None = None) -> list[str]:
        """
        Fetch the ids an account blocks.

        Args:
            account_id: Account whose block records to list.
            origin_hint: Known service origin, skipping resolution.

        Returns:
            Blocked account ids. Empty if blocks are hidden.
        """
        ...

    async def resolve_origin(self, account_id: str) -> str | None:
        """
        Resolve the service origin hosting an account's records.

        Returns:
            The origin URL, or None if it cannot be resolved.
        """
        ...
