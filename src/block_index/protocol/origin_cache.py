"""In-memory cache of resolved service origins."""

from __future__ import annotations

from collections.abc import Iterable


class OriginCache:
    """
    Maps account ids to the service origin hosting their records.

    Resolution costs a directory round-trip per account, so the cache lives
    for the whole process. It starts empty, is seeded from persisted cache
    entries at startup, and is cleared on reset. It is injected rather than
    module-global so tests get a fresh instance.
    """

    def __init__(self) -> None:
        self._origins: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._origins)

    def __contains__(self, account_id: str) -> bool:
        return account_id in self._origins

    def get(self, account_id: str) -> str | None:
        """Cached origin for an account, if any."""
        return self._origins.get(account_id)

    def put(self, account_id: str, origin: str) -> None:
        """Remember an account's origin."""
        self._origins[account_id] = origin

    def populate(self, entries: Iterable[tuple[str, str | None]]) -> int:
        """
        Seed the cache from persisted (account id, origin) pairs.

        Pairs without an origin are skipped.

        Returns:
            Number of origins added.
        """
        added = 0
        for account_id, origin in entries:
            if origin:
                self._origins[account_id] = origin
                added += 1
        return added

    def clear(self) -> None:
        """Forget every origin."""
        self._origins.clear()
