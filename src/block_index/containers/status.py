"""Persisted sync progress and lock state."""

from __future__ import annotations

from pydantic import Field

from block_index.types import CamelModel


class SyncStatus(CamelModel):
    """
    Process-wide sync status.

    Persisted because the hosting process may be terminated mid-pass.
    `running` doubles as a lock: a pass that dies leaves it set, and the
    next pass detects this through the age of `last_heartbeat_at`.
    """

    total_count: int = 0
    """Follows in the current or last pass."""

    synced_count: int = 0
    """Follows whose block list was fetched in the current or last pass."""

    last_sync_completed_at: float = 0.0
    """Unix timestamp of the last completed pass; 0 if never."""

    running: bool = False
    """Whether a pass holds the lock."""

    last_heartbeat_at: float = 0.0
    """Unix timestamp of the last status write."""

    errors: list[str] = Field(default_factory=list)
    """Errors accumulated during the current or last pass."""

    def heartbeat_age(self, now: float) -> float:
        """Seconds since the last status write."""
        return now - self.last_heartbeat_at

    def is_stale(self, now: float, timeout: float) -> bool:
        """Whether a held lock has outlived its heartbeat timeout."""
        return self.running and self.heartbeat_age(now) >= timeout
