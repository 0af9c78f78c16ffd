"""
Sync service configuration constants.

Operational parameters for a sync pass: batch sizes, pacing, lock timeouts
and the cache ceiling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from block_index.storage import DEFAULT_CEILING_BYTES, DEFAULT_PROACTIVE_RATIO

BATCH_SIZE: Final[int] = 5
"""Followed accounts whose block lists are fetched concurrently."""

SAVE_INTERVAL: Final[int] = 10
"""Batches between snapshot checkpoints."""

INTER_BATCH_DELAY: Final[float] = 0.5
"""Pause between batches, in seconds."""

STALE_LOCK_TIMEOUT: Final[float] = 5 * 60.0
"""Heartbeat age after which a held lock is presumed dead, in seconds."""

SYNC_INTERVAL: Final[float] = 60 * 60.0
"""Period of the scheduled pass, in seconds."""

INCOMPLETE_MIN_FOLLOWS: Final[int] = 100
"""Follow count above which a sparse cache counts as incomplete."""

INCOMPLETE_MIN_RATIO: Final[float] = 0.05
"""Entries-to-follows ratio below which a large cache counts as incomplete."""


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Tunables for the sync orchestrator."""

    batch_size: int = BATCH_SIZE
    """Followed accounts fetched concurrently per batch."""

    save_interval: int = SAVE_INTERVAL
    """Batches between checkpoints. The final batch always checkpoints."""

    inter_batch_delay: float = INTER_BATCH_DELAY
    """Pause between batches, in seconds."""

    stale_lock_timeout: float = STALE_LOCK_TIMEOUT
    """Heartbeat age at which a held lock is overridden, in seconds."""

    cache_ceiling_bytes: int = DEFAULT_CEILING_BYTES
    """Serialized snapshot size the quota guard prunes down to."""

    proactive_prune_ratio: float = DEFAULT_PROACTIVE_RATIO
    """Fraction of the ceiling above which a pass prunes before starting."""

    sync_interval: float = SYNC_INTERVAL
    """Period of the scheduled pass, in seconds."""

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.save_interval < 1:
            raise ValueError(f"save_interval must be positive, got {self.save_interval}")
        if self.sync_interval <= 0:
            raise ValueError(f"sync_interval must be positive, got {self.sync_interval}")
