"""Diagnostics over the cached bloom filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from block_index.containers import CacheSnapshot

SATURATION_THRESHOLD: Final[float] = 0.5
"""Estimated false-positive rate above which a filter counts as saturated."""


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Aggregate shape of the filters a lookup consults."""

    entry_count: int = 0
    """Followed accounts with a cached filter."""

    total_blocks: int = 0
    """Sum of their block counts."""

    min_blocks: int = 0
    """Smallest block count, or 0 with no entries."""

    avg_blocks: float = 0.0
    """Mean block count, or 0 with no entries."""

    max_blocks: int = 0
    """Largest block count, or 0 with no entries."""

    avg_fp_rate: float = 0.0
    """Mean estimated false-positive rate."""

    saturated_count: int = 0
    """Filters whose estimated false-positive rate exceeds 50%."""

    def __str__(self) -> str:
        return (
            f"{self.entry_count} filters, {self.total_blocks} blocks "
            f"(avg={self.avg_blocks:.0f}, min={self.min_blocks}, max={self.max_blocks}), "
            f"avg FP rate={self.avg_fp_rate * 100:.1f}%, saturated={self.saturated_count}"
        )


def cache_stats(snapshot: CacheSnapshot) -> CacheStats:
    """
    Summarize the filters of currently followed accounts.

    Entries for accounts no longer followed are not consulted by lookups
    and are left out.
    """
    counts: list[int] = []
    fp_total = 0.0
    saturated = 0

    for account in snapshot.followed_accounts:
        entry = snapshot.entries.get(account.id)
        if entry is None:
            continue
        counts.append(entry.block_count)
        fp_rate = entry.probabilistic_set.estimate_false_positive_rate()
        fp_total += fp_rate
        if fp_rate > SATURATION_THRESHOLD:
            saturated += 1

    if not counts:
        return CacheStats()

    return CacheStats(
        entry_count=len(counts),
        total_blocks=sum(counts),
        min_blocks=min(counts),
        avg_blocks=sum(counts) / len(counts),
        max_blocks=max(counts),
        avg_fp_rate=fp_total / len(counts),
        saturated_count=saturated,
    )
