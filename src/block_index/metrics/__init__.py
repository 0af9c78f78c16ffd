"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking sync and lookup behavior.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    account_sync_failures,
    accounts_synced,
    cache_checkpoints,
    cache_entries,
    cache_entries_pruned,
    cache_size_bytes,
    generate_metrics,
    lookups,
    sync_pass_time,
    sync_passes,
    verified_blockers,
)

__all__ = [
    "REGISTRY",
    "account_sync_failures",
    "accounts_synced",
    "cache_checkpoints",
    "cache_entries",
    "cache_entries_pruned",
    "cache_size_bytes",
    "generate_metrics",
    "lookups",
    "sync_pass_time",
    "sync_passes",
    "verified_blockers",
]
