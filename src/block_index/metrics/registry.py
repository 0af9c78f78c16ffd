"""
Metric registry using prometheus_client.

Provides pre-defined metrics for the block index engine.
Exposes metrics in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for block index metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Sync Passes
# -----------------------------------------------------------------------------

sync_passes = Counter(
    "block_index_sync_passes_total",
    "Sync passes started",
    registry=REGISTRY,
)

sync_pass_time = Histogram(
    "block_index_sync_pass_seconds",
    "Sync pass duration",
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0),
    registry=REGISTRY,
)

accounts_synced = Counter(
    "block_index_accounts_synced_total",
    "Followed accounts whose block list was fetched",
    registry=REGISTRY,
)

account_sync_failures = Counter(
    "block_index_account_sync_failures_total",
    "Followed accounts whose block list fetch failed",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------

cache_checkpoints = Counter(
    "block_index_cache_checkpoints_total",
    "Snapshot saves that landed",
    registry=REGISTRY,
)

cache_entries_pruned = Counter(
    "block_index_cache_entries_pruned_total",
    "Cache entries evicted by the quota guard",
    registry=REGISTRY,
)

cache_size_bytes = Gauge(
    "block_index_cache_size_bytes",
    "Serialized size of the last saved snapshot",
    registry=REGISTRY,
)

cache_entries = Gauge(
    "block_index_cache_entries",
    "Entries in the last saved snapshot",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------

lookups = Counter(
    "block_index_lookups_total",
    "Profile lookups answered",
    registry=REGISTRY,
)

verified_blockers = Counter(
    "block_index_verified_blockers_total",
    "Candidates confirmed by exact verification",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
