"""Two-phase profile lookups: filter candidates, then remote verification."""

from .service import LookupService
from .stats import SATURATION_THRESHOLD, CacheStats, cache_stats

__all__ = [
    "CacheStats",
    "LookupService",
    "SATURATION_THRESHOLD",
    "cache_stats",
]
