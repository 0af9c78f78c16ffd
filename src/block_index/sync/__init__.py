"""
Sync orchestration for the block cache.

A pass fetches the subject's follows, then every follow's block list, and
writes one bloom-filter entry per account that blocks anyone.
"""

from .config import SyncConfig
from .scheduler import SyncScheduler
from .service import SyncProgress, SyncService
from .states import SyncState

__all__ = [
    "SyncConfig",
    "SyncProgress",
    "SyncScheduler",
    "SyncService",
    "SyncState",
]
