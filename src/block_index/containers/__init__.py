"""Data containers persisted or exchanged by the block index."""

from .account import AccountBlockCacheEntry, FollowedAccount
from .auth import AuthContext
from .blocking import BlockingInfo
from .snapshot import CacheSnapshot
from .status import SyncStatus

__all__ = [
    "AccountBlockCacheEntry",
    "AuthContext",
    "BlockingInfo",
    "CacheSnapshot",
    "FollowedAccount",
    "SyncStatus",
]
