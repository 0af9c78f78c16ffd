"""Remote protocol access: follow graph, block records and origin resolution."""

from .client import FollowsPage, ProtocolClient
from .origin_cache import OriginCache
from .xrpc import XrpcClient

__all__ = [
    "FollowsPage",
    "OriginCache",
    "ProtocolClient",
    "XrpcClient",
]
