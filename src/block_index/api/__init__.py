"""
API server module for the message surface and node status endpoints.

Provides HTTP endpoints for:
- /v0/messages - Dispatch engine messages
- /v0/health - Health check endpoint
- /metrics - Prometheus metrics endpoint
"""

from .server import ApiServer, ApiServerConfig

__all__ = [
    "ApiServer",
    "ApiServerConfig",
]
