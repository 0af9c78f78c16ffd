"""
Remote protocol endpoints and request limits.
"""

from __future__ import annotations

from typing import Final

PUBLIC_API_URL: Final[str] = "https://public.api.bsky.app"
"""Public AppView serving the follow graph."""

DEFAULT_PDS_URL: Final[str] = "https://bsky.social"
"""Service origin used when an account's origin cannot be resolved."""

PLC_DIRECTORY_URL: Final[str] = "https://plc.directory"
"""Directory resolving `did:plc:` identifiers to their documents."""

FOLLOWS_METHOD: Final[str] = "app.bsky.graph.getFollows"
"""XRPC method listing an account's follows."""

LIST_RECORDS_METHOD: Final[str] = "com.atproto.repo.listRecords"
"""XRPC method listing records in a repository collection."""

BLOCK_COLLECTION: Final[str] = "app.bsky.graph.block"
"""Collection holding block records."""

PDS_SERVICE_ID: Final[str] = "#atproto_pds"
"""Service id of the personal data server in a DID document."""

PAGE_LIMIT: Final[int] = 100
"""Maximum items requested per page."""

FOLLOWS_PAGE_DELAY: Final[float] = 0.1
"""Pause between follow-list pages, in seconds."""

MAX_RETRIES: Final[int] = 3
"""Retries after the first attempt on rate limiting or transport errors."""

INITIAL_BACKOFF: Final[float] = 1.0
"""Delay before the first retry, in seconds. Doubles each retry."""

REQUEST_TIMEOUT: Final[float] = 30.0
"""Per-request timeout in seconds."""
