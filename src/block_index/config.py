"""
Global configuration for the block index.

Environment-specific settings read once at import. CLI flags override them.
"""

import os

from block_index.protocol.config import DEFAULT_PDS_URL, PLC_DIRECTORY_URL, PUBLIC_API_URL

DB_PATH = os.environ.get("BLOCK_INDEX_DB_PATH", "block_index.sqlite3")
"""SQLite database file. Defaults to the working directory."""

API_URL = os.environ.get("BLOCK_INDEX_API_URL", PUBLIC_API_URL)
"""AppView serving follow lists."""

PLC_URL = os.environ.get("BLOCK_INDEX_PLC_URL", PLC_DIRECTORY_URL)
"""Directory resolving account origins."""

PDS_URL = os.environ.get("BLOCK_INDEX_PDS_URL", DEFAULT_PDS_URL)
"""PDS used when an origin cannot be resolved."""

if not DB_PATH.strip():
    raise ValueError("Invalid BLOCK_INDEX_DB_PATH environment variable: empty path")
