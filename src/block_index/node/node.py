"""
Block index node orchestrator.

Wires together storage, the protocol client, the engine, the periodic
scheduler and the API server, and runs them with structured concurrency.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from block_index.api import ApiServer, ApiServerConfig
from block_index.engine import BlockIndexEngine
from block_index.protocol import OriginCache, XrpcClient
from block_index.protocol.config import DEFAULT_PDS_URL, PLC_DIRECTORY_URL, PUBLIC_API_URL
from block_index.storage import BlockCacheStore, SQLiteKeyValueStore
from block_index.sync import SyncConfig, SyncScheduler

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_QUOTA_BYTES: Final[int] = 10 * 1024 * 1024
"""Backend quota. The cache ceiling sits below it so status writes still fit."""


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """
    Configuration for a block index node.

    Provides all parameters needed to wire a node.
    """

    database_path: Path | str
    """
    Path to the SQLite database file.

    Use ":memory:" for an in-memory database (testing only).
    """

    api_config: ApiServerConfig | None = field(default=None)
    """Optional API server configuration. If None, API server is disabled."""

    sync_config: SyncConfig = field(default_factory=SyncConfig)
    """Batching, pacing, quota and period of sync passes."""

    api_url: str = field(default=PUBLIC_API_URL)
    """AppView serving follow lists."""

    plc_url: str = field(default=PLC_DIRECTORY_URL)
    """Directory resolving account origins."""

    default_origin: str = field(default=DEFAULT_PDS_URL)
    """PDS used when an origin cannot be resolved."""

    storage_quota_bytes: int | None = field(default=DEFAULT_STORAGE_QUOTA_BYTES)
    """Backend quota. None disables enforcement."""

    time_fn: Callable[[], float] = field(default=time.time)
    """Time source (injectable for deterministic testing)."""


@dataclass(slots=True)
class Node:
    """
    Block index node orchestrator.

    Initializes all services from configuration.
    Runs them concurrently with structured concurrency.
    """

    engine: BlockIndexEngine
    """Request handlers over the cache."""

    scheduler: SyncScheduler
    """Periodic sync trigger."""

    client: XrpcClient
    """HTTP client shared by sync and lookups."""

    backend: SQLiteKeyValueStore
    """Database reference for lifecycle management."""

    api_server: ApiServer | None = field(default=None)
    """Optional API server for the message surface."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Event signaling shutdown request."""

    @classmethod
    def from_config(cls, config: NodeConfig) -> Node:
        """
        Create a fully-wired node.

        Args:
            config: Node configuration.

        Returns:
            A node ready to run.
        """
        backend = SQLiteKeyValueStore(config.database_path, quota_bytes=config.storage_quota_bytes)
        store = BlockCacheStore(backend, time_fn=config.time_fn)

        # The client resolves origins into this cache.
        #
        # The engine seeds it from persisted entries and clears it on reset.
        origin_cache = OriginCache()
        client = XrpcClient(
            origin_cache,
            api_url=config.api_url,
            plc_url=config.plc_url,
            default_origin=config.default_origin,
        )

        engine = BlockIndexEngine(store, client, origin_cache, config=config.sync_config)
        scheduler = SyncScheduler(engine.sync, interval=config.sync_config.sync_interval)

        api_server = None
        if config.api_config is not None:
            api_server = ApiServer(config=config.api_config, engine=engine)

        return cls(
            engine=engine,
            scheduler=scheduler,
            client=client,
            backend=backend,
            api_server=api_server,
        )

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run all services until shutdown.

        Returns when shutdown is requested or a service fails.

        Args:
            install_signal_handlers: Whether to handle SIGINT/SIGTERM.
                Disable for testing or non-main threads.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        await self.engine.start()

        # Run services concurrently.
        #
        # A separate task monitors the shutdown signal.
        # When triggered, it stops all services.
        # The finally block releases the client and the database.
        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self.scheduler.run())
                if self.api_server is not None:
                    tg.create_task(self.api_server.run())
                tg.create_task(self._wait_shutdown())
        finally:
            await self.engine.shutdown()
            await self.client.close()
            self.backend.close()
            logger.info("Node stopped")

    def _install_signal_handlers(self) -> None:
        """
        Install signal handlers for graceful shutdown.

        Handles SIGINT (Ctrl+C) and SIGTERM (process termination).

        Silently ignores errors if handlers cannot be installed.
        This happens in non-main threads or embedded contexts.
        """
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._shutdown.set)
        except (ValueError, RuntimeError):
            # Cannot add handlers outside main thread.
            pass

    async def _wait_shutdown(self) -> None:
        """Wait for shutdown signal then stop services."""
        await self._shutdown.wait()

        self.scheduler.stop()
        if self.api_server is not None:
            self.api_server.stop()

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        """Check if node is currently running."""
        return not self._shutdown.is_set()
