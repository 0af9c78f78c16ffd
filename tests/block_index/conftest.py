"""
Shared pytest fixtures for all block index tests.

Provides core fixtures used across multiple test modules.
Import these fixtures automatically via pytest discovery.
"""

from __future__ import annotations

import pytest

from block_index.engine import BlockIndexEngine
from block_index.protocol import OriginCache
from block_index.storage import BlockCacheStore, MemoryKeyValueStore
from block_index.sync import SyncConfig, SyncService
from tests.block_index.helpers import FakeClock, MockProtocolClient


@pytest.fixture
def clock() -> FakeClock:
    """Controllable wall clock."""
    return FakeClock()


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    """Unbounded in-memory backend."""
    return MemoryKeyValueStore()


@pytest.fixture
def store(backend: MemoryKeyValueStore, clock: FakeClock) -> BlockCacheStore:
    """Block cache store over the in-memory backend."""
    return BlockCacheStore(backend, time_fn=clock)


@pytest.fixture
def client() -> MockProtocolClient:
    """Scripted protocol client with no follows."""
    return MockProtocolClient()


@pytest.fixture
def origin_cache() -> OriginCache:
    """Fresh origin cache."""
    return OriginCache()


@pytest.fixture
def fast_config() -> SyncConfig:
    """Sync config without pacing delays."""
    return SyncConfig(inter_batch_delay=0.0)


@pytest.fixture
def service(
    store: BlockCacheStore, client: MockProtocolClient, fast_config: SyncConfig
) -> SyncService:
    """Sync service over the in-memory store and scripted client."""
    return SyncService(store=store, client=client, config=fast_config)


@pytest.fixture
def engine(
    store: BlockCacheStore,
    client: MockProtocolClient,
    origin_cache: OriginCache,
    fast_config: SyncConfig,
) -> BlockIndexEngine:
    """Engine over the in-memory store and scripted client."""
    return BlockIndexEngine(store, client, origin_cache, fast_config)
