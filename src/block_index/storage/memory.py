"""In-process key-value store with an optional quota."""

from __future__ import annotations

from block_index.exceptions import CapacityExceededError

from .backend import stored_size


class MemoryKeyValueStore:
    """
    Dictionary-backed implementation of the KeyValueStore protocol.

    Nothing survives the process. Used for tests and ephemeral runs.
    The quota is enforced the same way as the durable backend so that
    capacity handling can be exercised without touching disk.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        """
        Initialize an empty store.

        Args:
            quota_bytes: Maximum total stored bytes, or None for unlimited.
        """
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def used_bytes(self) -> int:
        """Total bytes currently stored."""
        return sum(stored_size(k, v) for k, v in self._data.items())

    async def get(self, key: str) -> str | None:
        """Retrieve a value."""
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        """Store a value, enforcing the quota."""
        if self.quota_bytes is not None:
            previous = self._data.get(key)
            attempted = self.used_bytes() + stored_size(key, value)
            if previous is not None:
                attempted -= stored_size(key, previous)
            if attempted > self.quota_bytes:
                raise CapacityExceededError(
                    key, attempted_bytes=attempted, quota_bytes=self.quota_bytes
                )

        self._data[key] = value

    async def clear(self) -> None:
        """Remove every key."""
        self._data.clear()
