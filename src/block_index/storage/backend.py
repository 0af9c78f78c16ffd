"""
Abstract key-value interface for durable storage.

Defines the Protocol that all backing stores must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """
    Protocol for the durable key-value backing store.

    Values are serialized JSON documents. Backends may enforce a total
    size quota; a write that would exceed it raises CapacityExceededError
    and leaves the previous value in place.
    """

    async def get(self, key: str) -> str | None:
        """
        Retrieve a value.

        Args:
            key: Storage key.

        Returns:
            The stored value, or None if absent.
        """
        ...

    async def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key: Storage key.
            value: Serialized document.

        Raises:
            CapacityExceededError: If the write would exceed the quota.
        """
        ...

    async def clear(self) -> None:
        """Remove every key."""
        ...


def stored_size(key: str, value: str) -> int:
    """Bytes a key-value pair counts against a quota."""
    return len(key.encode()) + len(value.encode())
