"""Exception hierarchy for the block index engine."""

from __future__ import annotations


class BlockIndexError(Exception):
    """
    Base exception for all block index errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class StorageError(BlockIndexError):
    """Base class for persistence failures."""


class CapacityExceededError(StorageError):
    """
    Raised when the backing store rejects a write because of its quota.

    Callers recover by pruning the cache and retrying once.

    Attributes:
        key: The storage key being written.
        attempted_bytes: Total stored bytes the write would have produced.
        quota_bytes: The backend quota.
    """

    def __init__(self, key: str, *, attempted_bytes: int, quota_bytes: int) -> None:
        self.key = key
        self.attempted_bytes = attempted_bytes
        self.quota_bytes = quota_bytes

        super().__init__(
            f"Storage quota exceeded writing '{key}': "
            f"{attempted_bytes} bytes > {quota_bytes} bytes"
        )


class ProtocolError(BlockIndexError):
    """
    Raised when the remote protocol cannot satisfy a request.

    Transient failures are retried by the client before this surfaces.
    """


class MalformedResponseError(ProtocolError):
    """
    Raised when a remote response does not have the expected shape.

    Attributes:
        endpoint: The XRPC method or URL that returned the payload.
        detail: Description of what was wrong.
    """

    def __init__(self, endpoint: str, detail: str) -> None:
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"Malformed response from {endpoint}: {detail}")
