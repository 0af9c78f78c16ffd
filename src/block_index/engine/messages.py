"""
Request/response message surface.

Hosts talk to the engine by sending a Message and receiving a
MessageResponse. Both serialize to camelCase JSON:

    {"type": "GET_BLOCKING_INFO", "targetId": "did:plc:..."}
    {"success": true, "blockingInfo": {"blockedBy": [...], "blocking": [...]}}

Failures never raise out of dispatch; they come back as
`{"success": false, "error": "..."}`.
"""

from __future__ import annotations

import logging
from enum import Enum

from block_index.containers import AuthContext, BlockingInfo, FollowedAccount, SyncStatus
from block_index.types import CamelModel

from .engine import BlockIndexEngine

logger = logging.getLogger(__name__)


class MessageType(Enum):
    """Request kinds understood by the engine."""

    SET_AUTH = "SET_AUTH"
    GET_BLOCKING_INFO = "GET_BLOCKING_INFO"
    GET_VERIFIED_BLOCKERS = "GET_VERIFIED_BLOCKERS"
    FETCH_PROFILE_BLOCKS = "FETCH_PROFILE_BLOCKS"
    TRIGGER_SYNC = "TRIGGER_SYNC"
    GET_SYNC_STATUS = "GET_SYNC_STATUS"
    CLEAR_CACHE = "CLEAR_CACHE"


class Message(CamelModel):
    """
    A request to the engine.

    `type` is a plain string so that unknown kinds reach dispatch and get a
    structured error instead of a validation failure.
    """

    type: str
    """One of the MessageType values."""

    target_id: str | None = None
    """Profile being looked up."""

    candidate_ids: list[str] | None = None
    """Candidates to verify."""

    auth: AuthContext | None = None
    """Auth to store."""


class MessageResponse(CamelModel):
    """The engine's answer to a Message."""

    success: bool
    """Whether the request was handled."""

    error: str | None = None
    """Failure description when `success` is false."""

    blocking_info: BlockingInfo | None = None
    """Lookup result."""

    blocks: list[str] | None = None
    """Raw block ids of a profile."""

    sync_status: SyncStatus | None = None
    """Persisted sync status."""

    verified_blockers: list[FollowedAccount] | None = None
    """Candidates confirmed by verification."""

    @classmethod
    def failure(cls, error: str) -> MessageResponse:
        """Build an error response."""
        return cls(success=False, error=error)


async def dispatch(engine: BlockIndexEngine, message: Message) -> MessageResponse:
    """
    Route a message to its handler.

    Args:
        engine: Engine handling the request.
        message: The request.

    Returns:
        The response. Handler exceptions become error responses.
    """
    logger.debug(f"Received message: {message.type}")

    try:
        kind = MessageType(message.type)
    except ValueError:
        return MessageResponse.failure("Unknown message type")

    try:
        if kind is MessageType.SET_AUTH:
            if message.auth is not None:
                await engine.set_auth(message.auth)
            return MessageResponse(success=True)

        if kind is MessageType.GET_BLOCKING_INFO:
            if not message.target_id:
                return MessageResponse.failure("Missing targetId")
            info = await engine.get_lookup(message.target_id)
            return MessageResponse(success=True, blocking_info=info)

        if kind is MessageType.GET_VERIFIED_BLOCKERS:
            if not message.target_id or message.candidate_ids is None:
                return MessageResponse.failure("Missing targetId or candidateIds")
            verified = await engine.verify_candidates(message.target_id, message.candidate_ids)
            return MessageResponse(success=True, verified_blockers=verified)

        if kind is MessageType.FETCH_PROFILE_BLOCKS:
            if not message.target_id:
                return MessageResponse.failure("Missing targetId")
            blocks = await engine.fetch_profile_blocks(message.target_id)
            return MessageResponse(success=True, blocks=blocks)

        if kind is MessageType.TRIGGER_SYNC:
            engine.trigger_sync()
            return MessageResponse(success=True)

        if kind is MessageType.GET_SYNC_STATUS:
            status = await engine.get_sync_status()
            return MessageResponse(success=True, sync_status=status)

        await engine.clear_cache()
        return MessageResponse(success=True)

    except Exception as exc:
        logger.error(f"Message handler error ({kind.value}): {exc}")
        return MessageResponse.failure(str(exc) or type(exc).__name__)
