"""Tests for message dispatch."""

from __future__ import annotations

import json

import pytest

from block_index.containers import CacheSnapshot
from block_index.engine import BlockIndexEngine, Message, MessageResponse, MessageType, dispatch
from block_index.storage import BlockCacheStore
from tests.block_index.helpers import (
    SUBJECT_ID,
    MockProtocolClient,
    did,
    make_account,
    make_auth,
    make_entry,
)

TARGET = did("target")


def _message(payload: dict[str, object]) -> Message:
    """Parse a message the way it arrives over the wire."""
    return Message.model_validate_json(json.dumps(payload))


@pytest.fixture
async def cached(store: BlockCacheStore, client: MockProtocolClient) -> None:
    """A cache where amy blocks the target and the target blocks amy."""
    amy = make_account("amy")
    await store.save(
        CacheSnapshot(
            owner_id=SUBJECT_ID,
            followed_accounts=[amy],
            entries={amy.id: make_entry(amy, [TARGET])},
        )
    )
    client.blocks = {amy.id: [TARGET], TARGET: [amy.id]}


class TestMessageParsing:
    """Tests for the wire form of messages."""

    def test_camel_case_fields(self) -> None:
        """Wire field names are camelCase."""
        message = _message(
            {"type": "GET_VERIFIED_BLOCKERS", "targetId": TARGET, "candidateIds": ["a", "b"]}
        )
        assert message.target_id == TARGET
        assert message.candidate_ids == ["a", "b"]

    def test_auth_payload(self) -> None:
        """An auth payload parses into an auth context."""
        message = _message(
            {
                "type": "SET_AUTH",
                "auth": {
                    "subjectId": SUBJECT_ID,
                    "accessCredential": "access-secret",
                    "refreshCredential": "refresh-secret",
                    "serviceOrigin": "https://pds.example",
                },
            }
        )
        assert message.auth == make_auth()

    def test_failure_response_shape(self) -> None:
        """Failures serialize with only success and error."""
        assert json.loads(MessageResponse.failure("boom").to_json()) == {
            "success": False,
            "error": "boom",
        }


class TestDispatch:
    """Tests for routing messages to the engine."""

    async def test_unknown_type(self, engine: BlockIndexEngine) -> None:
        """An unrecognized kind is a structured error."""
        response = await dispatch(engine, Message(type="PING"))
        assert response.success is False
        assert response.error == "Unknown message type"

    async def test_set_auth(self, engine: BlockIndexEngine, store: BlockCacheStore) -> None:
        """Auth is stored and the request succeeds."""
        response = await dispatch(engine, Message(type="SET_AUTH", auth=make_auth()))
        await engine.sync.wait_idle()

        assert response.success is True
        assert await store.load_auth() == make_auth()

    async def test_set_auth_without_payload_is_ignored(
        self, engine: BlockIndexEngine, store: BlockCacheStore
    ) -> None:
        """A missing auth payload is a successful no-op."""
        response = await dispatch(engine, Message(type=MessageType.SET_AUTH.value))
        assert response.success is True
        assert await store.load_auth() is None

    @pytest.mark.usefixtures("cached")
    async def test_get_blocking_info(self, engine: BlockIndexEngine) -> None:
        """A lookup returns both directions."""
        response = await dispatch(engine, Message(type="GET_BLOCKING_INFO", target_id=TARGET))

        assert response.success is True
        assert response.blocking_info is not None
        assert [a.id for a in response.blocking_info.blocked_by] == [did("amy")]
        assert [a.id for a in response.blocking_info.blocking] == [did("amy")]

        document = json.loads(response.to_json())
        assert document["blockingInfo"]["blockedBy"][0]["handle"] == "amy.test"

    @pytest.mark.usefixtures("cached")
    async def test_get_verified_blockers(self, engine: BlockIndexEngine) -> None:
        """Verification returns confirmed accounts."""
        response = await dispatch(
            engine,
            Message(type="GET_VERIFIED_BLOCKERS", target_id=TARGET, candidate_ids=[did("amy")]),
        )
        assert response.success is True
        assert [a.id for a in response.verified_blockers or []] == [did("amy")]

    @pytest.mark.usefixtures("cached")
    async def test_fetch_profile_blocks(self, engine: BlockIndexEngine) -> None:
        """The raw block list is returned."""
        response = await dispatch(engine, Message(type="FETCH_PROFILE_BLOCKS", target_id=TARGET))
        assert response.success is True
        assert response.blocks == [did("amy")]

    @pytest.mark.parametrize(
        ("message", "error"),
        [
            (Message(type="GET_BLOCKING_INFO"), "Missing targetId"),
            (Message(type="FETCH_PROFILE_BLOCKS", target_id=""), "Missing targetId"),
            (Message(type="GET_VERIFIED_BLOCKERS", target_id=TARGET), "Missing targetId or candidateIds"),
            (Message(type="GET_VERIFIED_BLOCKERS", candidate_ids=[]), "Missing targetId or candidateIds"),
        ],
    )
    async def test_missing_fields(
        self, engine: BlockIndexEngine, message: Message, error: str
    ) -> None:
        """Requests without their required fields fail cleanly."""
        response = await dispatch(engine, message)
        assert response.success is False
        assert response.error == error

    async def test_trigger_sync(self, engine: BlockIndexEngine, store: BlockCacheStore) -> None:
        """A triggered pass runs in the background."""
        await store.store_auth(make_auth())

        response = await dispatch(engine, Message(type="TRIGGER_SYNC"))
        await engine.sync.wait_idle()

        assert response.success is True
        assert (await store.load()) is not None

    async def test_get_sync_status(self, engine: BlockIndexEngine, store: BlockCacheStore) -> None:
        """The persisted status is returned."""
        await store.update_status(total_count=7)

        response = await dispatch(engine, Message(type="GET_SYNC_STATUS"))

        assert response.success is True
        assert response.sync_status is not None
        assert response.sync_status.total_count == 7

    async def test_clear_cache(self, engine: BlockIndexEngine, store: BlockCacheStore) -> None:
        """Clearing resets the status."""
        await store.update_status(total_count=7, running=True)

        response = await dispatch(engine, Message(type="CLEAR_CACHE"))

        assert response.success is True
        assert (await store.load_status()).total_count == 0
        await engine.sync.cancel_pending()

    async def test_handler_errors_become_failures(
        self, engine: BlockIndexEngine, client: MockProtocolClient
    ) -> None:
        """An exception inside a handler is reported, not raised."""
        client.fail(TARGET, "PDS unreachable")

        response = await dispatch(engine, Message(type="FETCH_PROFILE_BLOCKS", target_id=TARGET))

        assert response.success is False
        assert response.error == "PDS unreachable"
