"""Builders for test containers."""

from __future__ import annotations

from block_index.bloom import ProbabilisticSet
from block_index.containers import AccountBlockCacheEntry, AuthContext, FollowedAccount

SUBJECT_ID = "did:plc:subject"
"""Subject used by default in auth fixtures."""


def did(name: str) -> str:
    """PLC-style identifier for a short name."""
    return f"did:plc:{name}"


def make_account(name: str, display_name: str | None = None) -> FollowedAccount:
    """A followed account whose id and handle derive from `name`."""
    return FollowedAccount(id=did(name), handle=f"{name}.test", display_name=display_name)


def make_auth(subject_id: str = SUBJECT_ID) -> AuthContext:
    """Auth context for a subject."""
    return AuthContext(
        subject_id=subject_id,
        access_credential="access-secret",
        refresh_credential="refresh-secret",
        service_origin="https://pds.example",
    )


def make_entry(
    account: FollowedAccount,
    blocks: list[str],
    last_synced_at: float = 0.0,
    origin: str | None = None,
) -> AccountBlockCacheEntry:
    """Cache entry built from an exact block list."""
    return AccountBlockCacheEntry(
        id=account.id,
        handle=account.handle,
        display_name=account.display_name,
        avatar_ref=account.avatar_ref,
        origin=origin,
        probabilistic_set=ProbabilisticSet.from_items(blocks),
        block_count=len(blocks),
        last_synced_at=last_synced_at,
    )


def make_padded_entry(entry_id: str, payload_bytes: int, last_synced_at: float) -> AccountBlockCacheEntry:
    """
    Entry whose filter carries `payload_bytes` zero bytes.

    Used to build snapshots of a chosen serialized size without hashing.
    """
    return AccountBlockCacheEntry(
        id=entry_id,
        handle=f"{entry_id}.test",
        probabilistic_set=ProbabilisticSet(
            bits=bytes(payload_bytes),
            size_bits=payload_bytes * 8,
            hash_count=10,
            element_count=1,
        ),
        block_count=1,
        last_synced_at=last_synced_at,
    )
