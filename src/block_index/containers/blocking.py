"""Lookup result for a viewed profile."""

from __future__ import annotations

from pydantic import Field

from block_index.types import CamelModel

from .account import FollowedAccount


class BlockingInfo(CamelModel):
    """Block relationships between a profile and the subject's follows."""

    blocked_by: list[FollowedAccount] = Field(default_factory=list)
    """Followed accounts that block the profile (possibly unverified)."""

    blocking: list[FollowedAccount] = Field(default_factory=list)
    """Followed accounts the profile blocks (always exact)."""
