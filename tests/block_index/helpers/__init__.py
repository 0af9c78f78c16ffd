"""Test helpers for block index unit tests."""

from __future__ import annotations

from .builders import (
    SUBJECT_ID,
    did,
    make_account,
    make_auth,
    make_entry,
    make_padded_entry,
)
from .mocks import FakeClock, GatedProtocolClient, MockProtocolClient

__all__ = [
    "FakeClock",
    "GatedProtocolClient",
    "MockProtocolClient",
    "SUBJECT_ID",
    "did",
    "make_account",
    "make_auth",
    "make_entry",
    "make_padded_entry",
]
