"""Authenticated subject context."""

from __future__ import annotations

from pydantic import Field

from block_index.types import StrictBaseModel


class AuthContext(StrictBaseModel):
    """
    Credentials and identity of the subject.

    Produced by the collaborator that extracts the session from the host;
    the engine only consumes the persisted copy. Credentials are excluded
    from repr so they never leak into logs or error strings.
    """

    subject_id: str
    """Identifier of the authenticated account."""

    access_credential: str = Field(repr=False)
    """Bearer access token."""

    refresh_credential: str | None = Field(default=None, repr=False)
    """Optional refresh token."""

    service_origin: str
    """Origin of the subject's own service."""

    handle: str | None = None
    """Optional handle of the subject."""
