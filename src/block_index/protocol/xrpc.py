"""
XRPC client for the public follow graph and per-account block records.

Three services are involved:

- The public AppView lists follows (`app.bsky.graph.getFollows`)
- Each account's own PDS lists its block records (`com.atproto.repo.listRecords`)
- The PLC directory maps a `did:plc:` id to the PDS hosting it

Block records are public, so no credential is sent anywhere. A PDS that
hides or fails to serve an account's blocks yields whatever was gathered
before the failure; an empty list is a normal answer.

Rate Limiting
-------------
HTTP 429 and transport errors are retried with exponential backoff.
After the last retry a 429 is returned to the caller like any other status.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from block_index.containers import FollowedAccount
from block_index.exceptions import MalformedResponseError, ProtocolError

from .client import FollowsPage
from .config import (
    BLOCK_COLLECTION,
    DEFAULT_PDS_URL,
    FOLLOWS_METHOD,
    FOLLOWS_PAGE_DELAY,
    INITIAL_BACKOFF,
    LIST_RECORDS_METHOD,
    MAX_RETRIES,
    PAGE_LIMIT,
    PDS_SERVICE_ID,
    PLC_DIRECTORY_URL,
    PUBLIC_API_URL,
    REQUEST_TIMEOUT,
)
from .origin_cache import OriginCache

logger = logging.getLogger(__name__)


class XrpcClient:
    """
    Protocol client over httpx.

    Owns its `httpx.AsyncClient` unless one is injected. Injected clients
    are left open on `close()`.
    """

    def __init__(
        self,
        origin_cache: OriginCache | None = None,
        *,
        api_url: str = PUBLIC_API_URL,
        plc_url: str = PLC_DIRECTORY_URL,
        default_origin: str = DEFAULT_PDS_URL,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = MAX_RETRIES,
        initial_backoff: float = INITIAL_BACKOFF,
        page_delay: float = FOLLOWS_PAGE_DELAY,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.origin_cache = origin_cache if origin_cache is not None else OriginCache()
        self.api_url = api_url.rstrip("/")
        self.plc_url = plc_url.rstrip("/")
        self.default_origin = default_origin.rstrip("/")
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.page_delay = page_delay

        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> XrpcClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def request_with_retry(
        self, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        """
        GET a URL, retrying rate limits and transport errors.

        Args:
            url: Absolute URL.
            params: Query parameters.

        Returns:
            The final response, whatever its status.

        Raises:
            ProtocolError: If the transport still fails after every retry.
        """
        backoff = self.initial_backoff
        attempt = 0

        while True:
            retries_left = attempt < self.max_retries
            try:
                response = await self._client.get(url, params=params)
            except httpx.RequestError as exc:
                if not retries_left:
                    raise ProtocolError(f"Network error requesting {url}: {exc}") from exc
                logger.debug(f"Request to {url} failed ({exc}), retrying in {backoff}s")
            else:
                if response.status_code != httpx.codes.TOO_MANY_REQUESTS or not retries_left:
                    return response
                logger.debug(f"Rate limited by {url}, retrying in {backoff}s")

            await asyncio.sleep(backoff)
            backoff *= 2
            attempt += 1

    @staticmethod
    def _json_object(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        """Decode a response body that must be a JSON object."""
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(endpoint, "body is not JSON") from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(endpoint, "body is not an object")
        return data

    # -------------------------------------------------------------------------
    # Follows
    # -------------------------------------------------------------------------

    async def list_follows(self, subject_id: str, cursor: str | None = None) -> FollowsPage:
        """
        Fetch one page of follows from the public AppView.

        Raises:
            ProtocolError: On a non-OK status.
            MalformedResponseError: If the body lacks a follow array.
        """
        params = {"actor": subject_id, "limit": str(PAGE_LIMIT)}
        if cursor:
            params["cursor"] = cursor

        response = await self.request_with_retry(
            f"{self.api_url}/xrpc/{FOLLOWS_METHOD}", params=params
        )
        if not response.is_success:
            raise ProtocolError(f"Failed to get follows: {response.status_code}")

        data = self._json_object(response, FOLLOWS_METHOD)
        raw_follows = data.get("follows")
        if not isinstance(raw_follows, list):
            raise MalformedResponseError(FOLLOWS_METHOD, "missing 'follows' array")

        items: list[FollowedAccount] = []
        for raw in raw_follows:
            if not isinstance(raw, dict):
                raise MalformedResponseError(FOLLOWS_METHOD, "follow is not an object")
            try:
                items.append(
                    FollowedAccount(
                        id=raw["did"],
                        handle=raw["handle"],
                        display_name=raw.get("displayName"),
                        avatar_ref=raw.get("avatar"),
                    )
                )
            except (KeyError, ValidationError) as exc:
                raise MalformedResponseError(FOLLOWS_METHOD, f"bad follow: {exc}") from exc

        next_cursor = data.get("cursor")
        return FollowsPage(
            items=items,
            cursor=next_cursor if isinstance(next_cursor, str) and next_cursor else None,
        )

    async def list_all_follows(self, subject_id: str) -> list[FollowedAccount]:
        """Walk every follow page, deduplicating by id."""
        follows: list[FollowedAccount] = []
        seen: set[str] = set()
        cursor: str | None = None

        while True:
            page = await self.list_follows(subject_id, cursor)
            for account in page.items:
                if account.id not in seen:
                    seen.add(account.id)
                    follows.append(account)

            cursor = page.cursor
            if cursor is None:
                break
            await asyncio.sleep(self.page_delay)

        logger.debug(f"Fetched {len(follows)} follows for {subject_id}")
        return follows

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    async def list_blocks(self, account_id: str, origin_hint: str | None = None) -> list[str]:
        """
        Fetch an account's block subjects from its PDS.

        The PDS is the hint if given, else the resolved origin, else the
        default PDS. A non-OK page ends pagination and returns the blocks
        gathered so far.

        Raises:
            ProtocolError: If the transport fails after every retry.
            MalformedResponseError: If a page lacks a record array.
        """
        origin = origin_hint or await self.resolve_origin(account_id) or self.default_origin
        url = f"{origin.rstrip('/')}/xrpc/{LIST_RECORDS_METHOD}"

        blocks: list[str] = []
        cursor: str | None = None

        while True:
            params = {"repo": account_id, "collection": BLOCK_COLLECTION, "limit": str(PAGE_LIMIT)}
            if cursor:
                params["cursor"] = cursor

            response = await self.request_with_retry(url, params=params)

            # Hidden blocks, missing repos and PDS outages all land here.
            if not response.is_success:
                return blocks

            data = self._json_object(response, LIST_RECORDS_METHOD)
            records = data.get("records", [])
            if not isinstance(records, list):
                raise MalformedResponseError(LIST_RECORDS_METHOD, "'records' is not an array")

            for record in records:
                value = record.get("value") if isinstance(record, dict) else None
                subject = value.get("subject") if isinstance(value, dict) else None
                if isinstance(subject, str) and subject:
                    blocks.append(subject)

            next_cursor = data.get("cursor")
            if not isinstance(next_cursor, str) or not next_cursor:
                return blocks
            cursor = next_cursor

    # -------------------------------------------------------------------------
    # Origin Resolution
    # -------------------------------------------------------------------------

    async def resolve_origin(self, account_id: str) -> str | None:
        """
        Resolve the PDS hosting a `did:plc:` account.

        Results are cached for the life of the origin cache. Other DID
        methods and every failure resolve to None.
        """
        if not account_id.startswith("did:plc:"):
            return None

        cached = self.origin_cache.get(account_id)
        if cached:
            return cached

        try:
            response = await self.request_with_retry(f"{self.plc_url}/{account_id}")
        except ProtocolError as exc:
            logger.debug(f"Could not resolve origin for {account_id}: {exc}")
            return None
        if not response.is_success:
            return None

        try:
            document = self._json_object(response, self.plc_url)
        except MalformedResponseError:
            return None

        services = document.get("service")
        if not isinstance(services, list):
            return None

        for service in services:
            if not isinstance(service, dict) or service.get("id") != PDS_SERVICE_ID:
                continue
            endpoint = service.get("serviceEndpoint")
            if isinstance(endpoint, str) and endpoint:
                self.origin_cache.put(account_id, endpoint)
                return endpoint

        return None
