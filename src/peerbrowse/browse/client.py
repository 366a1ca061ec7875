"""Peer service client: user share browsing over the slskd REST API.

Endpoints:
  GET /api/v0/users/{username}/browse         full share listing (slow)
  GET /api/v0/users/{username}/browse/status  progress of the listing

Created: 2026-10-19
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from peerbrowse.browse.errors import BrowseFailure
from peerbrowse.browse.models import BrowseResult, BrowseStatus
from peerbrowse.config import get_settings

logger = logging.getLogger(__name__)

_API_PREFIX = "/api/v0"


@runtime_checkable
class BrowseBackend(Protocol):
    """What a browse session needs from the peer service."""

    async def browse(self, username: str) -> BrowseResult: ...

    async def get_browse_status(self, username: str) -> BrowseStatus: ...


class UsersClient:
    """HTTP client for the peer service's user endpoints.

    Usage:
        async with UsersClient() as client:
            result = await client.browse("alice")
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._http = http
        self._owns_http = http is None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            headers = {"X-API-Key": self.api_key} if self.api_key else {}
            self._http = httpx.AsyncClient(
                base_url=self.api_url, headers=headers, timeout=self.timeout
            )
        return self._http

    def _user_path(self, username: str, suffix: str) -> str:
        return f"{_API_PREFIX}/users/{quote(username, safe='')}/{suffix}"

    async def browse(self, username: str) -> BrowseResult:
        """Fetch the complete share listing of ``username``.

        Raises:
            BrowseFailure: transport error, non-2xx response or unreadable body.
        """
        logger.info("Browsing %s", username)
        try:
            resp = await self._client().get(self._user_path(username, "browse"))
        except httpx.HTTPError as e:
            raise BrowseFailure(username, str(e) or type(e).__name__) from e

        if resp.is_error:
            raise BrowseFailure(
                username, resp.text or resp.reason_phrase, status_code=resp.status_code
            )

        try:
            result = BrowseResult.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise BrowseFailure(username, f"Invalid browse response: {e}") from e

        logger.info(
            "Received %d directories (%d locked) from %s",
            len(result.directories),
            len(result.lockedDirectories),
            username,
        )
        return result

    async def get_browse_status(self, username: str) -> BrowseStatus:
        """Progress of the in-flight browse of ``username``.

        The service answers 404 until the peer starts sending; that counts
        as 0 percent.
        """
        resp = await self._client().get(self._user_path(username, "browse/status"))
        if resp.status_code == 404:
            return BrowseStatus()
        resp.raise_for_status()
        return BrowseStatus.model_validate(resp.json())

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> UsersClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
