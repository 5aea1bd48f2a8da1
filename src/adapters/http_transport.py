"""aiohttp-backed JSON transport used by the feed adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from core.errors import TransportError

LOGGER = logging.getLogger(__name__)

USER_AGENT = "anime-herald/1.0 (news notifier)"


class AiohttpTransport:
    """Fetch JSON over a shared aiohttp session.

    Every failure mode (status, connection, timeout, bad body) is reported
    as TransportError so adapters only need one except clause.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = 20.0,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    async def _read_json(self, response: aiohttp.ClientResponse, url: str) -> Any:
        if response.status >= 400:
            body = await response.text()
            raise TransportError(f"HTTP {response.status} from {url}: {body[:200]}")
        try:
            return await response.json(content_type=None)
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {url}") from exc

    async def get_json(self, url: str) -> Any:
        LOGGER.debug("GET %s", url)
        try:
            async with self._session.get(url, headers=self._headers, timeout=self._timeout) as response:
                return await self._read_json(response, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"GET {url} failed: {exc.__class__.__name__}") from exc

    async def graphql(self, url: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        payload = {"query": query, "variables": variables or {}}
        LOGGER.debug("POST %s (graphql)", url)
        try:
            async with self._session.post(
                url, json=payload, headers=self._headers, timeout=self._timeout
            ) as response:
                body = await self._read_json(response, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"POST {url} failed: {exc.__class__.__name__}") from exc

        if not isinstance(body, dict):
            raise TransportError(f"Unexpected GraphQL response from {url}")
        errors = body.get("errors")
        if errors:
            raise TransportError(f"GraphQL errors from {url}: {errors}")
        return body.get("data")
