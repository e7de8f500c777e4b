"""HTTP transport for the Skald API.

Wraps one httpx.AsyncClient. Status codes are exposed, not judged:
deciding what a 4xx means is the client's job. Cancellation is plain
asyncio task cancellation; httpx aborts the request and hands the
connection back to the pool.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from skald.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from skald.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


class Transport:
    """Authenticated request sender with buffered and streaming modes.

    A caller-supplied ``http_client`` is borrowed and never closed here;
    otherwise the transport creates its own and closes it in close().
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not api_key or not api_key.strip():
            raise InvalidArgumentError("API key cannot be null or empty")
        self.base_url = base_url.rstrip("/")
        self._auth = {"Authorization": f"Bearer {api_key}"}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def owns_client(self) -> bool:
        return self._owns_client

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self, content: bytes | None, accept: str) -> dict[str, str]:
        # Per-request headers so a borrowed client is never mutated.
        headers = {**self._auth, "Accept": accept}
        if content is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        return headers

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and buffer the whole body."""
        response = await self._client.request(
            method,
            self._url(path),
            params=params,
            content=content,
            data=data,
            files=files,
            headers=self._headers(content, JSON_CONTENT_TYPE),
        )
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return response

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        content: bytes | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Send a request and yield the response as soon as headers arrive.

        The body stays unread; the response is closed when the block
        exits, whether the body was drained, abandoned or cancelled.
        """
        async with self._client.stream(
            method,
            self._url(path),
            content=content,
            headers=self._headers(content, EVENT_STREAM_CONTENT_TYPE),
        ) as response:
            logger.debug("%s %s -> %d (streaming)", method, path, response.status_code)
            yield response

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
