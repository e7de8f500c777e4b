"""Async client for the Skald knowledge-base API.

One coroutine per remote capability. Arguments are validated before
any network activity; non-2xx answers become RemoteError with the raw
body, and 2xx bodies that do not decode become MalformedResponseError.
"""

from __future__ import annotations

import json
import logging
import mimetypes
from contextlib import aclosing
from typing import Any, AsyncGenerator, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from skald.codec import decode, encode
from skald.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig
from skald.exceptions import InvalidArgumentError, RemoteError
from skald.models import (
    ChatRequest,
    ChatResponse,
    CreateMemoResponse,
    DeleteMemoResponse,
    IdType,
    ListMemosParams,
    ListMemosResponse,
    Memo,
    MemoData,
    MemoFileData,
    MemoStatusResponse,
    SearchRequest,
    SearchResponse,
    UpdateMemoData,
    UpdateMemoResponse,
)
from skald.stream import ChatStream, StreamEvent, parse_event_stream, split_lines
from skald.transport import Transport

logger = logging.getLogger(__name__)

MEMO_PATH = "/api/v1/memo"
SEARCH_PATH = "/api/v1/search"
CHAT_PATH = "/api/v1/chat"

M = TypeVar("M", bound=BaseModel)


def _require(value: Any, name: str) -> None:
    if value is None:
        raise InvalidArgumentError(f"{name} cannot be None")


def _require_text(value: str | None, name: str) -> None:
    if value is None or not value.strip():
        raise InvalidArgumentError(f"{name} cannot be null or empty")


def _memo_path(memo_id: str, suffix: str = "") -> str:
    return f"{MEMO_PATH}/{quote(memo_id, safe='')}{suffix}"


def _id_params(id_type: IdType) -> dict[str, str] | None:
    if id_type == IdType.REFERENCE_ID:
        return {"id_type": IdType.REFERENCE_ID.value}
    return None


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    logger.warning(
        "Skald API returned %d for %s %s",
        response.status_code,
        response.request.method,
        response.request.url.path,
    )
    raise RemoteError(response.status_code, response.text)


def _decode(response: httpx.Response, shape: type[M]) -> M:
    _raise_for_status(response)
    return decode(response.content, shape)


class SkaldClient:
    """Client for the Skald API.

    Pass ``http_client`` to share an existing httpx.AsyncClient; it is
    then left open on close(). Safe for concurrent use: calls share only
    the connection pool.

    Usage:
        async with SkaldClient(api_key) as skald:
            created = await skald.create_memo(MemoData(title=..., content=...))
            async with skald.streamed_chat(ChatRequest(query="...")) as stream:
                async for text in stream.text_stream:
                    print(text, end="")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._transport = Transport(
            api_key, base_url, http_client=http_client, timeout=timeout
        )

    @classmethod
    def from_env(cls, http_client: httpx.AsyncClient | None = None) -> SkaldClient:
        """Build a client from SKALD_* environment variables."""
        config = ClientConfig.from_env()
        return cls(
            config.api_key,
            config.base_url,
            http_client=http_client,
            timeout=config.timeout,
        )

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    async def __aenter__(self) -> SkaldClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- memos --

    async def create_memo(self, memo: MemoData) -> CreateMemoResponse:
        """Create a memo. The server summarizes, chunks and indexes it."""
        _require(memo, "memo")
        _require_text(memo.title, "title")
        _require_text(memo.content, "content")
        response = await self._transport.send("POST", MEMO_PATH, content=encode(memo))
        return _decode(response, CreateMemoResponse)

    async def create_memo_from_file(self, file_data: MemoFileData) -> CreateMemoResponse:
        """Create a memo by uploading a document as multipart form data.

        Metadata and tags travel as JSON-encoded form fields.
        """
        _require(file_data, "file_data")
        _require_text(file_data.filename, "filename")
        if not file_data.file:
            raise InvalidArgumentError("file cannot be empty")

        form: dict[str, str] = {}
        for name in ("title", "reference_id", "source"):
            value = getattr(file_data, name)
            if value is not None:
                form[name] = value
        if file_data.metadata is not None:
            form["metadata"] = json.dumps(file_data.metadata)
        if file_data.tags is not None:
            form["tags"] = json.dumps(file_data.tags)

        mime_type = mimetypes.guess_type(file_data.filename)[0] or "application/octet-stream"
        response = await self._transport.send(
            "POST",
            MEMO_PATH,
            data=form,
            files={"file": (file_data.filename, file_data.file, mime_type)},
        )
        return _decode(response, CreateMemoResponse)

    async def get_memo(
        self, memo_id: str, id_type: IdType = IdType.MEMO_UUID
    ) -> Memo:
        """Fetch a memo by UUID or by the caller's reference id."""
        _require_text(memo_id, "memo_id")
        response = await self._transport.send(
            "GET", _memo_path(memo_id), params=_id_params(id_type)
        )
        return _decode(response, Memo)

    async def list_memos(
        self, params: ListMemosParams | None = None
    ) -> ListMemosResponse:
        """List memos in the project, one page at a time."""
        query = params.to_query() if params is not None else {}
        response = await self._transport.send("GET", MEMO_PATH, params=query or None)
        return _decode(response, ListMemosResponse)

    async def update_memo(
        self,
        memo_id: str,
        update: UpdateMemoData,
        id_type: IdType = IdType.MEMO_UUID,
    ) -> UpdateMemoResponse:
        """Patch a memo. New content makes the server reprocess it."""
        _require_text(memo_id, "memo_id")
        _require(update, "update")
        response = await self._transport.send(
            "PATCH",
            _memo_path(memo_id),
            params=_id_params(id_type),
            content=encode(update),
        )
        return _decode(response, UpdateMemoResponse)

    async def delete_memo(
        self, memo_id: str, id_type: IdType = IdType.MEMO_UUID
    ) -> DeleteMemoResponse:
        """Delete a memo and everything derived from it.

        An empty 2xx body counts as success.
        """
        _require_text(memo_id, "memo_id")
        response = await self._transport.send(
            "DELETE", _memo_path(memo_id), params=_id_params(id_type)
        )
        _raise_for_status(response)
        if not response.content.strip():
            return DeleteMemoResponse(ok=True)
        return decode(response.content, DeleteMemoResponse)

    async def check_memo_status(
        self, memo_id: str, id_type: IdType = IdType.MEMO_UUID
    ) -> MemoStatusResponse:
        """Report whether a memo is still processing, done, or failed."""
        _require_text(memo_id, "memo_id")
        response = await self._transport.send(
            "GET", _memo_path(memo_id, "/status"), params=_id_params(id_type)
        )
        return _decode(response, MemoStatusResponse)

    # -- retrieval --

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Semantic search over memo chunks, optionally filtered."""
        _require(request, "request")
        _require_text(request.query, "query")
        response = await self._transport.send("POST", SEARCH_PATH, content=encode(request))
        return _decode(response, SearchResponse)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Ask the knowledge base a question and wait for the full answer."""
        _require(request, "request")
        _require_text(request.query, "query")
        body = encode(request.model_copy(update={"stream": False}))
        response = await self._transport.send("POST", CHAT_PATH, content=body)
        return _decode(response, ChatResponse)

    def streamed_chat(self, request: ChatRequest) -> ChatStream:
        """Ask a question and receive the answer as it is generated.

        Validation happens here; the request is sent on first iteration.
        A non-2xx status raises RemoteError before any event is parsed.
        """
        _require(request, "request")
        _require_text(request.query, "query")
        body = encode(request.model_copy(update={"stream": True}))
        return ChatStream(self._stream_events(body))

    async def _stream_events(self, body: bytes) -> AsyncGenerator[StreamEvent, None]:
        async with self._transport.stream("POST", CHAT_PATH, content=body) as response:
            if not response.is_success:
                await response.aread()
                _raise_for_status(response)
            lines = split_lines(response.aiter_text())
            async with aclosing(parse_event_stream(lines)) as events:
                async for event in events:
                    yield event

    async def close(self) -> None:
        """Release the connection pool if this client created it."""
        await self._transport.close()
