# pylint: disable=missing-function-docstring  # protocol stubs use `...` bodies; names are self-documenting
"""KnowledgeBaseAPI: the structural contract SkaldClient satisfies.

The CLI and other adapters are written against this protocol so tests
and alternative backends can stand in via structural typing.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

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
from skald.stream import ChatStream


@runtime_checkable
class KnowledgeBaseAPI(Protocol):
    """Interface of the knowledge-base client."""

    # Memos
    async def create_memo(self, memo: MemoData) -> CreateMemoResponse: ...
    async def create_memo_from_file(self, file_data: MemoFileData) -> CreateMemoResponse: ...
    async def get_memo(self, memo_id: str, id_type: IdType = IdType.MEMO_UUID) -> Memo: ...
    async def list_memos(self, params: ListMemosParams | None = None) -> ListMemosResponse: ...
    async def update_memo(
        self, memo_id: str, update: UpdateMemoData, id_type: IdType = IdType.MEMO_UUID
    ) -> UpdateMemoResponse: ...
    async def delete_memo(self, memo_id: str, id_type: IdType = IdType.MEMO_UUID) -> DeleteMemoResponse: ...
    async def check_memo_status(
        self, memo_id: str, id_type: IdType = IdType.MEMO_UUID
    ) -> MemoStatusResponse: ...

    # Retrieval
    async def search(self, request: SearchRequest) -> SearchResponse: ...
    async def chat(self, request: ChatRequest) -> ChatResponse: ...
    def streamed_chat(self, request: ChatRequest) -> ChatStream: ...

    # Lifecycle
    async def close(self) -> None: ...
