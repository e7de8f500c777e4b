"""Async Python client for the Skald knowledge-base API."""

from skald.client import SkaldClient
from skald.config import ClientConfig
from skald.exceptions import (
    InvalidArgumentError,
    MalformedResponseError,
    RemoteError,
    SkaldError,
    UnknownEnumValueError,
)
from skald.models import (
    ChatRequest,
    ChatResponse,
    CreateMemoResponse,
    DeleteMemoResponse,
    Filter,
    FilterOperator,
    FilterType,
    IdType,
    ListMemosParams,
    ListMemosResponse,
    LLMProvider,
    Memo,
    MemoData,
    MemoFileData,
    MemoListItem,
    MemoStatus,
    MemoStatusResponse,
    QueryRewriteConfig,
    RAGConfig,
    ReferencesConfig,
    RerankingConfig,
    SearchRequest,
    SearchResponse,
    SearchResult,
    UpdateMemoData,
    UpdateMemoResponse,
    VectorSearchConfig,
)
from skald.stream import (
    ChatStream,
    ChatTranscript,
    DoneEvent,
    ReferencesEvent,
    StreamEvent,
    TokenEvent,
)

__version__ = "0.1.0"

__all__ = [
    "SkaldClient",
    "ClientConfig",
    # errors
    "SkaldError",
    "InvalidArgumentError",
    "RemoteError",
    "MalformedResponseError",
    "UnknownEnumValueError",
    # models
    "ChatRequest",
    "ChatResponse",
    "CreateMemoResponse",
    "DeleteMemoResponse",
    "Filter",
    "FilterOperator",
    "FilterType",
    "IdType",
    "ListMemosParams",
    "ListMemosResponse",
    "LLMProvider",
    "Memo",
    "MemoData",
    "MemoFileData",
    "MemoListItem",
    "MemoStatus",
    "MemoStatusResponse",
    "QueryRewriteConfig",
    "RAGConfig",
    "ReferencesConfig",
    "RerankingConfig",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "UpdateMemoData",
    "UpdateMemoResponse",
    "VectorSearchConfig",
    # streaming
    "ChatStream",
    "ChatTranscript",
    "DoneEvent",
    "ReferencesEvent",
    "StreamEvent",
    "TokenEvent",
]
