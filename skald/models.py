"""Request and response models for the Skald API.

Attribute names are the wire names. Request models are frozen: the
client derives per-call variants with ``model_copy`` instead of
mutating what the caller passed in.
"""

from __future__ import annotations

from datetime import datetime
from enum import auto
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, model_validator

from skald.codec import WireEnum, wire_enum


# -- Enums --

class IdType(WireEnum):
    """Which identifier a memo lookup uses."""

    MEMO_UUID = auto()
    REFERENCE_ID = auto()


class MemoStatus(WireEnum):
    """Server-side processing state of a memo."""

    PROCESSING = auto()
    PROCESSED = auto()
    ERROR = auto()


class FilterOperator(WireEnum):
    EQ = auto()
    NEQ = auto()
    CONTAINS = auto()
    STARTSWITH = auto()
    ENDSWITH = auto()
    IN = auto()
    NOT_IN = auto()


class FilterType(WireEnum):
    NATIVE_FIELD = auto()  # title, source, client_reference_id, tags
    CUSTOM_METADATA = auto()


class LLMProvider(WireEnum):
    OPENAI = auto()
    ANTHROPIC = auto()
    GROQ = auto()


_LIST_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True)


# -- Filters --

class Filter(_Request):
    """One predicate narrowing search or chat context.

    ``in`` and ``not_in`` take a list value; every other operator takes
    a scalar. Multiple filters are ANDed by the server.
    """

    field: str
    operator: Annotated[FilterOperator, wire_enum(FilterOperator)]
    value: JsonValue
    filter_type: Annotated[FilterType, wire_enum(FilterType)] = FilterType.NATIVE_FIELD

    @model_validator(mode="after")
    def _check_value_shape(self) -> Filter:
        if self.operator in _LIST_OPERATORS:
            if not isinstance(self.value, list):
                raise ValueError(f"operator '{self.operator}' requires a list value")
        elif self.value is None or isinstance(self.value, (list, dict)):
            raise ValueError(f"operator '{self.operator}' requires a scalar value")
        return self


# -- Memo requests --

class MemoData(_Request):
    title: str
    content: str
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    reference_id: str | None = None
    tags: list[str] | None = None
    source: str | None = None
    expiration_date: str | None = None  # ISO 8601


class MemoFileData(_Request):
    """A document to upload; the server extracts the memo content."""

    file: bytes
    filename: str
    title: str | None = None  # server falls back to the filename
    reference_id: str | None = None
    metadata: dict[str, JsonValue] | None = None
    tags: list[str] | None = None
    source: str | None = None


class UpdateMemoData(_Request):
    """Fields to change. Updating content triggers reprocessing."""

    title: str | None = None
    content: str | None = None
    metadata: dict[str, JsonValue] | None = None
    client_reference_id: str | None = None
    source: str | None = None
    expiration_date: str | None = None


class ListMemosParams(_Request):
    page: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1, le=100)

    def to_query(self) -> dict[str, int]:
        """Query-string parameters, leaving out unset ones."""
        return self.model_dump(exclude_none=True)


# -- Search / chat requests --

class SearchRequest(_Request):
    query: str
    limit: int | None = Field(default=None, ge=1, le=50)
    filters: list[Filter] | None = None


class QueryRewriteConfig(_Request):
    enabled: bool = False


class VectorSearchConfig(_Request):
    top_k: int | None = Field(default=None, ge=1, le=200)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class RerankingConfig(_Request):
    enabled: bool = False
    top_k: int | None = None


class ReferencesConfig(_Request):
    enabled: bool = False


class RAGConfig(_Request):
    llm_provider: Annotated[LLMProvider | None, wire_enum(LLMProvider)] = None
    query_rewrite: QueryRewriteConfig | None = None
    vector_search: VectorSearchConfig | None = None
    reranking: RerankingConfig | None = None
    references: ReferencesConfig | None = None


class ChatRequest(_Request):
    query: str
    stream: bool | None = None  # set by the client per call
    chat_id: str | None = None  # continue an existing conversation
    system_prompt: str | None = None
    filters: list[Filter] | None = None
    rag_config: RAGConfig | None = None
    project_id: str | None = None  # required with token authentication


# -- Responses --

class CreateMemoResponse(BaseModel):
    ok: bool
    memo_uuid: str


class UpdateMemoResponse(BaseModel):
    ok: bool


class DeleteMemoResponse(BaseModel):
    ok: bool = True


class MemoTag(BaseModel):
    uuid: str
    tag: str


class MemoChunk(BaseModel):
    uuid: str
    chunk_content: str
    chunk_index: int


class Memo(BaseModel):
    uuid: str
    created_at: datetime
    updated_at: datetime
    title: str
    content: str
    summary: str | None = None
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    client_reference_id: str | None = None
    source: str | None = None
    type: str | None = None
    expiration_date: str | None = None
    archived: bool = False
    pending: bool = False
    tags: list[MemoTag] = Field(default_factory=list)
    chunks: list[MemoChunk] = Field(default_factory=list)


class MemoListItem(BaseModel):
    uuid: str
    created_at: datetime
    updated_at: datetime
    title: str
    summary: str | None = None
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    client_reference_id: str | None = None


class ListMemosResponse(BaseModel):
    count: int
    next: str | None = None
    previous: str | None = None
    results: list[MemoListItem]


class MemoStatusResponse(BaseModel):
    status: Annotated[MemoStatus, wire_enum(MemoStatus)]
    error_reason: str | None = None


class SearchResult(BaseModel):
    memo_uuid: str
    chunk_uuid: str
    memo_title: str
    memo_summary: str | None = None
    content_snippet: str
    chunk_content: str
    distance: float | None = None  # 0-2, lower is closer; None for non-semantic matches


class SearchResponse(BaseModel):
    results: list[SearchResult]


class ChatResponse(BaseModel):
    ok: bool
    response: str
    intermediate_steps: list[JsonValue] = Field(default_factory=list)
    chat_id: str | None = None
    references: dict[str, Any] | None = None
