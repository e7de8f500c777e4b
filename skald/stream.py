"""Streamed chat: event types, frame parsing, and the ChatStream handle.

The chat endpoint answers ``stream: true`` requests with
``text/event-stream`` style lines:

    : ping
    data: {"type": "token", "content": "Hel"}
    data: {"type": "references", "content": "{\"1\": {...}}"}
    data: {"type": "done", "chat_id": "..."}

Blank lines, ``:`` keep-alives and unknown fields (``event:``, ``id:``)
are skipped. A data payload that is not a JSON object with a known
``type`` is dropped without raising, so one corrupt frame never aborts
an answer. ``done`` is the last event: nothing after it is read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncGenerator, AsyncIterable, AsyncIterator, Union

logger = logging.getLogger(__name__)

DATA_MARKER = "data:"
COMMENT_MARKER = ":"


@dataclass(frozen=True)
class TokenEvent:
    """A fragment of generated answer text."""

    text: str


@dataclass(frozen=True)
class ReferencesEvent:
    """Citation references, keyed by citation number."""

    payload: Any

    @property
    def references(self) -> dict[str, Any]:
        """The payload as a mapping, decoding a JSON-encoded string if needed."""
        payload = self.payload
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError:
                logger.debug("Undecodable references payload: %.200s", payload)
                return {}
        return payload if isinstance(payload, dict) else {}


@dataclass(frozen=True)
class DoneEvent:
    """End of the answer. ``chat_id`` continues the conversation."""

    chat_id: str | None = None


StreamEvent = Union[TokenEvent, ReferencesEvent, DoneEvent]


class FrameKind(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    DATA = "data"
    OTHER = "other"


def classify_line(line: str) -> tuple[FrameKind, str]:
    """Classify one protocol line. Only DATA frames carry a payload."""
    line = line.rstrip("\r\n")
    if not line.strip():
        return FrameKind.BLANK, ""
    if line.lstrip().startswith(COMMENT_MARKER):
        return FrameKind.COMMENT, ""
    if line.startswith(DATA_MARKER):
        payload = line[len(DATA_MARKER):]
        if payload.startswith(" "):
            payload = payload[1:]
        return FrameKind.DATA, payload
    return FrameKind.OTHER, ""


async def split_lines(chunks: AsyncIterable[str]) -> AsyncGenerator[str, None]:
    """Re-assemble decoded text chunks into lines.

    Lines end at a line feed only, with a trailing carriage return
    dropped. Other Unicode line breaks (U+2028, U+0085, ...) may appear
    unescaped inside JSON strings and stay part of the line. A final unterminated line is
    still yielded.
    """
    iterator = aiter(chunks)
    buffer = ""
    try:
        async for chunk in iterator:
            buffer += chunk
            *lines, buffer = buffer.split("\n")
            for line in lines:
                yield line.removesuffix("\r")
        if buffer:
            yield buffer.removesuffix("\r")
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


def decode_event(payload: str) -> StreamEvent | None:
    """Turn a data payload into an event, or None if it is unusable."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    kind = data.get("type")
    if kind == "token":
        text = data.get("content")
        if text is None:
            text = ""
        if not isinstance(text, str):
            return None
        return TokenEvent(text=text)
    if kind == "references":
        return ReferencesEvent(payload=data.get("content"))
    if kind == "done":
        chat_id = data.get("chat_id")
        if chat_id is not None and not isinstance(chat_id, str):
            return None
        return DoneEvent(chat_id=chat_id)
    return None


async def parse_event_stream(
    lines: AsyncIterable[str],
) -> AsyncGenerator[StreamEvent, None]:
    """Yield events from a live line stream, in arrival order.

    Ends after the first DoneEvent, or quietly when the lines run out.
    The line iterator is closed on the way out so a server that keeps
    talking after ``done`` is not read any further.
    """
    iterator = aiter(lines)
    try:
        async for line in iterator:
            kind, payload = classify_line(line)
            if kind is not FrameKind.DATA:
                continue
            event = decode_event(payload)
            if event is None:
                logger.debug("Dropping undecodable stream frame: %.200s", payload)
                continue
            yield event
            if isinstance(event, DoneEvent):
                return
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


@dataclass
class ChatTranscript:
    """A streamed answer folded into one value."""

    text: str
    references: dict[str, Any] = field(default_factory=dict)
    chat_id: str | None = None
    completed: bool = False  # False if the connection ended before "done"


class ChatStream:
    """Handle on a streamed chat answer.

    Iterate it for StreamEvents, or over ``text_stream`` for text only.
    The HTTP request goes out on the first iteration. Leaving an
    ``async with`` block or calling aclose() releases the connection,
    even if the answer was only partly read.
    """

    def __init__(self, events: AsyncGenerator[StreamEvent, None]) -> None:
        self._events = events

    def __aiter__(self) -> ChatStream:
        return self

    async def __anext__(self) -> StreamEvent:
        return await self._events.__anext__()

    async def __aenter__(self) -> ChatStream:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._events.aclose()

    @property
    def text_stream(self) -> AsyncIterator[str]:
        """Token texts only, in arrival order."""
        return self._texts()

    async def _texts(self) -> AsyncGenerator[str, None]:
        async for event in self:
            if isinstance(event, TokenEvent):
                yield event.text

    async def collect(self) -> ChatTranscript:
        """Drain the stream into a ChatTranscript."""
        parts: list[str] = []
        transcript = ChatTranscript(text="")
        async with self:
            async for event in self:
                if isinstance(event, TokenEvent):
                    parts.append(event.text)
                elif isinstance(event, ReferencesEvent):
                    transcript.references.update(event.references)
                elif isinstance(event, DoneEvent):
                    transcript.chat_id = event.chat_id
                    transcript.completed = True
        transcript.text = "".join(parts)
        return transcript
