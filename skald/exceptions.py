"""Exception hierarchy for the Skald client.

Every error the client raises on purpose derives from SkaldError.
Transport failures (timeouts, refused connections) are left as httpx
exceptions and cancellation stays asyncio.CancelledError.
"""

from __future__ import annotations

from typing import Any


class SkaldError(Exception):
    """Base class for all Skald client errors."""


class InvalidArgumentError(SkaldError, ValueError):
    """A required argument was missing or blank. Raised before any I/O."""


class RemoteError(SkaldError):
    """The API answered with a non-2xx status.

    The body is kept verbatim; error bodies are not guaranteed to be JSON.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Skald API error ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class MalformedResponseError(SkaldError):
    """A 2xx body could not be decoded into the expected shape."""


class UnknownEnumValueError(MalformedResponseError):
    """A wire token does not name any member of the target enum.

    Must not derive from ValueError: pydantic would fold it into a
    ValidationError and lose the enum type.
    """

    def __init__(self, enum_type: type, value: Any) -> None:
        super().__init__(f"Unable to convert {value!r} to {enum_type.__name__}")
        self.enum_type = enum_type
        self.value = value
