"""JSON wire codec.

Models are pydantic; this module owns the rules around them: absent
optionals are left off the wire, enum tokens are lowercase with
underscores and parse case-insensitively, and anything that fails to
decode becomes a MalformedResponseError instead of a silent default.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from functools import partial
from typing import Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ValidationError

from skald.exceptions import MalformedResponseError, UnknownEnumValueError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
E = TypeVar("E", bound=Enum)

# lower/digit -> Upper ("memoUuid"), or the end of an acronym ("LLMProvider")
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """Translate an identifier to its wire form.

    ``memoUuid`` -> ``memo_uuid``, ``NotIn`` -> ``not_in``,
    ``NOT_IN`` -> ``not_in``. snake_case input passes through unchanged.
    """
    return _WORD_BOUNDARY.sub("_", name).lower()


def _fold(token: str) -> str:
    return token.replace("_", "").lower()


class WireEnum(str, Enum):
    """String enum whose values are the wire tokens of its member names.

    Members declared with ``auto()`` get ``snake_case(name)`` as value.
    Lookup ignores case and underscores, so ``"NOT_IN"``, ``"NotIn"``
    and ``"not_in"`` all resolve to the same member.
    """

    @staticmethod
    def _generate_next_value_(name, start, count, last_values):  # pylint: disable=unused-argument  # Enum hook signature
        return snake_case(name)

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            folded = _fold(value.strip())
            for member in cls:
                if _fold(member.value) == folded:
                    return member
        return None

    def __str__(self) -> str:
        return self.value


def encode_enum(member: Enum) -> str:
    """Return the wire token for an enum member."""
    return member.value


def decode_enum(enum_type: type[E], token: Any) -> E:
    """Parse a wire token into ``enum_type``, ignoring case.

    Raises UnknownEnumValueError when no member matches.
    """
    if isinstance(token, enum_type):
        return token
    try:
        return enum_type(token)
    except ValueError as exc:
        raise UnknownEnumValueError(enum_type, token) from exc


def _coerce_enum(enum_type: type[E], value: Any) -> E | None:
    if value is None:
        return None
    return decode_enum(enum_type, value)


def wire_enum(enum_type: type[Enum]) -> BeforeValidator:
    """Field metadata that routes wire tokens through decode_enum.

    UnknownEnumValueError is not a ValueError, so pydantic lets it
    propagate instead of folding it into a ValidationError.
    """
    return BeforeValidator(partial(_coerce_enum, enum_type))


def encode(model: BaseModel) -> bytes:
    """Serialize a request model to a JSON body, omitting unset optionals."""
    return model.model_dump_json(exclude_none=True).encode("utf-8")


def decode(body: bytes | str, shape: type[M]) -> M:
    """Parse a JSON response body into ``shape``.

    Raises MalformedResponseError for invalid JSON or a missing or
    ill-typed required field, UnknownEnumValueError for unknown tokens.
    """
    try:
        return shape.model_validate_json(body)
    except ValidationError as exc:
        logger.debug("Failed to decode %s: %s", shape.__name__, exc)
        raise MalformedResponseError(
            f"Failed to deserialize {shape.__name__}: {exc.error_count()} validation error(s)"
        ) from exc
