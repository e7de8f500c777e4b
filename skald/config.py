"""Client configuration.

Values come from explicit arguments or from the environment
(SKALD_API_KEY, SKALD_BASE_URL, SKALD_TIMEOUT). Entry points load a
.env file with python-dotenv before calling from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from skald.exceptions import InvalidArgumentError

DEFAULT_BASE_URL = "https://api.useskald.com"
DEFAULT_TIMEOUT = 120.0


@dataclass
class ClientConfig:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> ClientConfig:
        raw_timeout = os.environ.get("SKALD_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise InvalidArgumentError(
                f"SKALD_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            ) from exc
        return cls(
            api_key=os.environ.get("SKALD_API_KEY", ""),
            base_url=os.environ.get("SKALD_BASE_URL") or DEFAULT_BASE_URL,
            timeout=timeout,
        )
