"""Pytest configuration and shared fixtures."""
# pylint: disable=redefined-outer-name  # pytest fixtures injected by name

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import pytest
from dotenv import load_dotenv

from skald.client import SkaldClient

# Load .env file for API keys
load_dotenv()

TEST_KEY = "sk_test_123"
TEST_BASE_URL = "https://skald.test"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "live: tests that call the real Skald API (need SKALD_API_KEY)")
    config.addinivalue_line("markers", "slow: tests that take > 5 seconds")


def pytest_collection_modifyitems(config, items):
    """Auto-skip live tests when no API key is configured."""
    skip_live = pytest.mark.skip(reason="SKALD_API_KEY not set")
    has_api_key = bool(os.environ.get("SKALD_API_KEY"))

    for item in items:
        if "live" in item.keywords and not has_api_key:
            item.add_marker(skip_live)


# -- Fake API --


@dataclass
class FakeAPI:
    """MockTransport handler that records requests and replays canned answers.

    ``responses`` maps (method, path) to a callable that builds the
    response from the request. Unrouted requests get a 404.
    """

    responses: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def route(self, method: str, path: str, build: Callable[[httpx.Request], httpx.Response]) -> None:
        self.responses[(method, path)] = build

    def json(self, method: str, path: str, payload: Any, status_code: int = 200) -> None:
        self.route(method, path, lambda _: httpx.Response(status_code, json=payload))

    def text(self, method: str, path: str, body: str, status_code: int = 200) -> None:
        self.route(method, path, lambda _: httpx.Response(status_code, text=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        build = self.responses.get((request.method, request.url.path))
        if build is None:
            return httpx.Response(404, text="not found")
        return build(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def fake_api():
    return FakeAPI()


@pytest.fixture
async def client(fake_api: FakeAPI):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))
    skald = SkaldClient(TEST_KEY, TEST_BASE_URL, http_client=http)
    yield skald
    await skald.close()
    await http.aclose()


@pytest.fixture(scope="session")
def api_key():
    """Get API key or skip test."""
    key = os.environ.get("SKALD_API_KEY")
    if not key:
        pytest.skip("SKALD_API_KEY not set")
    return key
