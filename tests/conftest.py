"""Shared fixtures: stub transport, fake clock, sample catalog."""

import json
from collections import deque
from typing import Any

import pytest

from apiweave.clients.catalog import ApiCatalog
from apiweave.clients.transport import TransportResponse
from apiweave.errors import TransportError


class StubTransport:
    """In-memory Transport: hands out queued responses in order.

    Queue items are JSON-able objects (sent as 200 bodies), raw strings,
    ``(status, body)`` tuples, or exceptions to raise.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = deque(responses)
        self.calls: list[tuple[str, str]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def send(self, uri: str, method: str = "GET", on_progress=None) -> TransportResponse:
        self.calls.append((uri, method))
        if not self.responses:
            raise TransportError(uri, "No stub response queued")

        item = self.responses.popleft()
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, tuple):
            status, body = item
        elif isinstance(item, str):
            status, body = 200, item
        else:
            status, body = 200, json.dumps(item)

        if on_progress is not None:
            on_progress(body.encode())
        return TransportResponse(status_code=status, body=body)

    @property
    def uris(self) -> list[str]:
        return [uri for uri, _ in self.calls]


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def catalog() -> ApiCatalog:
    """Small team catalog used across client and pipeline tests."""
    return ApiCatalog.from_mapping(
        {
            "slug": "TestAPI",
            "base_uri": "https://api.example.com/api",
            "version": "v1",
            "endpoints": [
                {
                    "slug": "Teams",
                    "path_template": "teams",
                    "allowed_modifiers": ["expand", "stats"],
                },
                {
                    "slug": "TeamByID",
                    "path_template": "teams/{id}",
                    "allowed_parameters": ["id"],
                    "allowed_modifiers": ["expand", "stats"],
                    "ttl_seconds": 60,
                },
                {
                    "slug": "TeamRoster",
                    "path_template": "teams/{id}/roster",
                    "allowed_parameters": ["id"],
                },
                {
                    "slug": "Live",
                    "path_template": "live/{id}",
                    "allowed_parameters": ["id"],
                    "cacheable": False,
                },
                {
                    "slug": "Upload",
                    "path_template": "uploads",
                    "method": "POST",
                },
            ],
        }
    )
