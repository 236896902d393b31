"""
Shared test utilities for zetsubou tests.

HTTP traffic is served by httpx.MockTransport, injected through the client's
``transport`` option, so the whole request pipeline runs without a network.
"""

import json
from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import httpx

from zetsubou import ZetsubouClient

TEST_API_KEY = "ak_test_123"

TEST_BASE_URL = "https://api.test.zetsubou"


class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    ``responses`` may be a single response, a list consumed in order (the
    last one repeats), or a callable taking the request. Exceptions in the
    list are raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if callable(self.responses):
            result = self.responses(request)
        elif isinstance(self.responses, list):
            index = min(len(self.requests), len(self.responses)) - 1
            result = self.responses[index]
        else:
            result = self.responses
        if isinstance(result, Exception):
            raise result
        # A fresh Response per send, since replayed entries may repeat
        return httpx.Response(result.status_code, headers=result.headers, content=result.content)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def json_body(self, index: int = -1):
        return json.loads(self.requests[index].content)


def json_response(status_code=200, body=None, headers=None) -> httpx.Response:
    return httpx.Response(status_code, json=body if body is not None else {}, headers=headers)


def make_client(handler, **kwargs) -> ZetsubouClient:
    kwargs.setdefault("base_url", TEST_BASE_URL)
    return ZetsubouClient(TEST_API_KEY, transport=httpx.MockTransport(handler), **kwargs)


@contextmanager
def patched_sleep():
    """Patch asyncio.sleep so retry backoff and polling return immediately."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep_mock:
        yield sleep_mock


class FakeClock:
    """Monotonic clock advanced only by awaited sleeps."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@contextmanager
def fake_clock():
    """Drive the job poller and retry backoff from a FakeClock."""
    clock = FakeClock()
    with patch("zetsubou.services.jobs.time", clock), patch("asyncio.sleep", clock.sleep):
        yield clock
