"""Shared test doubles for the HTTP session, sleeping and the clock."""
from typing import Dict, List, Optional, Union

import pytest


NOW = 1_735_689_600.0  # 2025-01-01T00:00:00Z


class FakeResponse:
    """Stands in for ``aiohttp.ClientResponse`` inside ``async with``."""

    def __init__(
        self,
        status: int = 200,
        payload=None,
        headers: Optional[Dict[str, str]] = None,
        reason: str = "",
        body_error: Optional[Exception] = None,
    ):
        self.status = status
        self.reason = reason or ("OK" if status < 400 else "Error")
        self.headers = headers or {}
        self._payload = payload
        self._body_error = body_error

    async def json(self, content_type=None):
        if self._body_error is not None:
            raise self._body_error
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Serves queued responses per URL and records every request."""

    def __init__(self, routes: Dict[str, List[Union[FakeResponse, Exception]]]):
        self.routes = {url: list(queue) for url, queue in routes.items()}
        self.requests: List[str] = []

    def get(self, url: str):
        self.requests.append(url)
        queue = self.routes.get(url)
        if not queue:
            raise RuntimeError(f"no response queued for {url}")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def count(self, url: str) -> int:
        return self.requests.count(url)


class SleepRecorder:
    """Async sleep replacement that returns at once and remembers durations."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(float(seconds))


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def make_session():
    return FakeSession
