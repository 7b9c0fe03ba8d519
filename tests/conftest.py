"""Shared fixtures: a fake clock and a canned Congress.gov upstream"""

import asyncio
import json

import httpx
import pytest

from legis_mcp.config import Settings
from legis_mcp.congress_api import CongressApiService
from legis_mcp.tools import ToolContext

BASE_URL = "https://api.congress.gov/v3"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Upstream:
    """Serves canned responses by path (without the /v3 prefix) and records every request"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, path, body=None, status=200):
        self.routes[path] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(self.path_of(request))
        if route is None:
            return httpx.Response(404, text="Not Found")
        status, body = route
        if callable(body):
            return body(request)
        if isinstance(body, (dict, list)):
            return httpx.Response(status, content=json.dumps(body), headers={"Content-Type": "application/json"})
        return httpx.Response(status, text=body or "")

    async def slow_handler(self, request: httpx.Request) -> httpx.Response:
        """Like handler, but yields to the event loop first as a real network call would"""
        await asyncio.sleep(0.01)
        return self.handler(request)

    @staticmethod
    def path_of(request: httpx.Request) -> str:
        return request.url.path[len("/v3"):]

    @property
    def paths(self):
        return [self.path_of(r) for r in self.requests]

    @property
    def last_params(self):
        return self.requests[-1].url.params


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def make_api(upstream, clock):
    def factory(**kwargs):
        kwargs.setdefault("api_key", "test-key")
        handler = upstream.slow_handler if kwargs.pop("slow", False) else upstream.handler
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return CongressApiService(base_url=BASE_URL, client=client, clock=clock, **kwargs)

    return factory


@pytest.fixture
def api(make_api):
    return make_api()


@pytest.fixture
def ctx(api):
    return ToolContext(api=api, settings=Settings(member_batch_delay=0))
