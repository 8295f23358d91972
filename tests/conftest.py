"""
Pytest configuration and shared fixtures for searchkit integration tests.

All fixtures follow camelCase naming convention.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from searchkit.index import SearchClient

Route = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class FakeCluster:
    """In-process stand-in for the search cluster, dood!

    Routes are matched on ``(host, method, path)``; a ``None`` host matches
    any host. Unmatched requests get a 404 like the real service would send
    for an unknown index.
    """

    def __init__(self) -> None:
        self.routes: List[Tuple[Optional[str], str, str, Route]] = []
        self.downHosts: set = set()
        self.requests: List[httpx.Request] = []

    def route(self, method: str, path: str, handler: Route, host: Optional[str] = None) -> None:
        self.routes.insert(0, (host, method, path, handler))

    def reply(self, method: str, path: str, data: Dict[str, Any], status: int = 200, host: Optional[str] = None):
        self.route(method, path, lambda request: httpx.Response(status, json=data), host)

    def requestsTo(self, path: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.downHosts:
            raise httpx.ConnectError("Connection refused", request=request)

        for host, method, path, handler in self.routes:
            if (host is None or host == request.url.host) and method == request.method and path == request.url.path:
                response = handler(request)
                if asyncio.iscoroutine(response):
                    response = await response
                return response
        return httpx.Response(404, content=json.dumps({"message": "Not found"}).encode("utf-8"))


@pytest.fixture
def fakeCluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def searchClient(fakeCluster: FakeCluster) -> SearchClient:
    """Client with two read hosts and two write hosts on the fake cluster."""
    return SearchClient(
        "test-app",
        "test-key",
        readHosts=["read-1.test", "read-2.test"],
        writeHosts=["write-1.test", "write-2.test"],
        timeout=2,
        searchTimeout=1,
        httpClient=httpx.AsyncClient(transport=httpx.MockTransport(fakeCluster)),
    )
