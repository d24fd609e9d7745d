from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import httpx
import pytest

from megaport_client import Client
from megaport_client.config import get_settings

BASE_URL = "https://api-staging.megaport.com/"

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]
ClientBuilder: TypeAlias = Callable[..., Client]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@dataclass(slots=True)
class RecordingAPI:
    """Route table for ``httpx.MockTransport`` keyed by ``(method, path)``."""

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(self, method: str, path: str, response: Any, *, status_code: int = 200) -> None:
        if isinstance(response, httpx.Response) or callable(response):
            self.routes[(method, path)] = response
        else:
            self.routes[(method, path)] = httpx.Response(status_code=status_code, json=response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(status_code=404, json={"message": "no route"})
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"no {method} {path} request recorded")

    def paths(self) -> list[tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]


@pytest.fixture
def api() -> RecordingAPI:
    return RecordingAPI()


@pytest.fixture
def make_client() -> ClientBuilder:
    def build(handler: Handler, **overrides: Any) -> Client:
        options: dict[str, Any] = {
            "base_url": BASE_URL,
            "access_token": "token-123",
            "http_client_factory": _mock_client_factory(handler),
        }
        options.update(overrides)
        return Client(**options)

    return build


@pytest.fixture
def client(api: RecordingAPI, make_client: ClientBuilder) -> Client:
    return make_client(api.handler)


def _mock_client_factory(handler: Handler) -> Callable[..., httpx.Client]:
    def factory(**kwargs: Any) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler), **kwargs)

    return factory
