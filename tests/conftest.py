"""Shared fixtures for burrito tests.

Network probing is faked with httpx.MockTransport so no test needs a live
API. `fake_api` maps (METHOD, url) to a JSON body or a status code.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from burrito.diagnostics import Diagnostics
from burrito.inference import TypeInferrer
from burrito.records import TypeRegistry

ROOT = "http://api.test/"


# ---------------------------------------------------------------------------
# Fake HTTP API
# ---------------------------------------------------------------------------

class FakeAPI:
    """Canned responses keyed by (method, url), with a request log."""

    def __init__(self, responses: dict[tuple[str, str], Any]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url))
        if key not in self.responses:
            return httpx.Response(404, json={"error": "not found"})
        body = self.responses[key]
        if isinstance(body, int):
            return httpx.Response(body)
        if isinstance(body, (str, bytes)):
            return httpx.Response(200, content=body)
        return httpx.Response(200, content=json.dumps(body))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_api() -> Callable[[dict[tuple[str, str], Any]], FakeAPI]:
    """Factory: fake_api({("GET", url): body}) -> FakeAPI."""
    return FakeAPI


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

@pytest.fixture
def demo_schema() -> dict[str, Any]:
    """The single-route schema used by the end-to-end scenario."""
    return {
        "name": "Demo",
        "root": ROOT,
        "sections": [
            {"name": "Users", "routes": [
                {"type": "GET", "route": "users", "returns": "User"},
            ]},
        ],
    }


@pytest.fixture
def blog_schema() -> dict[str, Any]:
    """A schema exercising placeholders, POST, async and descriptions."""
    return {
        "name": "Blog",
        "root": "http://api.test",
        "sections": [
            {"name": "Users", "routes": [
                {"type": "GET", "route": "users", "returns": "User"},
                {"type": "GET", "route": "users/{id}/posts", "validroute": "users/1/posts",
                 "returns": "Post", "async": True},
                {"type": "POST", "route": "users", "returns": "User", "sends": "NewUser",
                 "data": {"name": "a", "tags": ["x"]}, "desc": "Create a user."},
            ]},
            {"name": "Health", "routes": [
                {"type": "get", "route": "", "returns": "Status"},
            ]},
        ],
    }


@pytest.fixture
def blog_responses() -> dict[tuple[str, str], Any]:
    return {
        ("GET", f"{ROOT}users"): {"id": 1, "name": "a", "address": {"city": "c"}},
        ("GET", f"{ROOT}users/1/posts"): [
            {"id": 7, "title": "t", "published": "2024-01-02T03:04:05Z"},
        ],
        ("POST", f"{ROOT}users"): {"id": 2, "name": "a", "address": {"city": "c"}},
        ("GET", ROOT): {"ok": True, "uptime": 1.5},
    }


# ---------------------------------------------------------------------------
# Inference helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture
def inferrer(registry: TypeRegistry, diagnostics: Diagnostics) -> TypeInferrer:
    return TypeInferrer(registry, diagnostics)
