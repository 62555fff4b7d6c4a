"""Shared test constants, fixtures, and factory functions."""

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from posts_proxy.config import Settings
from posts_proxy.main import create_app
from posts_proxy.posts_client import PostsApiClient
from posts_proxy.posts_service import PostsService

# -- Constants --

POST_API = "https://posts.example.com/posts"
FRONTEND_URL = "http://localhost:3000"
UPSTREAM_COUNT = 10


# -- Factories --


def make_post_payload(post_id: int, **overrides: Any) -> dict[str, Any]:
    """Create an upstream post object. Override any field."""
    payload: dict[str, Any] = {
        "id": post_id,
        "title": f"Post number {post_id}",
        "body": f"Body text for post {post_id}",
        "userId": 1,
    }
    return payload | overrides


def make_settings(**overrides: Any) -> Settings:
    """Create a Settings instance with test defaults. Override any field."""
    defaults: dict[str, Any] = {
        "post_api": POST_API,
        "frontend_url": FRONTEND_URL,
        "list_delay_seconds": 0.0,
    }
    return Settings(**(defaults | overrides))


class FakeUpstream:
    """In-memory posts API served through httpx.MockTransport.

    Records every request in ``requests``. ``collection_body`` replaces the
    GET-collection answer, ``status_override`` forces a status on every call.
    """

    def __init__(self, posts: Iterable[dict[str, Any]] | None = None) -> None:
        if posts is None:
            posts = [make_post_payload(i) for i in range(1, UPSTREAM_COUNT + 1)]
        self.posts: dict[int, dict[str, Any]] = {p["id"]: dict(p) for p in posts}
        self.requests: list[httpx.Request] = []
        self.collection_body: Any = None
        self.status_override: int | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_override is not None:
            return httpx.Response(self.status_override, json={"message": "upstream error"})

        segments = request.url.path.strip("/").split("/")
        post_id = int(segments[1]) if len(segments) > 1 else None

        if post_id is None and request.method == "GET":
            body = self.collection_body
            return httpx.Response(200, json=list(self.posts.values()) if body is None else body)
        if post_id is None and request.method == "POST":
            new_id = max(self.posts, default=0) + 1
            self.posts[new_id] = json.loads(request.content) | {"id": new_id}
            return httpx.Response(201, json=self.posts[new_id])
        if post_id not in self.posts:
            return httpx.Response(404, json={})
        if request.method == "PATCH":
            self.posts[post_id] = self.posts[post_id] | json.loads(request.content)
        return httpx.Response(200, json=self.posts[post_id])


# -- Fixtures --


@pytest.fixture
def env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set required env vars for Settings."""
    monkeypatch.setenv("POST_API", POST_API)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def posts_client(upstream: FakeUpstream) -> AsyncIterator[PostsApiClient]:
    """PostsApiClient wired to the fake upstream."""
    client = PostsApiClient(POST_API, transport=upstream.transport)
    yield client
    await client.close()


@pytest.fixture
def service(posts_client: PostsApiClient) -> PostsService:
    return PostsService(posts_client)


@pytest.fixture
async def client(service: PostsService) -> AsyncIterator[AsyncClient]:
    """AsyncClient wired to the FastAPI app with test settings and the fake upstream."""
    app = create_app(make_settings())
    app.state.posts_service = service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
