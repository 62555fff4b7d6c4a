"""Upstream posts REST API client."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from posts_proxy import metrics as app_metrics
from posts_proxy.errors import (
    PostNotFoundError,
    UpstreamPayloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from posts_proxy.models import Post

log = structlog.get_logger()


class PostsApiProtocol(Protocol):
    """Interface for upstream posts operations."""

    async def list_posts(self) -> list[Post] | Post: ...
    async def get_post(self, post_id: int) -> Post: ...
    async def create_post(self, payload: dict[str, Any]) -> Post: ...
    async def update_post(self, post_id: int, payload: dict[str, Any]) -> Post: ...


def decode_post(data: Any) -> Post:
    """Validate one upstream object as a Post.

    Raises:
        UpstreamPayloadError: If the object does not have the Post shape.
    """
    try:
        return Post.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in e["loc"]) for e in exc.errors()})
        raise UpstreamPayloadError(
            f"Upstream returned an invalid post (fields: {', '.join(fields)})"
        ) from exc


class PostsApiClient:
    """Async client for a JSON posts collection (GET list/by id, POST, PATCH).

    ``base_url`` is the collection URL itself, e.g.
    ``https://jsonplaceholder.typicode.com/posts``; items live at ``{base_url}/{id}``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_posts(self) -> list[Post] | Post:
        """Fetch the whole collection. A single-object answer is returned as-is."""
        data = await self._request("GET", self._base_url)
        if isinstance(data, list):
            return [decode_post(item) for item in data]
        return decode_post(data)

    async def get_post(self, post_id: int) -> Post:
        data = await self._request("GET", self._item_url(post_id), post_id=post_id)
        return decode_post(data)

    async def create_post(self, payload: dict[str, Any]) -> Post:
        data = await self._request("POST", self._base_url, json=payload)
        return decode_post(data)

    async def update_post(self, post_id: int, payload: dict[str, Any]) -> Post:
        data = await self._request(
            "PATCH", self._item_url(post_id), post_id=post_id, json=payload
        )
        return decode_post(data)

    def _item_url(self, post_id: int) -> str:
        return f"{self._base_url}/{post_id}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        post_id: int | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        ``timeout`` bounds the whole round trip, not just each httpx phase.

        404 is reported as PostNotFoundError only for item URLs; on the
        collection it means the upstream itself is misconfigured.
        """
        start = time.monotonic()
        outcome = "error"
        try:
            try:
                async with asyncio.timeout(self._timeout):
                    resp = await self._client.request(method, url, json=json)
            except (httpx.TimeoutException, TimeoutError) as exc:
                outcome = "timeout"
                await log.awarning(
                    "upstream_request_failed", method=method, url=url, reason="timeout"
                )
                raise UpstreamTimeoutError(f"Upstream {method} {url} timed out") from exc
            except httpx.RequestError as exc:
                await log.awarning(
                    "upstream_request_failed", method=method, url=url, reason=str(exc)
                )
                raise UpstreamUnavailableError(f"Upstream {method} {url} failed: {exc}") from exc

            if resp.status_code == 404 and post_id is not None:
                outcome = "not_found"
                raise PostNotFoundError(f"Post {post_id} not found", upstream_status=404)
            if resp.is_error:
                await log.awarning(
                    "upstream_request_failed", method=method, url=url, status=resp.status_code
                )
                raise UpstreamUnavailableError(
                    f"Upstream {method} {url} returned {resp.status_code} {resp.reason_phrase}",
                    upstream_status=resp.status_code,
                )

            try:
                data = resp.json()
            except ValueError as exc:
                raise UpstreamPayloadError(
                    f"Upstream {method} {url} returned a non-JSON body",
                    upstream_status=resp.status_code,
                ) from exc
            outcome = "success"
            await log.adebug(
                "upstream_request_complete", method=method, url=url, status=resp.status_code
            )
            return data
        finally:
            attrs = {"method": method, "outcome": outcome}
            app_metrics.upstream_requests_total.add(1, attrs)
            app_metrics.upstream_request_duration.record(time.monotonic() - start, attrs)
