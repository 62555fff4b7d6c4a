"""Posts service: list/search/paginate, fetch, create, and merge-update posts."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from posts_proxy import metrics as app_metrics
from posts_proxy.errors import InternalError, PostsError
from posts_proxy.models import PaginatedPostsResponse, Post, PostCreate, PostUpdate
from posts_proxy.pagination import normalize_search, paginate, single_page
from posts_proxy.posts_client import PostsApiProtocol
from posts_proxy.telemetry import get_tracer

log = structlog.get_logger()
_tracer = get_tracer(__name__)

DEFAULT_USER_ID = 1


@contextmanager
def _translate_unexpected(operation: str) -> Iterator[None]:
    """Let taxonomy errors through; wrap anything else as InternalError."""
    try:
        yield
    except PostsError:
        raise
    except Exception as exc:
        log.exception("posts_operation_failed", operation=operation)
        raise InternalError(f"Unexpected error during {operation}") from exc


class PostsService:
    """Stateless data-shaping layer over the upstream posts API.

    ``list_delay`` is an artificial pause after the list fetch, used by the
    front-end to demonstrate its loading state. Zero disables it.
    """

    def __init__(self, client: PostsApiProtocol, list_delay: float = 0.0) -> None:
        if list_delay < 0:
            raise ValueError("list_delay must be >= 0")
        self._client = client
        self._list_delay = list_delay

    async def list_posts(
        self, page: int = 1, limit: int = 10, search: str | None = None
    ) -> PaginatedPostsResponse:
        """Fetch the full upstream collection, then filter and slice one page."""
        searching = normalize_search(search) is not None
        with (
            _tracer.start_as_current_span(
                "posts.list", attributes={"page": page, "limit": limit, "search": searching}
            ),
            _translate_unexpected("list_posts"),
        ):
            upstream = await self._client.list_posts()
            if self._list_delay:
                await asyncio.sleep(self._list_delay)

            if isinstance(upstream, Post):
                response = single_page(upstream, page, limit)
            else:
                response = paginate(upstream, page, limit, search)

        app_metrics.posts_listed_total.add(1, {"search": searching})
        await log.ainfo(
            "posts_listed",
            page=page,
            limit=limit,
            search=searching,
            total=response.meta.total,
            returned=len(response.data),
        )
        return response

    async def get_post(self, post_id: int) -> Post:
        with (
            _tracer.start_as_current_span("posts.get", attributes={"post_id": post_id}),
            _translate_unexpected("get_post"),
        ):
            return await self._client.get_post(post_id)

    async def create_post(self, post: PostCreate) -> Post:
        """Create a post upstream, attributed to the default user."""
        with _tracer.start_as_current_span("posts.create"), _translate_unexpected("create_post"):
            created = await self._client.create_post(
                {"title": post.title, "body": post.body, "userId": DEFAULT_USER_ID}
            )
        await log.ainfo("post_created", post_id=created.id)
        return created

    async def update_post(self, post_id: int, update: PostUpdate) -> Post:
        """Fetch the current post, merge the sent fields over it, then send it back.

        The fetch must complete before the update is issued; a missing post
        surfaces as PostNotFoundError from the fetch.
        """
        with (
            _tracer.start_as_current_span("posts.update", attributes={"post_id": post_id}),
            _translate_unexpected("update_post"),
        ):
            existing = await self._client.get_post(post_id)
            merged = existing.model_dump(by_alias=True, exclude_none=True) | update.changes()
            updated = await self._client.update_post(post_id, merged)
        await log.ainfo("post_updated", post_id=post_id, fields=sorted(update.changes()))
        return updated
