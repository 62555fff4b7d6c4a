"""Search filtering and page slicing over an in-memory post collection."""

from __future__ import annotations

import math
from collections.abc import Sequence

from posts_proxy.models import PaginatedPostsResponse, PaginationMeta, Post


def normalize_search(search: str | None) -> str | None:
    """Lowercased, trimmed search term, or None when there is nothing to match."""
    if search is None:
        return None
    term = search.strip().lower()
    return term or None


def filter_posts(posts: Sequence[Post], search: str | None) -> list[Post]:
    """Keep posts whose title or body contains the search term, case-insensitively."""
    term = normalize_search(search)
    if term is None:
        return list(posts)
    return [p for p in posts if term in p.title.lower() or term in p.body.lower()]


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def paginate(
    posts: Sequence[Post], page: int, limit: int, search: str | None = None
) -> PaginatedPostsResponse:
    """Filter, then slice one page.

    ``meta.total`` counts the filtered sequence before slicing. Pages past
    the end yield an empty ``data`` list rather than an error.
    """
    if page < 1 or limit < 1:
        raise ValueError(f"page and limit must be >= 1 (got page={page}, limit={limit})")
    filtered = filter_posts(posts, search)
    start = (page - 1) * limit
    return PaginatedPostsResponse(
        data=filtered[start : start + limit],
        meta=PaginationMeta(
            total=len(filtered),
            page=page,
            limit=limit,
            total_pages=total_pages(len(filtered), limit),
        ),
    )


def single_page(post: Post, page: int, limit: int) -> PaginatedPostsResponse:
    """Wrap a lone upstream object as a one-element page."""
    return PaginatedPostsResponse(
        data=[post],
        meta=PaginationMeta(total=1, page=page, limit=limit, total_pages=1),
    )
