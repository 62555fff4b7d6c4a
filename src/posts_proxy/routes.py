"""REST endpoints for posts."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from posts_proxy.models import PaginatedPostsResponse, Post, PostCreate, PostUpdate
from posts_proxy.posts_service import PostsService

router = APIRouter(prefix="/posts", tags=["posts"])


def _service(request: Request) -> PostsService:
    service: PostsService = request.app.state.posts_service
    return service


@router.get("", response_model=PaginatedPostsResponse)
async def list_posts(
    request: Request,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 10,
    search: str | None = None,
) -> PaginatedPostsResponse:
    return await _service(request).list_posts(page=page, limit=limit, search=search)


@router.get("/{post_id}", response_model=Post)
async def get_post(request: Request, post_id: int) -> Post:
    return await _service(request).get_post(post_id)


@router.post("", response_model=Post, status_code=201)
async def create_post(request: Request, post: PostCreate) -> Post:
    return await _service(request).create_post(post)


@router.patch("/{post_id}", response_model=Post)
async def update_post(request: Request, post_id: int, update: PostUpdate) -> Post:
    return await _service(request).update_post(post_id, update)
