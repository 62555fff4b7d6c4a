"""Pydantic models for posts and paginated list responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

TITLE_MAX_LENGTH = 200
BODY_MAX_LENGTH = 5000


class Post(BaseModel):
    """A post as owned by the upstream API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int = Field(description="Upstream-assigned post ID")
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    body: str = Field(max_length=BODY_MAX_LENGTH)
    user_id: int | None = Field(default=None, alias="userId", description="Author ID")


class PostCreate(BaseModel):
    """Body of a create request. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(min_length=1, max_length=BODY_MAX_LENGTH)


class PostUpdate(BaseModel):
    """Partial update. Only fields the caller sends are merged."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    body: str | None = Field(default=None, max_length=BODY_MAX_LENGTH)

    def changes(self) -> dict[str, str]:
        """Fields explicitly set by the caller, excluding explicit nulls."""
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None
        }


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(ge=0, description="Item count after search filtering")
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_pages: int = Field(ge=0, alias="totalPages")


class PaginatedPostsResponse(BaseModel):
    data: list[Post] = Field(default_factory=list)
    meta: PaginationMeta
