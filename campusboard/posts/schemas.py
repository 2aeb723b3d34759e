"""Pydantic schemas for board posts.

Request/Response models with validation for:
- Post create and update
- Reactions
- Board listing pages and the category catalogue
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from campusboard.reactions.models import ReactionKind, ReactionState

from .models import BoardCategory, CategoryGroup


TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 100


# ==============================================================================
# Request Schemas
# ==============================================================================


class PostWriteRequest(BaseModel):
    """Fields shared by post create and update."""

    title: str
    body: str = Field(..., min_length=1, max_length=20000)
    category: BoardCategory

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace, then enforce the title length."""
        v = v.strip()
        if not TITLE_MIN_LENGTH <= len(v) <= TITLE_MAX_LENGTH:
            msg = (
                f"Title must have {TITLE_MIN_LENGTH} to {TITLE_MAX_LENGTH} characters"
            )
            raise ValueError(msg)
        return v

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        """Strip whitespace and reject blank text."""
        v = v.strip()
        if not v:
            msg = "Body cannot be empty"
            raise ValueError(msg)
        return v


class CreatePostRequest(PostWriteRequest):
    """Request to create a post."""


class UpdatePostRequest(PostWriteRequest):
    """Request to replace the editable fields of a post."""


class ReactToPostRequest(BaseModel):
    """Request to like or dislike a post.

    Accepts either ``{"is_like": true|false}`` or ``{"kind": "LIKE"|"DISLIKE"}``.
    Repeating the current reaction cancels it.
    """

    is_like: bool | None = None
    kind: ReactionKind | None = None

    @model_validator(mode="after")
    def validate_one_of(self) -> "ReactToPostRequest":
        """Exactly one of is_like / kind must be given."""
        if (self.is_like is None) == (self.kind is None):
            msg = "Provide exactly one of 'is_like' or 'kind'"
            raise ValueError(msg)
        return self

    @property
    def reaction_kind(self) -> ReactionKind:
        """Requested reaction kind."""
        if self.kind is not None:
            return self.kind
        return ReactionKind.LIKE if self.is_like else ReactionKind.DISLIKE


# ==============================================================================
# Response Schemas
# ==============================================================================


class PostResponse(BaseModel):
    """Post as shown in lists."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    body: str
    author_id: UUID
    author_department: str
    category: BoardCategory
    view_count: int
    like_count: int
    dislike_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Any) -> "PostResponse":
        """Create response from Post entity."""
        return cls(
            id=post.post_id,
            title=post.title,
            body=post.body,
            author_id=post.author_id,
            author_department=post.author_department,
            category=post.category,
            view_count=post.view_count,
            like_count=post.like_count,
            dislike_count=post.dislike_count,
            comment_count=post.comment_count,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostDetailResponse(PostResponse):
    """Post with the requesting actor's reaction."""

    reaction_state: ReactionState = ReactionState.NONE

    @classmethod
    def from_post_with_state(
        cls, post: Any, reaction_state: ReactionState
    ) -> "PostDetailResponse":
        """Create detail response from Post entity and reaction state."""
        base = PostResponse.from_post(post)
        return cls(**base.model_dump(), reaction_state=reaction_state)


class PostPageResponse(BaseModel):
    """One page of the board."""

    items: list[PostResponse]
    total_pages: int
    total_elements: int
    current_page: int
    size: int


class PostReactionResponse(BaseModel):
    """Counters and actor state after a reaction."""

    like_count: int
    dislike_count: int
    reaction_state: ReactionState


class CategoryResponse(BaseModel):
    """One entry of the category catalogue."""

    code: BoardCategory
    display_name: str
    group: CategoryGroup

    @classmethod
    def from_category(cls, category: BoardCategory) -> "CategoryResponse":
        """Create response from a BoardCategory member."""
        return cls(
            code=category,
            display_name=category.display_name,
            group=category.group,
        )

