"""Pydantic schemas for the comment system.

Request/Response models with validation for:
- Comment CRUD operations
- Comment likes
- The nested comment tree of a post
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    post_id: UUID
    parent_id: UUID | None = None
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        """Strip whitespace and validate body."""
        v = v.strip()
        if not v:
            msg = "Body cannot be empty"
            raise ValueError(msg)
        return v


class UpdateCommentRequest(BaseModel):
    """Request to update a comment."""

    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        """Strip whitespace and validate body."""
        v = v.strip()
        if not v:
            msg = "Body cannot be empty"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Response for a single comment."""

    id: UUID
    post_id: UUID
    parent_id: UUID | None = None
    author_id: UUID
    author_department: str
    body: str
    like_count: int = 0
    liked: bool = False
    reply_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(
        cls, comment: Any, liked: bool = False, reply_count: int = 0
    ) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            id=comment.comment_id,
            post_id=comment.post_id,
            parent_id=comment.parent_id,
            author_id=comment.author_id,
            author_department=comment.author_department,
            body=comment.body,
            like_count=comment.like_count,
            liked=liked,
            reply_count=reply_count,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentWithRepliesResponse(CommentResponse):
    """Top-level comment with nested replies."""

    replies: list[CommentResponse] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: Any) -> "CommentWithRepliesResponse":
        """Create response from a CommentNode of the assembled tree."""
        base = CommentResponse.from_comment(
            node.comment, liked=node.liked, reply_count=node.reply_count
        )
        return cls(
            **base.model_dump(),
            replies=[
                CommentResponse.from_comment(reply.comment, liked=reply.liked)
                for reply in node.replies
            ],
        )


class CommentTreeResponse(BaseModel):
    """All shown comments of a post."""

    comments: list[CommentWithRepliesResponse]
    total_comments: int

    @classmethod
    def from_tree(cls, tree: Any) -> "CommentTreeResponse":
        """Create response from an assembled CommentTree."""
        return cls(
            comments=[CommentWithRepliesResponse.from_node(n) for n in tree.comments],
            total_comments=tree.total_comments,
        )


class CommentLikeResponse(BaseModel):
    """Counter and actor state after a like toggle."""

    like_count: int
    liked: bool

