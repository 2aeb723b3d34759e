"""Comment system API endpoints.

Provides routes for:
- Comment tree of a post
- Comment CRUD (create, update, delete)
- Comment likes
"""

from uuid import UUID

from fastapi import APIRouter, status

from campusboard.users.dependencies import CurrentActor, OptionalActor

from .dependencies import CommentServiceDep
from .schemas import (
    CommentLikeResponse,
    CommentResponse,
    CommentTreeResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)


router = APIRouter(prefix="/v1/comments", tags=["comments"])


@router.get(
    "/post/{post_id}",
    response_model=CommentTreeResponse,
    summary="List post comments",
)
async def list_post_comments(
    post_id: UUID,
    comment_service: CommentServiceDep,
    actor_id: OptionalActor,
) -> CommentTreeResponse:
    """Top-level comments with their replies, oldest first."""
    tree = await comment_service.get_comments(post_id, actor_id)
    return CommentTreeResponse.from_tree(tree)


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    actor_id: CurrentActor,
) -> CommentResponse:
    """Comment on a post, or reply to a top-level comment."""
    comment = await comment_service.create_comment(
        actor_id=actor_id,
        post_id=data.post_id,
        body=data.body,
        parent_id=data.parent_id,
    )
    return CommentResponse.from_comment(comment)


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    actor_id: CurrentActor,
) -> CommentResponse:
    """Replace the body of the actor's own comment."""
    comment = await comment_service.update_comment(comment_id, actor_id, data.body)
    return CommentResponse.from_comment(comment)


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    actor_id: CurrentActor,
) -> None:
    """Soft delete the actor's own comment."""
    await comment_service.delete_comment(comment_id, actor_id)


@router.post(
    "/{comment_id}/like",
    response_model=CommentLikeResponse,
    summary="Toggle comment like",
)
async def toggle_comment_like(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    actor_id: CurrentActor,
) -> CommentLikeResponse:
    """Like a comment, or take the like back."""
    result = await comment_service.react_to_comment(comment_id, actor_id)
    return CommentLikeResponse(like_count=result.like_count, liked=result.liked)
