"""Comment service.

Write paths for comments and replies plus the public read and like
operations. Handles:
- Authorship checks (department-verified actor, ownership)
- One-level nesting (a reply's parent is an active top-level comment of the
  same post)
- Post comment_count upkeep
- Comment tree cache invalidation
"""

from datetime import datetime
from uuid import UUID

import structlog

from campusboard.core.exceptions import (
    CommentNotFoundError,
    ForbiddenError,
    InvalidRequestError,
    PostNotFoundError,
)
from campusboard.reactions.engine import CommentLikeResult, ReactionEngine
from campusboard.store.base import EntityStore
from campusboard.users.directory import UserDirectory

from .models import Comment, create_comment
from .tree import CommentTree, CommentTreeAssembler


logger = structlog.get_logger(__name__)


class CommentService:
    """Service for comment management."""

    def __init__(
        self,
        store: EntityStore,
        users: UserDirectory,
        reactions: ReactionEngine,
        tree: CommentTreeAssembler,
    ):
        self.store = store
        self.users = users
        self.reactions = reactions
        self.tree = tree

    async def _get_comment(self, comment_id: UUID) -> Comment:
        comment = await self.store.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError
        return comment

    # ==========================================================================
    # Comment CRUD
    # ==========================================================================

    async def create_comment(
        self,
        actor_id: UUID,
        post_id: UUID,
        body: str,
        parent_id: UUID | None = None,
        created_at: datetime | None = None,
    ) -> Comment:
        """Create a comment, or a reply when ``parent_id`` is given.

        Raises:
            UserNotFoundError: actor unknown
            DepartmentNotVerifiedError: actor not verified
            PostNotFoundError: post missing or deleted
            CommentNotFoundError: parent missing or deleted
            InvalidRequestError: parent on another post, or itself a reply
        """
        author = await self.users.require_verified_actor(actor_id)

        if await self.store.get_post(post_id) is None:
            raise PostNotFoundError

        if parent_id is not None:
            parent = await self._get_comment(parent_id)
            if parent.post_id != post_id:
                raise InvalidRequestError("Parent comment belongs to another post")
            if parent.is_reply:
                raise InvalidRequestError("Replies cannot be nested further")

        comment = create_comment(
            post_id=post_id,
            author_id=actor_id,
            author_department=author.department,
            body=body,
            parent_id=parent_id,
            created_at=created_at,
        )
        await self.store.insert_comment(comment)
        await self.store.adjust_comment_count(post_id, 1)
        await self.tree.invalidate(post_id)

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            post_id=str(post_id),
            parent_id=str(parent_id) if parent_id else None,
            author_id=str(actor_id),
        )
        return comment

    async def update_comment(
        self, comment_id: UUID, actor_id: UUID, body: str
    ) -> Comment:
        """Replace a comment's body.

        Raises:
            CommentNotFoundError: comment missing or deleted
            DepartmentNotVerifiedError: actor not verified
            ForbiddenError: actor is not the author
        """
        comment = await self._get_comment(comment_id)
        await self.users.require_verified_actor(actor_id)

        if comment.author_id != actor_id:
            raise ForbiddenError("You can only edit your own comments")

        comment.update(body)
        await self.store.save_comment(comment)
        await self.tree.invalidate(comment.post_id)

        logger.info("comment_updated", comment_id=str(comment_id))
        return comment

    async def delete_comment(self, comment_id: UUID, actor_id: UUID) -> None:
        """Soft delete a comment. Its replies drop out of the tree with it.

        Raises:
            CommentNotFoundError: comment missing or already deleted
            ForbiddenError: actor is not the author
        """
        comment = await self._get_comment(comment_id)
        await self.users.require_actor(actor_id)

        if comment.author_id != actor_id:
            raise ForbiddenError("You can only delete your own comments")

        comment.delete()
        await self.store.save_comment(comment)
        await self.store.adjust_comment_count(comment.post_id, -1)
        await self.tree.invalidate(comment.post_id)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            post_id=str(comment.post_id),
        )

    # ==========================================================================
    # Reads and likes
    # ==========================================================================

    async def get_comments(
        self, post_id: UUID, actor_id: UUID | None = None
    ) -> CommentTree:
        """Two-level comment tree of a post as seen by the actor."""
        return await self.tree.assemble(post_id, actor_id)

    async def react_to_comment(
        self, comment_id: UUID, actor_id: UUID
    ) -> CommentLikeResult:
        """Toggle the actor's like on a comment."""
        result = await self.reactions.toggle_comment_like(comment_id, actor_id)
        await self.tree.invalidate(result.comment.post_id)
        return result
