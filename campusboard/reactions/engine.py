"""Reaction engine.

Reads the actor's current reaction, plans the transition, and hands the plan
to the entity store, which applies the reaction row and the counters
together or raises ``ConflictError`` when another request got there first.
On conflict the engine re-reads and re-plans, up to
``reaction_max_retries`` attempts with a short jittered backoff.
"""

import asyncio
import random
from dataclasses import dataclass
from uuid import UUID

import structlog

from campusboard.comments.models import Comment
from campusboard.core.exceptions import (
    CommentNotFoundError,
    ConflictError,
    PostNotFoundError,
    RetryExhaustedError,
)
from campusboard.posts.models import Post
from campusboard.store.base import EntityStore
from campusboard.users.directory import UserDirectory

from .models import ReactionKind, ReactionState, plan_comment_like, plan_post_reaction


logger = structlog.get_logger(__name__)


@dataclass
class PostReactionResult:
    """Counters and actor state after a post reaction."""

    like_count: int
    dislike_count: int
    state: ReactionState
    post: Post


@dataclass
class CommentLikeResult:
    """Counter and actor state after a comment like toggle."""

    like_count: int
    liked: bool
    comment: Comment


class ReactionEngine:
    """Applies reaction transitions with bounded conflict retry."""

    def __init__(
        self,
        store: EntityStore,
        users: UserDirectory,
        max_retries: int = 10,
        backoff_ms: int = 5,
    ):
        self.store = store
        self.users = users
        self.max_retries = max(1, max_retries)
        self.backoff_ms = backoff_ms

    async def _backoff(self, attempt: int) -> None:
        if self.backoff_ms <= 0:
            await asyncio.sleep(0)
            return
        delay = self.backoff_ms * attempt * random.uniform(0.5, 1.5)  # noqa: S311
        await asyncio.sleep(delay / 1000)

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def get_post_reaction_state(
        self, post_id: UUID, actor_id: UUID | None
    ) -> ReactionState:
        """Current reaction of the actor on the post (NONE when anonymous)."""
        if actor_id is None:
            return ReactionState.NONE
        reaction = await self.store.get_post_reaction(post_id, actor_id)
        return ReactionState.of(reaction.kind if reaction else None)

    async def set_post_reaction(
        self, post_id: UUID, actor_id: UUID, desired: ReactionKind
    ) -> PostReactionResult:
        """Cast, switch, or cancel the actor's reaction on a post.

        Raises:
            PostNotFoundError: post missing or deleted
            UserNotFoundError: actor unknown
            DepartmentNotVerifiedError: actor not verified
            RetryExhaustedError: contention outlasted the retry budget
        """
        if await self.store.get_post(post_id) is None:
            raise PostNotFoundError
        await self.users.require_verified_actor(actor_id)

        for attempt in range(1, self.max_retries + 1):
            current = await self.get_post_reaction_state(post_id, actor_id)
            transition = plan_post_reaction(current, desired)
            try:
                post = await self.store.apply_post_reaction(
                    post_id, actor_id, transition
                )
            except ConflictError:
                logger.debug(
                    "post_reaction_conflict",
                    post_id=str(post_id),
                    actor_id=str(actor_id),
                    attempt=attempt,
                )
                await self._backoff(attempt)
                continue

            logger.info(
                "post_reaction_applied",
                post_id=str(post_id),
                actor_id=str(actor_id),
                previous=current.value,
                state=transition.target.value,
                like_count=post.like_count,
                dislike_count=post.dislike_count,
            )
            return PostReactionResult(
                like_count=post.like_count,
                dislike_count=post.dislike_count,
                state=transition.target,
                post=post,
            )

        logger.error(
            "post_reaction_retry_exhausted",
            post_id=str(post_id),
            actor_id=str(actor_id),
            attempts=self.max_retries,
        )
        raise RetryExhaustedError

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def is_comment_liked(self, comment_id: UUID, actor_id: UUID | None) -> bool:
        """Whether the actor likes the comment (False when anonymous)."""
        if actor_id is None:
            return False
        return await self.store.has_comment_like(comment_id, actor_id)

    async def liked_comment_ids(
        self, actor_id: UUID | None, comment_ids: list[UUID]
    ) -> set[UUID]:
        """Comments among ``comment_ids`` liked by the actor."""
        if actor_id is None or not comment_ids:
            return set()
        return await self.store.liked_comment_ids(actor_id, comment_ids)

    async def toggle_comment_like(
        self, comment_id: UUID, actor_id: UUID
    ) -> CommentLikeResult:
        """Like a comment, or take the like back.

        Raises:
            CommentNotFoundError: comment, or the parent of a reply, missing or
                deleted
            PostNotFoundError: the comment's post is deleted
            UserNotFoundError: actor unknown
            DepartmentNotVerifiedError: actor not verified
            RetryExhaustedError: contention outlasted the retry budget
        """
        comment = await self.store.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError
        # Only comments that are shown in a tree can be liked
        if await self.store.get_post(comment.post_id) is None:
            raise PostNotFoundError
        if comment.is_reply and await self.store.get_comment(comment.parent_id) is None:
            raise CommentNotFoundError
        await self.users.require_verified_actor(actor_id)

        for attempt in range(1, self.max_retries + 1):
            currently_liked = await self.is_comment_liked(comment_id, actor_id)
            transition = plan_comment_like(currently_liked)
            try:
                comment = await self.store.apply_comment_like(
                    comment_id, actor_id, transition
                )
            except ConflictError:
                logger.debug(
                    "comment_like_conflict",
                    comment_id=str(comment_id),
                    actor_id=str(actor_id),
                    attempt=attempt,
                )
                await self._backoff(attempt)
                continue

            logger.info(
                "comment_like_toggled",
                comment_id=str(comment_id),
                actor_id=str(actor_id),
                liked=transition.liked,
                like_count=comment.like_count,
            )
            return CommentLikeResult(
                like_count=comment.like_count,
                liked=transition.liked,
                comment=comment,
            )

        logger.error(
            "comment_like_retry_exhausted",
            comment_id=str(comment_id),
            actor_id=str(actor_id),
            attempts=self.max_retries,
        )
        raise RetryExhaustedError
