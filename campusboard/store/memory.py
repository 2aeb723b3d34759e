"""In-process entity store.

Rows live in dictionaries keyed by surrogate id; reaction rows are keyed by
(subject id, actor id), so uniqueness per actor is structural. Every write
that touches a subject runs under that subject's ``asyncio.Lock``, which is
the transaction boundary: reaction row and counters change together or not
at all. Reads hand out copies so callers cannot mutate stored state behind
the store's back.
"""

import asyncio
from collections import defaultdict
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID

from campusboard.comments.models import Comment, CommentReaction
from campusboard.core.exceptions import (
    CommentNotFoundError,
    ConflictError,
    PostNotFoundError,
)
from campusboard.posts.models import Post, PostReaction
from campusboard.reactions.models import (
    CommentLikeTransition,
    PostReactionTransition,
    ReactionKind,
    ReactionState,
    RowAction,
    apply_delta,
)

from .base import EntityStore, active_or_none, comment_order_key, is_active


class InMemoryEntityStore(EntityStore):
    """Entity store kept in process memory."""

    def __init__(self) -> None:
        self._posts: dict[UUID, Post] = {}
        self._comments: dict[UUID, Comment] = {}
        self._post_reactions: dict[tuple[UUID, UUID], PostReaction] = {}
        self._comment_reactions: dict[tuple[UUID, UUID], CommentReaction] = {}
        self._locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def insert_post(self, post: Post) -> None:
        self._posts[post.post_id] = replace(post)

    async def get_post(self, post_id: UUID) -> Post | None:
        post = active_or_none(self._posts.get(post_id))
        return replace(post) if post else None

    async def save_post(self, post: Post) -> None:
        async with self._locks[post.post_id]:
            stored = self._posts.get(post.post_id)
            if stored is None:
                raise PostNotFoundError
            stored.title = post.title
            stored.body = post.body
            stored.category = post.category
            stored.updated_at = post.updated_at
            # Deletion is one-way
            stored.is_deleted = stored.is_deleted or post.is_deleted

    async def list_posts(self) -> list[Post]:
        return [replace(p) for p in self._posts.values() if is_active(p)]

    async def increment_view_count(self, post_id: UUID) -> Post | None:
        async with self._locks[post_id]:
            post = active_or_none(self._posts.get(post_id))
            if post is None:
                return None
            post.view_count += 1
            return replace(post)

    async def adjust_comment_count(self, post_id: UUID, delta: int) -> None:
        async with self._locks[post_id]:
            post = self._posts.get(post_id)
            if post is not None:
                post.comment_count = apply_delta(post.comment_count, delta)

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def insert_comment(self, comment: Comment) -> None:
        self._comments[comment.comment_id] = replace(comment)

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        comment = active_or_none(self._comments.get(comment_id))
        return replace(comment) if comment else None

    async def save_comment(self, comment: Comment) -> None:
        async with self._locks[comment.comment_id]:
            stored = self._comments.get(comment.comment_id)
            if stored is None:
                raise CommentNotFoundError
            stored.body = comment.body
            stored.updated_at = comment.updated_at
            stored.is_deleted = stored.is_deleted or comment.is_deleted

    async def list_top_level_comments(self, post_id: UUID) -> list[Comment]:
        comments = [
            replace(c)
            for c in self._comments.values()
            if c.post_id == post_id and c.parent_id is None and is_active(c)
        ]
        return sorted(comments, key=comment_order_key)

    async def list_replies(
        self, post_id: UUID, parent_ids: list[UUID]
    ) -> list[Comment]:
        parents = set(parent_ids)
        replies = [
            replace(c)
            for c in self._comments.values()
            if c.post_id == post_id and c.parent_id in parents and is_active(c)
        ]
        return sorted(replies, key=comment_order_key)

    # ==========================================================================
    # Post reactions
    # ==========================================================================

    async def get_post_reaction(
        self, post_id: UUID, actor_id: UUID
    ) -> PostReaction | None:
        reaction = self._post_reactions.get((post_id, actor_id))
        return replace(reaction) if reaction else None

    async def apply_post_reaction(
        self, post_id: UUID, actor_id: UUID, transition: PostReactionTransition
    ) -> Post:
        async with self._locks[post_id]:
            post = active_or_none(self._posts.get(post_id))
            if post is None:
                raise PostNotFoundError

            key = (post_id, actor_id)
            existing = self._post_reactions.get(key)
            stored_state = ReactionState.of(existing.kind if existing else None)
            if stored_state is not transition.current:
                raise ConflictError

            if transition.action is RowAction.DELETE:
                del self._post_reactions[key]
            elif transition.action is RowAction.INSERT:
                self._post_reactions[key] = PostReaction(
                    post_id=post_id,
                    actor_id=actor_id,
                    kind=ReactionKind(transition.target.value),
                    created_at=datetime.now(UTC),
                )
            else:
                existing.kind = ReactionKind(transition.target.value)

            post.like_count = apply_delta(post.like_count, transition.like_delta)
            post.dislike_count = apply_delta(
                post.dislike_count, transition.dislike_delta
            )
            return replace(post)

    def count_post_reactions(self, post_id: UUID) -> dict[ReactionKind, int]:
        """Number of stored reaction rows per kind (consistency checks)."""
        counts = dict.fromkeys(ReactionKind, 0)
        for (reacted_post_id, _), reaction in self._post_reactions.items():
            if reacted_post_id == post_id:
                counts[reaction.kind] += 1
        return counts

    # ==========================================================================
    # Comment likes
    # ==========================================================================

    async def has_comment_like(self, comment_id: UUID, actor_id: UUID) -> bool:
        return (comment_id, actor_id) in self._comment_reactions

    async def liked_comment_ids(
        self, actor_id: UUID, comment_ids: list[UUID]
    ) -> set[UUID]:
        return {
            comment_id
            for comment_id in comment_ids
            if (comment_id, actor_id) in self._comment_reactions
        }

    async def apply_comment_like(
        self, comment_id: UUID, actor_id: UUID, transition: CommentLikeTransition
    ) -> Comment:
        async with self._locks[comment_id]:
            comment = active_or_none(self._comments.get(comment_id))
            if comment is None:
                raise CommentNotFoundError

            key = (comment_id, actor_id)
            if (key in self._comment_reactions) != transition.currently_liked:
                raise ConflictError

            if transition.action is RowAction.DELETE:
                del self._comment_reactions[key]
            else:
                self._comment_reactions[key] = CommentReaction(
                    comment_id=comment_id,
                    actor_id=actor_id,
                    created_at=datetime.now(UTC),
                )

            comment.like_count = apply_delta(comment.like_count, transition.like_delta)
            return replace(comment)

    def count_comment_likes(self, comment_id: UUID) -> int:
        """Number of stored like rows (consistency checks)."""
        return sum(1 for (cid, _) in self._comment_reactions if cid == comment_id)
