"""Cassandra-backed entity store.

A post and every reaction on it share one partition (post fields are static
columns, reaction rows cluster by actor id); comments and their likes are laid
out the same way. That lets a reaction toggle write the reaction row and the
subject counters in a single-partition conditional batch: the batch applies
only if the reaction row and the counters still hold the values the
transition was planned from, otherwise ``was_applied`` is false and the store
raises ``ConflictError`` for the engine to retry.

View and comment counts are plain increments and live in a counter table.
"""

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from cassandra.query import BatchStatement

from campusboard.comments.models import Comment
from campusboard.core.exceptions import (
    CommentNotFoundError,
    ConflictError,
    PostNotFoundError,
)
from campusboard.posts.models import Post, PostReaction
from campusboard.reactions.models import (
    CommentLikeTransition,
    PostReactionTransition,
    RowAction,
    apply_delta,
)

from .base import EntityStore, active_or_none, comment_order_key, is_active


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


POST_COLUMNS = (
    "post_id, title, body, author_id, author_department, category, "
    "like_count, dislike_count, is_deleted, created_at, updated_at"
)

COMMENT_COLUMNS = (
    "comment_id, post_id, parent_id, author_id, author_department, body, "
    "like_count, is_deleted, created_at, updated_at"
)


class CassandraEntityStore(EntityStore):
    """Entity store over the ``posts``, ``post_counters``, ``comments`` and
    ``comments_by_post`` tables."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        # Posts
        self._insert_post = self.session.prepare(f"""
            INSERT INTO {ks}.posts
            (post_id, title, body, author_id, author_department, category,
             like_count, dislike_count, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_post = self.session.prepare(f"""
            SELECT DISTINCT {POST_COLUMNS} FROM {ks}.posts WHERE post_id = ?
        """)

        self._list_posts = self.session.prepare(f"""
            SELECT DISTINCT {POST_COLUMNS} FROM {ks}.posts
        """)

        self._update_post = self.session.prepare(f"""
            UPDATE {ks}.posts
            SET title = ?, body = ?, category = ?, is_deleted = ?, updated_at = ?
            WHERE post_id = ?
        """)

        # Counters
        self._get_counters = self.session.prepare(f"""
            SELECT views, comments FROM {ks}.post_counters WHERE post_id = ?
        """)

        self._list_counters = self.session.prepare(f"""
            SELECT post_id, views, comments FROM {ks}.post_counters
        """)

        self._incr_views = self.session.prepare(f"""
            UPDATE {ks}.post_counters SET views = views + 1 WHERE post_id = ?
        """)

        self._add_comments = self.session.prepare(f"""
            UPDATE {ks}.post_counters SET comments = comments + ? WHERE post_id = ?
        """)

        # Post reactions
        self._get_post_reaction = self.session.prepare(f"""
            SELECT post_id, actor_id, reaction_kind, reacted_at FROM {ks}.posts
            WHERE post_id = ? AND actor_id = ?
        """)

        self._insert_post_reaction = self.session.prepare(f"""
            INSERT INTO {ks}.posts (post_id, actor_id, reaction_kind, reacted_at)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_post_reaction = self.session.prepare(f"""
            DELETE FROM {ks}.posts WHERE post_id = ? AND actor_id = ?
            IF reaction_kind = ?
        """)

        self._switch_post_reaction = self.session.prepare(f"""
            UPDATE {ks}.posts SET reaction_kind = ?, reacted_at = ?
            WHERE post_id = ? AND actor_id = ?
            IF reaction_kind = ?
        """)

        self._cas_post_counts = self.session.prepare(f"""
            UPDATE {ks}.posts SET like_count = ?, dislike_count = ?
            WHERE post_id = ?
            IF like_count = ? AND dislike_count = ? AND is_deleted = false
        """)

        # Comments
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments
            (comment_id, post_id, parent_id, author_id, author_department, body,
             like_count, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_comment_by_post = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_post (post_id, created_at, comment_id, parent_id)
            VALUES (?, ?, ?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT DISTINCT {COMMENT_COLUMNS} FROM {ks}.comments WHERE comment_id = ?
        """)

        self._update_comment = self.session.prepare(f"""
            UPDATE {ks}.comments SET body = ?, is_deleted = ?, updated_at = ?
            WHERE comment_id = ?
        """)

        self._get_comments_by_post = self.session.prepare(f"""
            SELECT comment_id, parent_id FROM {ks}.comments_by_post
            WHERE post_id = ?
        """)

        # Comment likes
        self._get_comment_like = self.session.prepare(f"""
            SELECT actor_id FROM {ks}.comments
            WHERE comment_id = ? AND actor_id = ?
        """)

        self._insert_comment_like = self.session.prepare(f"""
            INSERT INTO {ks}.comments (comment_id, actor_id, liked_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_comment_like = self.session.prepare(f"""
            DELETE FROM {ks}.comments WHERE comment_id = ? AND actor_id = ?
            IF EXISTS
        """)

        self._cas_comment_likes = self.session.prepare(f"""
            UPDATE {ks}.comments SET like_count = ?
            WHERE comment_id = ?
            IF like_count = ? AND is_deleted = false
        """)

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def insert_post(self, post: Post) -> None:
        await self.session.aexecute(
            self._insert_post,
            [
                post.post_id,
                post.title,
                post.body,
                post.author_id,
                post.author_department,
                post.category.value,
                post.like_count,
                post.dislike_count,
                post.is_deleted,
                post.created_at,
                post.updated_at,
            ],
        )

    async def _get_post_row(self, post_id: UUID):
        result = await self.session.aexecute(self._get_post, [post_id])
        return result.one()

    async def _get_counts(self, post_id: UUID) -> tuple[int, int]:
        result = await self.session.aexecute(self._get_counters, [post_id])
        row = result.one()
        if row is None:
            return 0, 0
        return max(0, row.views or 0), max(0, row.comments or 0)

    async def get_post(self, post_id: UUID) -> Post | None:
        row = await self._get_post_row(post_id)
        if row is None or row.is_deleted:
            return None
        views, comments = await self._get_counts(post_id)
        return Post.from_row(row, view_count=views, comment_count=comments)

    async def save_post(self, post: Post) -> None:
        await self.session.aexecute(
            self._update_post,
            [
                post.title,
                post.body,
                post.category.value,
                post.is_deleted,
                post.updated_at,
                post.post_id,
            ],
        )

    async def list_posts(self) -> list[Post]:
        counters = {
            row.post_id: (max(0, row.views or 0), max(0, row.comments or 0))
            for row in await self.session.aexecute(self._list_counters)
        }
        posts = []
        for row in await self.session.aexecute(self._list_posts):
            # Partitions holding only reaction rows have no static title
            if row.title is None:
                continue
            views, comments = counters.get(row.post_id, (0, 0))
            post = Post.from_row(row, view_count=views, comment_count=comments)
            if is_active(post):
                posts.append(post)
        return posts

    async def increment_view_count(self, post_id: UUID) -> Post | None:
        if await self.get_post(post_id) is None:
            return None
        await self.session.aexecute(self._incr_views, [post_id])
        return await self.get_post(post_id)

    async def adjust_comment_count(self, post_id: UUID, delta: int) -> None:
        await self.session.aexecute(self._add_comments, [delta, post_id])

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def insert_comment(self, comment: Comment) -> None:
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.comment_id,
                comment.post_id,
                comment.parent_id,
                comment.author_id,
                comment.author_department,
                comment.body,
                comment.like_count,
                comment.is_deleted,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_comment_by_post,
            [comment.post_id, comment.created_at, comment.comment_id, comment.parent_id],
        )

    async def _get_comment_row(self, comment_id: UUID):
        result = await self.session.aexecute(self._get_comment, [comment_id])
        return result.one()

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        row = await self._get_comment_row(comment_id)
        if row is None or row.post_id is None:
            return None
        return active_or_none(Comment.from_row(row))

    async def save_comment(self, comment: Comment) -> None:
        await self.session.aexecute(
            self._update_comment,
            [comment.body, comment.is_deleted, comment.updated_at, comment.comment_id],
        )

    async def _load_comments(self, comment_ids: list[UUID]) -> list[Comment]:
        loaded = await asyncio.gather(*(self.get_comment(cid) for cid in comment_ids))
        return sorted((c for c in loaded if c is not None), key=comment_order_key)

    async def list_top_level_comments(self, post_id: UUID) -> list[Comment]:
        rows = await self.session.aexecute(self._get_comments_by_post, [post_id])
        return await self._load_comments(
            [row.comment_id for row in rows if row.parent_id is None]
        )

    async def list_replies(
        self, post_id: UUID, parent_ids: list[UUID]
    ) -> list[Comment]:
        parents = set(parent_ids)
        rows = await self.session.aexecute(self._get_comments_by_post, [post_id])
        return await self._load_comments(
            [row.comment_id for row in rows if row.parent_id in parents]
        )

    # ==========================================================================
    # Post reactions
    # ==========================================================================

    async def get_post_reaction(
        self, post_id: UUID, actor_id: UUID
    ) -> PostReaction | None:
        result = await self.session.aexecute(
            self._get_post_reaction, [post_id, actor_id]
        )
        row = result.one()
        if row is None or row.reaction_kind is None:
            return None
        return PostReaction.from_row(row)

    async def apply_post_reaction(
        self, post_id: UUID, actor_id: UUID, transition: PostReactionTransition
    ) -> Post:
        row = await self._get_post_row(post_id)
        if row is None or row.title is None or row.is_deleted:
            raise PostNotFoundError

        like_count = row.like_count or 0
        dislike_count = row.dislike_count or 0
        new_like = apply_delta(like_count, transition.like_delta)
        new_dislike = apply_delta(dislike_count, transition.dislike_delta)
        now = datetime.now(UTC)

        batch = BatchStatement()
        if transition.action is RowAction.INSERT:
            batch.add(
                self._insert_post_reaction,
                [post_id, actor_id, transition.target.value, now],
            )
        elif transition.action is RowAction.DELETE:
            batch.add(
                self._delete_post_reaction,
                [post_id, actor_id, transition.current.value],
            )
        else:
            batch.add(
                self._switch_post_reaction,
                [
                    transition.target.value,
                    now,
                    post_id,
                    actor_id,
                    transition.current.value,
                ],
            )
        batch.add(
            self._cas_post_counts,
            [new_like, new_dislike, post_id, like_count, dislike_count],
        )

        result = await self.session.aexecute(batch)
        if not result.was_applied:
            logger.debug(
                "post_reaction_cas_rejected",
                post_id=str(post_id),
                actor_id=str(actor_id),
            )
            raise ConflictError

        views, comments = await self._get_counts(post_id)
        post = Post.from_row(row, view_count=views, comment_count=comments)
        post.like_count = new_like
        post.dislike_count = new_dislike
        return post

    # ==========================================================================
    # Comment likes
    # ==========================================================================

    async def has_comment_like(self, comment_id: UUID, actor_id: UUID) -> bool:
        result = await self.session.aexecute(
            self._get_comment_like, [comment_id, actor_id]
        )
        return result.one() is not None

    async def liked_comment_ids(
        self, actor_id: UUID, comment_ids: list[UUID]
    ) -> set[UUID]:
        flags = await asyncio.gather(
            *(self.has_comment_like(cid, actor_id) for cid in comment_ids)
        )
        return {cid for cid, liked in zip(comment_ids, flags, strict=True) if liked}

    async def apply_comment_like(
        self, comment_id: UUID, actor_id: UUID, transition: CommentLikeTransition
    ) -> Comment:
        comment = await self.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError

        new_count = apply_delta(comment.like_count, transition.like_delta)

        batch = BatchStatement()
        if transition.action is RowAction.INSERT:
            batch.add(
                self._insert_comment_like, [comment_id, actor_id, datetime.now(UTC)]
            )
        else:
            batch.add(self._delete_comment_like, [comment_id, actor_id])
        batch.add(
            self._cas_comment_likes, [new_count, comment_id, comment.like_count]
        )

        result = await self.session.aexecute(batch)
        if not result.was_applied:
            logger.debug(
                "comment_like_cas_rejected",
                comment_id=str(comment_id),
                actor_id=str(actor_id),
            )
            raise ConflictError

        comment.like_count = new_count
        return comment
