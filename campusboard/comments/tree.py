"""Comment tree assembly.

Builds the two-level comment tree of a post: active top-level comments,
oldest first, each with its active replies, oldest first. Replies whose
parent is gone are never shown. Like flags are per actor and are computed on
every request; the actor-independent part of the tree may be cached in
Redis. Cached trees are filed under a per-post version that every comment
write or like bumps, so a read racing a write can never republish a stale
tree.
"""

import json
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from redis.exceptions import RedisError

from campusboard.core.exceptions import PostNotFoundError
from campusboard.core.redis import comment_tree_key, comment_tree_version_key
from campusboard.reactions.engine import ReactionEngine
from campusboard.store.base import EntityStore

from .models import Comment


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = structlog.get_logger(__name__)


@dataclass
class CommentNode:
    """A comment annotated for one viewer."""

    comment: Comment
    liked: bool = False
    replies: list["CommentNode"] = field(default_factory=list)

    @property
    def reply_count(self) -> int:
        return len(self.replies)


@dataclass
class CommentTree:
    """Ordered top-level nodes and the total number of shown comments."""

    comments: list[CommentNode]
    total_comments: int


class CommentTreeAssembler:
    """Assembles comment trees, optionally through a Redis cache."""

    def __init__(
        self,
        store: EntityStore,
        reactions: ReactionEngine,
        redis: "Redis | None" = None,
        cache_ttl_seconds: int = 300,
    ):
        self.store = store
        self.reactions = reactions
        self.redis = redis
        self.cache_ttl_seconds = cache_ttl_seconds

    async def assemble(
        self, post_id: UUID, actor_id: UUID | None = None
    ) -> CommentTree:
        """Build the comment tree of a post as seen by ``actor_id``.

        Raises:
            PostNotFoundError: post missing or deleted
        """
        if await self.store.get_post(post_id) is None:
            raise PostNotFoundError

        top_level, replies = await self._load(post_id)

        groups: dict[UUID, list[Comment]] = defaultdict(list)
        for reply in replies:
            groups[reply.parent_id].append(reply)

        shown_ids = [c.comment_id for c in top_level]
        for comment in top_level:
            shown_ids.extend(r.comment_id for r in groups.get(comment.comment_id, []))
        liked = await self.reactions.liked_comment_ids(actor_id, shown_ids)

        nodes = [
            CommentNode(
                comment=comment,
                liked=comment.comment_id in liked,
                replies=[
                    CommentNode(comment=reply, liked=reply.comment_id in liked)
                    for reply in groups.get(comment.comment_id, [])
                ],
            )
            for comment in top_level
        ]
        total = len(nodes) + sum(node.reply_count for node in nodes)
        return CommentTree(comments=nodes, total_comments=total)

    async def _load(self, post_id: UUID) -> tuple[list[Comment], list[Comment]]:
        # The version is read before the store so a snapshot taken ahead of a
        # write is filed under a version the write then retires.
        version = await self._get_version(post_id)
        if version is not None:
            cached = await self._get_cached(post_id, version)
            if cached is not None:
                return cached

        top_level = await self.store.list_top_level_comments(post_id)
        replies = await self.store.list_replies(
            post_id, [c.comment_id for c in top_level]
        )
        if version is not None:
            await self._cache(post_id, version, top_level, replies)
        return top_level, replies

    # ==========================================================================
    # Cache
    # ==========================================================================

    async def _get_version(self, post_id: UUID) -> int | None:
        """Current tree version of a post, or None when the cache is unusable."""
        if not self.redis:
            return None

        try:
            version = await self.redis.get(comment_tree_version_key(post_id))
        except RedisError as e:
            logger.warning("comment_tree_cache_read_failed", error=str(e))
            return None

        return int(version) if version else 0

    async def _get_cached(
        self, post_id: UUID, version: int
    ) -> tuple[list[Comment], list[Comment]] | None:
        """Get one cached version of the tree of a post."""
        try:
            cached = await self.redis.get(comment_tree_key(post_id, version))
        except RedisError as e:
            logger.warning("comment_tree_cache_read_failed", error=str(e))
            return None

        if not cached:
            return None

        data = json.loads(cached)
        return (
            [Comment.from_dict(c) for c in data["top_level"]],
            [Comment.from_dict(c) for c in data["replies"]],
        )

    async def _cache(
        self,
        post_id: UUID,
        version: int,
        top_level: list[Comment],
        replies: list[Comment],
    ) -> None:
        """Cache the tree of a post under the version it was read at."""
        payload = {
            "top_level": [c.to_dict() for c in top_level],
            "replies": [c.to_dict() for c in replies],
        }
        try:
            await self.redis.setex(
                comment_tree_key(post_id, version),
                self.cache_ttl_seconds,
                json.dumps(payload),
            )
        except RedisError as e:
            logger.warning("comment_tree_cache_write_failed", error=str(e))

    async def invalidate(self, post_id: UUID) -> None:
        """Retire every cached version of the tree of a post."""
        if not self.redis:
            return

        try:
            await self.redis.incr(comment_tree_version_key(post_id))
        except RedisError as e:
            logger.warning("comment_tree_cache_invalidate_failed", error=str(e))
