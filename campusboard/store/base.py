"""Entity store interface.

The store is the only shared mutable resource of the board. It exposes CRUD
and simple predicate queries over posts, comments, and their reactions, plus
two atomic operations that apply a planned reaction transition (reaction row
and subject counters together) or fail with ``ConflictError``.

Soft-deleted rows never leave the store: every read goes through
``is_active`` and a deleted post or comment looks exactly like a missing one.
"""

from abc import ABC, abstractmethod
from typing import TypeVar
from uuid import UUID

from campusboard.comments.models import Comment
from campusboard.posts.models import Post, PostReaction
from campusboard.reactions.models import CommentLikeTransition, PostReactionTransition


T = TypeVar("T", Post, Comment)


def is_active(entity: T | None) -> bool:
    """The single "active record" predicate."""
    return entity is not None and not entity.is_deleted


def active_or_none(entity: T | None) -> T | None:
    """Return the entity only if it is active."""
    return entity if is_active(entity) else None


def comment_order_key(comment: Comment) -> tuple:
    """Chronological display order, ties by id."""
    return (comment.created_at, comment.comment_id)


class EntityStore(ABC):
    """Persistence interface consumed by the board core."""

    # -- posts -----------------------------------------------------------------

    @abstractmethod
    async def insert_post(self, post: Post) -> None:
        ...

    @abstractmethod
    async def get_post(self, post_id: UUID) -> Post | None:
        """Active post by id."""

    @abstractmethod
    async def save_post(self, post: Post) -> None:
        """Persist the editable fields and the deleted flag. Counters untouched."""

    @abstractmethod
    async def list_posts(self) -> list[Post]:
        """All active posts, unordered."""

    @abstractmethod
    async def increment_view_count(self, post_id: UUID) -> Post | None:
        """Atomically add one view; returns the post as of after the increment."""

    @abstractmethod
    async def adjust_comment_count(self, post_id: UUID, delta: int) -> None:
        ...

    # -- comments --------------------------------------------------------------

    @abstractmethod
    async def insert_comment(self, comment: Comment) -> None:
        ...

    @abstractmethod
    async def get_comment(self, comment_id: UUID) -> Comment | None:
        """Active comment by id."""

    @abstractmethod
    async def save_comment(self, comment: Comment) -> None:
        """Persist body and deleted flag. like_count untouched."""

    @abstractmethod
    async def list_top_level_comments(self, post_id: UUID) -> list[Comment]:
        """Active top-level comments of a post, oldest first (ties by id)."""

    @abstractmethod
    async def list_replies(
        self, post_id: UUID, parent_ids: list[UUID]
    ) -> list[Comment]:
        """Active replies to the given parents, oldest first (ties by id)."""

    # -- reactions -------------------------------------------------------------

    @abstractmethod
    async def get_post_reaction(
        self, post_id: UUID, actor_id: UUID
    ) -> PostReaction | None:
        ...

    @abstractmethod
    async def apply_post_reaction(
        self, post_id: UUID, actor_id: UUID, transition: PostReactionTransition
    ) -> Post:
        """Apply a planned post reaction transition atomically.

        Raises:
            ConflictError: stored state differs from ``transition.current``
            PostNotFoundError: post missing or deleted
        """

    @abstractmethod
    async def has_comment_like(self, comment_id: UUID, actor_id: UUID) -> bool:
        ...

    @abstractmethod
    async def liked_comment_ids(
        self, actor_id: UUID, comment_ids: list[UUID]
    ) -> set[UUID]:
        """Subset of ``comment_ids`` the actor has liked."""

    @abstractmethod
    async def apply_comment_like(
        self, comment_id: UUID, actor_id: UUID, transition: CommentLikeTransition
    ) -> Comment:
        """Apply a planned comment like toggle atomically.

        Raises:
            ConflictError: stored like state differs from the planned one
            CommentNotFoundError: comment missing or deleted
        """
