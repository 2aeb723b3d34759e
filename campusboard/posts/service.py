"""Post service.

Board write paths (create, edit, soft delete) and the public read and
reaction operations: detail view with view counting, board listing through
the query planner, and like/dislike reactions through the reaction engine.
"""

from datetime import datetime
from uuid import UUID

import structlog

from campusboard.core.exceptions import ForbiddenError, PostNotFoundError
from campusboard.reactions.engine import PostReactionResult, ReactionEngine
from campusboard.reactions.models import ReactionKind, ReactionState
from campusboard.store.base import EntityStore
from campusboard.users.directory import UserDirectory

from .models import BoardCategory, Post, create_post
from .planner import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, BoardQuery, Page, execute


logger = structlog.get_logger(__name__)


class PostService:
    """Service for board posts."""

    def __init__(
        self,
        store: EntityStore,
        users: UserDirectory,
        reactions: ReactionEngine,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.store = store
        self.users = users
        self.reactions = reactions
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def _get_post(self, post_id: UUID) -> Post:
        post = await self.store.get_post(post_id)
        if post is None:
            raise PostNotFoundError
        return post

    # ==========================================================================
    # Post CRUD
    # ==========================================================================

    async def create_post(
        self,
        actor_id: UUID,
        title: str,
        body: str,
        category: BoardCategory,
        created_at: datetime | None = None,
    ) -> Post:
        """Create a post authored by a department-verified actor.

        The actor's current department is copied onto the post.
        """
        author = await self.users.require_verified_actor(actor_id)

        post = create_post(
            author_id=actor_id,
            author_department=author.department,
            title=title,
            body=body,
            category=category,
            created_at=created_at,
        )
        await self.store.insert_post(post)

        logger.info(
            "post_created",
            post_id=str(post.post_id),
            author_id=str(actor_id),
            category=category.value,
        )
        return post

    async def update_post(
        self,
        post_id: UUID,
        actor_id: UUID,
        title: str,
        body: str,
        category: BoardCategory,
    ) -> Post:
        """Replace the editable fields of the actor's own post."""
        post = await self._get_post(post_id)
        await self.users.require_verified_actor(actor_id)

        if post.author_id != actor_id:
            raise ForbiddenError("You can only edit your own posts")

        post.update(title=title, body=body, category=category)
        await self.store.save_post(post)

        logger.info("post_updated", post_id=str(post_id))
        return post

    async def delete_post(self, post_id: UUID, actor_id: UUID) -> None:
        """Soft delete the actor's own post."""
        post = await self._get_post(post_id)
        await self.users.require_actor(actor_id)

        if post.author_id != actor_id:
            raise ForbiddenError("You can only delete your own posts")

        post.delete()
        await self.store.save_post(post)

        logger.info("post_deleted", post_id=str(post_id))

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_post_detail(
        self, post_id: UUID, actor_id: UUID | None = None
    ) -> tuple[Post, ReactionState]:
        """Open a post: counts one view and returns the actor's reaction."""
        post = await self.store.increment_view_count(post_id)
        if post is None:
            raise PostNotFoundError
        state = await self.reactions.get_post_reaction_state(post_id, actor_id)
        return post, state

    async def list_posts(
        self,
        keyword: str | None = None,
        category: BoardCategory | None = None,
        department: str | None = None,
        sort: str | None = None,
        page: int | None = 0,
        size: int | None = None,
    ) -> Page[Post]:
        """One page of the board. Never counts views."""
        query = BoardQuery.build(
            keyword=keyword,
            category=category,
            department=department,
            sort=sort,
            page=page,
            size=size,
            default_size=self.default_page_size,
            max_size=self.max_page_size,
        )
        posts = await self.store.list_posts()
        return execute(query, posts)

    def list_categories(self) -> list[BoardCategory]:
        """The category catalogue in declaration order."""
        return list(BoardCategory)

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def react_to_post(
        self, post_id: UUID, actor_id: UUID, kind: ReactionKind
    ) -> PostReactionResult:
        """Like or dislike a post; repeating the current reaction cancels it."""
        return await self.reactions.set_post_reaction(post_id, actor_id, kind)
