"""Tests for the comment service."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio

from campusboard.comments.service import CommentService
from campusboard.comments.tree import CommentTreeAssembler
from campusboard.core.exceptions import (
    CommentNotFoundError,
    DepartmentNotVerifiedError,
    ForbiddenError,
    InvalidRequestError,
    PostNotFoundError,
)
from campusboard.core.redis import comment_tree_version_key
from campusboard.posts.models import BoardCategory, create_post


@pytest_asyncio.fixture
async def post(store, verified_user):
    """Active post to comment on."""
    post = create_post(
        author_id=verified_user.user_id,
        author_department=verified_user.department,
        title="Internship fair",
        body="Which companies are coming?",
        category=BoardCategory.CAREER,
    )
    await store.insert_post(post)
    return post


class TestCreateComment:
    """Tests for create_comment."""

    @pytest.mark.asyncio
    async def test_top_level_comment(self, comment_service, store, post, other_user):
        """A comment copies the author's department and bumps comment_count."""
        comment = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="Samsung, LG"
        )

        assert comment.parent_id is None
        assert comment.author_department == "Electronic Engineering"
        assert (await store.get_post(post.post_id)).comment_count == 1

    @pytest.mark.asyncio
    async def test_reply(self, comment_service, post, verified_user, other_user):
        """Replies attach to a top-level comment of the same post."""
        parent = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="Samsung"
        )

        reply = await comment_service.create_comment(
            actor_id=verified_user.user_id,
            post_id=post.post_id,
            body="Thanks!",
            parent_id=parent.comment_id,
        )

        assert reply.parent_id == parent.comment_id
        assert reply.is_reply is True

    @pytest.mark.asyncio
    async def test_reply_to_reply_is_rejected(
        self, comment_service, post, verified_user
    ):
        """Nesting stops at one level."""
        parent = await comment_service.create_comment(
            actor_id=verified_user.user_id, post_id=post.post_id, body="a"
        )
        reply = await comment_service.create_comment(
            actor_id=verified_user.user_id,
            post_id=post.post_id,
            body="b",
            parent_id=parent.comment_id,
        )

        with pytest.raises(InvalidRequestError):
            await comment_service.create_comment(
                actor_id=verified_user.user_id,
                post_id=post.post_id,
                body="c",
                parent_id=reply.comment_id,
            )

    @pytest.mark.asyncio
    async def test_parent_on_other_post_is_rejected(
        self, comment_service, store, post, verified_user
    ):
        """A reply's parent must belong to the same post."""
        elsewhere = create_post(
            author_id=verified_user.user_id,
            author_department=verified_user.department,
            title="Other",
            body="Other post",
            category=BoardCategory.FREE,
        )
        await store.insert_post(elsewhere)
        parent = await comment_service.create_comment(
            actor_id=verified_user.user_id, post_id=elsewhere.post_id, body="x"
        )

        with pytest.raises(InvalidRequestError):
            await comment_service.create_comment(
                actor_id=verified_user.user_id,
                post_id=post.post_id,
                body="y",
                parent_id=parent.comment_id,
            )

    @pytest.mark.asyncio
    async def test_deleted_parent_is_rejected(
        self, comment_service, post, verified_user
    ):
        """Replies to deleted comments fail with CommentNotFoundError."""
        parent = await comment_service.create_comment(
            actor_id=verified_user.user_id, post_id=post.post_id, body="x"
        )
        await comment_service.delete_comment(parent.comment_id, verified_user.user_id)

        with pytest.raises(CommentNotFoundError):
            await comment_service.create_comment(
                actor_id=verified_user.user_id,
                post_id=post.post_id,
                body="y",
                parent_id=parent.comment_id,
            )

    @pytest.mark.asyncio
    async def test_missing_post(self, comment_service, verified_user):
        """Comments need an active post."""
        with pytest.raises(PostNotFoundError):
            await comment_service.create_comment(
                actor_id=verified_user.user_id, post_id=uuid4(), body="x"
            )

    @pytest.mark.asyncio
    async def test_unverified_author(self, comment_service, post, unverified_user):
        """Unverified actors cannot comment."""
        with pytest.raises(DepartmentNotVerifiedError):
            await comment_service.create_comment(
                actor_id=unverified_user.user_id, post_id=post.post_id, body="x"
            )


class TestUpdateAndDelete:
    """Tests for update_comment and delete_comment."""

    @pytest.mark.asyncio
    async def test_owner_edits_body(self, comment_service, post, other_user):
        """The author can replace the body."""
        comment = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="tpyo"
        )

        updated = await comment_service.update_comment(
            comment.comment_id, other_user.user_id, "typo"
        )

        assert updated.body == "typo"
        tree = await comment_service.get_comments(post.post_id)
        assert tree.comments[0].comment.body == "typo"

    @pytest.mark.asyncio
    async def test_non_owner_cannot_edit(
        self, comment_service, post, verified_user, other_user
    ):
        """Only the author can edit."""
        comment = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="mine"
        )

        with pytest.raises(ForbiddenError):
            await comment_service.update_comment(
                comment.comment_id, verified_user.user_id, "yours"
            )

    @pytest.mark.asyncio
    async def test_delete_decrements_comment_count(
        self, comment_service, store, post, other_user
    ):
        """Soft delete hides the comment and lowers comment_count."""
        comment = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="bye"
        )

        await comment_service.delete_comment(comment.comment_id, other_user.user_id)

        assert (await store.get_post(post.post_id)).comment_count == 0
        assert (await comment_service.get_comments(post.post_id)).total_comments == 0

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(
        self, comment_service, post, verified_user, other_user
    ):
        """Only the author can delete."""
        comment = await comment_service.create_comment(
            actor_id=other_user.user_id, post_id=post.post_id, body="mine"
        )

        with pytest.raises(ForbiddenError):
            await comment_service.delete_comment(
                comment.comment_id, verified_user.user_id
            )


class TestCacheInvalidation:
    """Every comment write drops the cached tree of its post."""

    @pytest.fixture
    def mock_redis(self):
        """Mock Redis client with an empty cache."""
        redis_mock = AsyncMock()
        redis_mock.get = AsyncMock(return_value=None)
        return redis_mock

    @pytest.fixture
    def cached_service(self, store, users, engine, mock_redis):
        """Comment service whose tree goes through the mock Redis."""
        tree = CommentTreeAssembler(store=store, reactions=engine, redis=mock_redis)
        return CommentService(store=store, users=users, reactions=engine, tree=tree)

    @pytest.mark.asyncio
    async def test_writes_and_likes_invalidate(
        self, cached_service, mock_redis, post, verified_user
    ):
        """Create, like, update, and delete each bump the tree version."""
        key = comment_tree_version_key(post.post_id)
        actor = verified_user.user_id

        comment = await cached_service.create_comment(
            actor_id=actor, post_id=post.post_id, body="hello"
        )
        await cached_service.react_to_comment(comment.comment_id, actor)
        await cached_service.update_comment(comment.comment_id, actor, "hello!")
        await cached_service.delete_comment(comment.comment_id, actor)

        assert mock_redis.incr.await_count == 4
        for call in mock_redis.incr.await_args_list:
            assert call.args == (key,)

    @pytest.mark.asyncio
    async def test_like_toggle_result(self, cached_service, post, verified_user):
        """react_to_comment returns the new count and state."""
        comment = await cached_service.create_comment(
            actor_id=verified_user.user_id, post_id=post.post_id, body="hello"
        )

        liked = await cached_service.react_to_comment(
            comment.comment_id, verified_user.user_id
        )
        unliked = await cached_service.react_to_comment(
            comment.comment_id, verified_user.user_id
        )

        assert (liked.like_count, liked.liked) == (1, True)
        assert (unliked.like_count, unliked.liked) == (0, False)
