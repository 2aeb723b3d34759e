"""Tests for comment tree assembly and its Redis cache."""

import asyncio
import json
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from campusboard.comments.models import create_comment
from campusboard.comments.tree import CommentTreeAssembler
from campusboard.core.exceptions import PostNotFoundError
from campusboard.core.redis import comment_tree_key, comment_tree_version_key
from campusboard.posts.models import BoardCategory, create_post


@pytest_asyncio.fixture
async def post(store, verified_user):
    """Active post to comment on."""
    post = create_post(
        author_id=verified_user.user_id,
        author_department=verified_user.department,
        title="Capstone teams",
        body="Post your project ideas below.",
        category=BoardCategory.COMPUTER_SCIENCE,
    )
    await store.insert_post(post)
    return post


@pytest.fixture
def add_comment(store, post, other_user, at):
    """Insert a comment on ``post`` created ``minutes`` after the base time."""

    async def _add(minutes, parent=None, body="comment"):
        comment = create_comment(
            post_id=post.post_id,
            author_id=other_user.user_id,
            author_department=other_user.department,
            body=body,
            parent_id=parent.comment_id if parent else None,
            created_at=at(minutes),
        )
        await store.insert_comment(comment)
        return comment

    return _add


def ids(nodes):
    return [n.comment.comment_id for n in nodes]


class TestAssemble:
    """Tests for tree shape and ordering."""

    @pytest.mark.asyncio
    async def test_replies_grouped_under_parent(
        self, tree_assembler, post, add_comment
    ):
        """C1 with replies C2, C3 yields replies [C2, C3] and reply_count 2."""
        c1 = await add_comment(1)
        c2 = await add_comment(2, parent=c1)
        c3 = await add_comment(3, parent=c1)

        tree = await tree_assembler.assemble(post.post_id)

        assert ids(tree.comments) == [c1.comment_id]
        assert ids(tree.comments[0].replies) == [c2.comment_id, c3.comment_id]
        assert tree.comments[0].reply_count == 2
        assert tree.total_comments == 3

    @pytest.mark.asyncio
    async def test_top_level_oldest_first(self, tree_assembler, post, add_comment):
        """Top-level comments are chronological regardless of insert order."""
        late = await add_comment(10)
        early = await add_comment(5)
        lone = await add_comment(7)
        await add_comment(11, parent=early)

        tree = await tree_assembler.assemble(post.post_id)

        assert ids(tree.comments) == [early.comment_id, lone.comment_id, late.comment_id]
        assert [n.reply_count for n in tree.comments] == [1, 0, 0]
        assert tree.total_comments == 4

    @pytest.mark.asyncio
    async def test_same_instant_ties_by_id(
        self, tree_assembler, store, post, add_comment
    ):
        """Comments created at the same instant order by id ascending."""
        a = await add_comment(1)
        b = await add_comment(1)
        high, low = sorted([a, b], key=lambda c: c.comment_id, reverse=True)

        tree = await tree_assembler.assemble(post.post_id)

        assert ids(tree.comments) == [low.comment_id, high.comment_id]

    @pytest.mark.asyncio
    async def test_deleted_parent_takes_replies_along(
        self, tree_assembler, store, post, add_comment
    ):
        """Deleting a top-level comment removes it and its replies only."""
        c1 = await add_comment(1)
        await add_comment(2, parent=c1)
        c3 = await add_comment(3)
        c4 = await add_comment(4)
        c5 = await add_comment(5, parent=c4)

        c1.delete()
        await store.save_comment(c1)
        tree = await tree_assembler.assemble(post.post_id)

        assert ids(tree.comments) == [c3.comment_id, c4.comment_id]
        assert ids(tree.comments[1].replies) == [c5.comment_id]
        assert tree.total_comments == 3

    @pytest.mark.asyncio
    async def test_deleted_reply_is_dropped(
        self, tree_assembler, store, post, add_comment
    ):
        """Deleted replies leave no placeholder."""
        c1 = await add_comment(1)
        gone = await add_comment(2, parent=c1)
        kept = await add_comment(3, parent=c1)

        gone.delete()
        await store.save_comment(gone)
        tree = await tree_assembler.assemble(post.post_id)

        assert ids(tree.comments[0].replies) == [kept.comment_id]
        assert tree.comments[0].reply_count == 1

    @pytest.mark.asyncio
    async def test_liked_is_per_actor(
        self, tree_assembler, engine, post, add_comment, verified_user, other_user
    ):
        """Like flags reflect the requesting actor only."""
        c1 = await add_comment(1)
        c2 = await add_comment(2, parent=c1)
        await engine.toggle_comment_like(c2.comment_id, verified_user.user_id)

        mine = await tree_assembler.assemble(post.post_id, verified_user.user_id)
        theirs = await tree_assembler.assemble(post.post_id, other_user.user_id)
        anonymous = await tree_assembler.assemble(post.post_id)

        assert mine.comments[0].liked is False
        assert mine.comments[0].replies[0].liked is True
        assert mine.comments[0].replies[0].comment.like_count == 1
        assert theirs.comments[0].replies[0].liked is False
        assert anonymous.comments[0].replies[0].liked is False

    @pytest.mark.asyncio
    async def test_repeat_calls_are_stable(self, tree_assembler, post, add_comment):
        """Assembling twice yields the same tree."""
        c1 = await add_comment(1)
        await add_comment(2, parent=c1)

        first = await tree_assembler.assemble(post.post_id)
        second = await tree_assembler.assemble(post.post_id)

        assert ids(first.comments) == ids(second.comments)
        assert first.total_comments == second.total_comments

    @pytest.mark.asyncio
    async def test_missing_post(self, tree_assembler):
        """Unknown posts fail with PostNotFoundError."""
        with pytest.raises(PostNotFoundError):
            await tree_assembler.assemble(uuid4())

    @pytest.mark.asyncio
    async def test_deleted_post(self, tree_assembler, store, post):
        """Deleted posts have no comment tree."""
        post.delete()
        await store.save_post(post)

        with pytest.raises(PostNotFoundError):
            await tree_assembler.assemble(post.post_id)


class DictRedis:
    """In-process stand-in for the handful of Redis commands the cache uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    async def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value


def gate(target, name):
    """Hold ``target.name`` until the returned event is set.

    Returns ``(entered, release)``: ``entered`` is set once a call is
    waiting at the gate.
    """
    original = getattr(target, name)
    entered = asyncio.Event()
    release = asyncio.Event()

    async def held(*args, **kwargs):
        result = await original(*args, **kwargs)
        entered.set()
        await release.wait()
        return result

    setattr(target, name, held)
    return entered, release


class TestCache:
    """Tests for the Redis-backed tree cache."""

    @pytest.fixture
    def redis(self):
        """Empty dict-backed Redis."""
        return DictRedis()

    @pytest.fixture
    def cached_assembler(self, store, engine, redis):
        """Assembler writing through the dict-backed Redis."""
        return CommentTreeAssembler(
            store=store, reactions=engine, redis=redis, cache_ttl_seconds=60
        )

    @pytest.mark.asyncio
    async def test_miss_populates_cache(
        self, cached_assembler, redis, post, add_comment
    ):
        """A cache miss stores the actor-independent tree with the TTL."""
        c1 = await add_comment(1)
        await add_comment(2, parent=c1)

        await cached_assembler.assemble(post.post_id)

        key = comment_tree_key(post.post_id, 0)
        assert redis.ttls[key] == 60
        data = json.loads(redis.data[key])
        assert [c["comment_id"] for c in data["top_level"]] == [str(c1.comment_id)]
        assert len(data["replies"]) == 1

    @pytest.mark.asyncio
    async def test_hit_skips_store(self, cached_assembler, post, add_comment):
        """A cache hit is served without listing comments from the store."""
        c1 = await add_comment(1)
        await cached_assembler.assemble(post.post_id)

        # Written behind the assembler's back: only visible after invalidate
        c2 = await add_comment(2)
        cached = await cached_assembler.assemble(post.post_id)
        await cached_assembler.invalidate(post.post_id)
        fresh = await cached_assembler.assemble(post.post_id)

        assert ids(cached.comments) == [c1.comment_id]
        assert ids(fresh.comments) == [c1.comment_id, c2.comment_id]

    @pytest.mark.asyncio
    async def test_likes_are_not_cached(
        self, cached_assembler, engine, post, add_comment, verified_user
    ):
        """Per-actor like flags are computed even on a cache hit."""
        c1 = await add_comment(1)
        await cached_assembler.assemble(post.post_id)
        await engine.toggle_comment_like(c1.comment_id, verified_user.user_id)

        tree = await cached_assembler.assemble(post.post_id, verified_user.user_id)

        assert tree.comments[0].liked is True

    @pytest.mark.asyncio
    async def test_invalidate_bumps_version(self, cached_assembler, redis):
        """invalidate moves the post to a new tree version."""
        post_id = UUID(int=42)

        await cached_assembler.invalidate(post_id)
        await cached_assembler.invalidate(post_id)

        assert redis.data[comment_tree_version_key(post_id)] == "2"

    @pytest.mark.asyncio
    async def test_read_racing_delete_is_not_served_later(
        self, cached_assembler, comment_service, store, post, verified_user
    ):
        """A tree read before a delete never outlives the delete in the cache."""
        comment_service.tree = cached_assembler
        comment = await comment_service.create_comment(
            actor_id=verified_user.user_id, post_id=post.post_id, body="oops"
        )
        entered, release = gate(store, "list_replies")

        read = asyncio.create_task(cached_assembler.assemble(post.post_id))
        await entered.wait()
        await comment_service.delete_comment(comment.comment_id, verified_user.user_id)
        release.set()
        stale = await read

        tree = await cached_assembler.assemble(post.post_id)

        assert ids(stale.comments) == [comment.comment_id]
        assert tree.comments == []
        assert tree.total_comments == 0

    @pytest.mark.asyncio
    async def test_read_racing_like_is_not_served_later(
        self, cached_assembler, comment_service, store, post, verified_user
    ):
        """Like counts in the cache never lag behind a like toggled mid-read."""
        comment_service.tree = cached_assembler
        comment = await comment_service.create_comment(
            actor_id=verified_user.user_id, post_id=post.post_id, body="like me"
        )
        entered, release = gate(store, "list_replies")

        read = asyncio.create_task(cached_assembler.assemble(post.post_id))
        await entered.wait()
        await comment_service.react_to_comment(
            comment.comment_id, verified_user.user_id
        )
        release.set()
        await read

        tree = await cached_assembler.assemble(post.post_id)

        assert tree.comments[0].comment.like_count == 1

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_store(
        self, store, engine, post, add_comment
    ):
        """Cache errors never fail the read."""
        failing = AsyncMock()
        failing.get.side_effect = RedisConnectionError("down")
        failing.setex.side_effect = RedisConnectionError("down")
        assembler = CommentTreeAssembler(store=store, reactions=engine, redis=failing)
        c1 = await add_comment(1)

        tree = await assembler.assemble(post.post_id)

        assert ids(tree.comments) == [c1.comment_id]
        failing.setex.assert_not_awaited()
