"""Shared fixtures.

Environment is pinned before the application is imported: the in-memory
backend, no Redis, no log files, and no retry backoff.
"""

import os


os.environ["ENVIRONMENT"] = "testing"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["REDIS_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_FORMAT"] = "console"
os.environ["REACTION_RETRY_BACKOFF_MS"] = "0"

from collections.abc import Callable, Iterator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from campusboard.comments.service import CommentService  # noqa: E402
from campusboard.comments.tree import CommentTreeAssembler  # noqa: E402
from campusboard.posts.service import PostService  # noqa: E402
from campusboard.reactions.engine import ReactionEngine  # noqa: E402
from campusboard.store.memory import InMemoryEntityStore  # noqa: E402
from campusboard.users.directory import InMemoryUserDirectory  # noqa: E402
from campusboard.users.models import User, create_user  # noqa: E402


BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest.fixture
def at() -> Callable[[int], datetime]:
    """Timestamp factory: ``at(n)`` is n minutes after a fixed base time."""
    return lambda minutes: BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture
def verified_user() -> User:
    """Department-verified student."""
    return create_user(
        email="kim@campus.example",
        department="Computer Science",
        verified=True,
    )


@pytest.fixture
def other_user() -> User:
    """Second verified student from another department."""
    return create_user(
        email="lee@campus.example",
        department="Electronic Engineering",
        verified=True,
    )


@pytest.fixture
def unverified_user() -> User:
    """Student who has not verified a department yet."""
    return create_user(email="park@campus.example", department="Undeclared")


@pytest.fixture
def users(
    verified_user: User, other_user: User, unverified_user: User
) -> InMemoryUserDirectory:
    """User directory seeded with the three test users."""
    return InMemoryUserDirectory([verified_user, other_user, unverified_user])


@pytest.fixture
def store() -> InMemoryEntityStore:
    """Empty in-memory entity store."""
    return InMemoryEntityStore()


@pytest.fixture
def engine(store: InMemoryEntityStore, users: InMemoryUserDirectory) -> ReactionEngine:
    """Reaction engine without backoff."""
    return ReactionEngine(store=store, users=users, max_retries=10, backoff_ms=0)


@pytest.fixture
def post_service(
    store: InMemoryEntityStore,
    users: InMemoryUserDirectory,
    engine: ReactionEngine,
) -> PostService:
    """Post service over the in-memory store."""
    return PostService(store=store, users=users, reactions=engine)


@pytest.fixture
def tree_assembler(
    store: InMemoryEntityStore, engine: ReactionEngine
) -> CommentTreeAssembler:
    """Comment tree assembler without cache."""
    return CommentTreeAssembler(store=store, reactions=engine)


@pytest.fixture
def comment_service(
    store: InMemoryEntityStore,
    users: InMemoryUserDirectory,
    engine: ReactionEngine,
    tree_assembler: CommentTreeAssembler,
) -> CommentService:
    """Comment service over the in-memory store."""
    return CommentService(
        store=store, users=users, reactions=engine, tree=tree_assembler
    )


@pytest.fixture
def client(users: InMemoryUserDirectory) -> Iterator[TestClient]:
    """Test client running the full application lifespan."""
    from campusboard.main import create_app  # noqa: PLC0415

    app = create_app(users=users)
    with TestClient(app) as test_client:
        yield test_client
