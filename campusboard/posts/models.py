"""Database models for board posts.

Cassandra table definitions and entity classes for:
- Posts: one partition per post; the post itself lives in static columns,
  each clustering row is one actor's reaction
- Post counters: view and comment counts, incremented atomically

Keeping a post and its reactions in one partition lets a reaction toggle
update the reaction row and the post counters in a single conditional batch.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from campusboard.reactions.models import ReactionKind


class CategoryGroup(str, Enum):
    """Grouping of board categories."""

    DEPARTMENT = "department"
    TOPIC = "topic"


class BoardCategory(str, Enum):
    """Fixed set of board categories."""

    # Department boards
    COMPUTER_SCIENCE = "COMPUTER_SCIENCE"
    ELECTRONICS = "ELECTRONICS"
    MECHANICAL = "MECHANICAL"
    MANAGEMENT = "MANAGEMENT"

    # Topic boards
    CAREER = "CAREER"
    STUDY = "STUDY"
    CLUB = "CLUB"
    CAMPUS_LIFE = "CAMPUS_LIFE"
    FREE = "FREE"
    QNA = "QNA"

    @property
    def display_name(self) -> str:
        """Human readable board name."""
        return _CATEGORY_INFO[self][0]

    @property
    def group(self) -> CategoryGroup:
        """Group the board belongs to."""
        return _CATEGORY_INFO[self][1]


_CATEGORY_INFO: dict[BoardCategory, tuple[str, CategoryGroup]] = {
    BoardCategory.COMPUTER_SCIENCE: ("Computer Science", CategoryGroup.DEPARTMENT),
    BoardCategory.ELECTRONICS: ("Electronic Engineering", CategoryGroup.DEPARTMENT),
    BoardCategory.MECHANICAL: ("Mechanical Engineering", CategoryGroup.DEPARTMENT),
    BoardCategory.MANAGEMENT: ("Business Administration", CategoryGroup.DEPARTMENT),
    BoardCategory.CAREER: ("Career", CategoryGroup.TOPIC),
    BoardCategory.STUDY: ("Study Groups", CategoryGroup.TOPIC),
    BoardCategory.CLUB: ("Clubs", CategoryGroup.TOPIC),
    BoardCategory.CAMPUS_LIFE: ("Campus Life", CategoryGroup.TOPIC),
    BoardCategory.FREE: ("Free Board", CategoryGroup.TOPIC),
    BoardCategory.QNA: ("Q&A", CategoryGroup.TOPIC),
}


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Post partition: static columns hold the post, clustering rows hold reactions
POSTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts (
    post_id UUID,
    actor_id UUID,
    title TEXT STATIC,
    body TEXT STATIC,
    author_id UUID STATIC,
    author_department TEXT STATIC,
    category TEXT STATIC,
    like_count INT STATIC,
    dislike_count INT STATIC,
    is_deleted BOOLEAN STATIC,
    created_at TIMESTAMP STATIC,
    updated_at TIMESTAMP STATIC,
    reaction_kind TEXT,
    reacted_at TIMESTAMP,
    PRIMARY KEY ((post_id), actor_id)
)
"""

# View and comment counts - counter columns cannot share a table with regular
# columns, and counter updates are atomic increments
POST_COUNTERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_counters (
    post_id UUID PRIMARY KEY,
    views COUNTER,
    comments COUNTER
)
"""

POSTS_TABLES_CQL = [
    POSTS_TABLE_CQL,
    POST_COUNTERS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Post:
    """Board post."""

    post_id: UUID
    title: str
    body: str
    author_id: UUID
    author_department: str
    category: BoardCategory
    view_count: int
    like_count: int
    dislike_count: int
    comment_count: int
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(
        cls, row: Any, view_count: int = 0, comment_count: int = 0
    ) -> "Post":
        """Create Post from the static columns of a Cassandra partition."""
        return cls(
            post_id=row.post_id,
            title=row.title,
            body=row.body,
            author_id=row.author_id,
            author_department=row.author_department,
            category=BoardCategory(row.category),
            view_count=view_count,
            like_count=row.like_count or 0,
            dislike_count=row.dislike_count or 0,
            comment_count=comment_count,
            is_deleted=row.is_deleted or False,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    def update(self, title: str, body: str, category: BoardCategory) -> None:
        """Replace the editable fields in place."""
        self.title = title
        self.body = body
        self.category = category
        self.updated_at = datetime.now(UTC)

    def delete(self) -> None:
        """Soft delete. Never reversed."""
        self.is_deleted = True
        self.updated_at = datetime.now(UTC)


@dataclass
class PostReaction:
    """One actor's reaction on one post."""

    post_id: UUID
    actor_id: UUID
    kind: ReactionKind
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "PostReaction":
        """Create PostReaction from a clustering row."""
        return cls(
            post_id=row.post_id,
            actor_id=row.actor_id,
            kind=ReactionKind(row.reaction_kind),
            created_at=row.reacted_at,
        )


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_post(
    author_id: UUID,
    author_department: str,
    title: str,
    body: str,
    category: BoardCategory,
    created_at: datetime | None = None,
) -> Post:
    """Create a new post with zeroed counters.

    author_department is copied here and never refreshed from the directory.
    """
    now = created_at or datetime.now(UTC)
    return Post(
        post_id=uuid4(),
        title=title,
        body=body,
        author_id=author_id,
        author_department=author_department,
        category=category,
        view_count=0,
        like_count=0,
        dislike_count=0,
        comment_count=0,
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
