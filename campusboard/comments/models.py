"""Database models for the two-level comment system.

Cassandra table definitions for:
- Comments: one partition per comment; the comment lives in static columns,
  each clustering row is one actor's like
- Comments by post: chronological index used to assemble a post's tree

Architecture: adjacency list with exactly one nesting level. parent_id is
NULL for top-level comments; a reply's parent is always top-level.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID,
    actor_id UUID,
    post_id UUID STATIC,
    parent_id UUID STATIC,
    author_id UUID STATIC,
    author_department TEXT STATIC,
    body TEXT STATIC,
    like_count INT STATIC,
    is_deleted BOOLEAN STATIC,
    created_at TIMESTAMP STATIC,
    updated_at TIMESTAMP STATIC,
    liked_at TIMESTAMP,
    PRIMARY KEY ((comment_id), actor_id)
)
"""

# Partition by post for tree assembly, clustered oldest first
COMMENTS_BY_POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_post (
    post_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    parent_id UUID,
    PRIMARY KEY ((post_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COMMENTS_TABLE_CQL,
    COMMENTS_BY_POST_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment or reply on a post."""

    comment_id: UUID
    post_id: UUID
    parent_id: UUID | None
    author_id: UUID
    author_department: str
    body: str
    like_count: int
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    @property
    def is_reply(self) -> bool:
        """Whether this comment answers another one."""
        return self.parent_id is not None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from the static columns of a Cassandra partition."""
        return cls(
            comment_id=row.comment_id,
            post_id=row.post_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            author_department=row.author_department,
            body=row.body,
            like_count=row.like_count or 0,
            is_deleted=row.is_deleted or False,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        """Rebuild a Comment from ``to_dict`` output."""
        return cls(
            comment_id=UUID(data["comment_id"]),
            post_id=UUID(data["post_id"]),
            parent_id=UUID(data["parent_id"]) if data["parent_id"] else None,
            author_id=UUID(data["author_id"]),
            author_department=data["author_department"],
            body=data["body"],
            like_count=data["like_count"],
            is_deleted=data["is_deleted"],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "comment_id": str(self.comment_id),
            "post_id": str(self.post_id),
            "parent_id": str(self.parent_id) if self.parent_id else None,
            "author_id": str(self.author_id),
            "author_department": self.author_department,
            "body": self.body,
            "like_count": self.like_count,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def update(self, body: str) -> None:
        """Replace the body in place."""
        self.body = body
        self.updated_at = datetime.now(UTC)

    def delete(self) -> None:
        """Soft delete. Never reversed."""
        self.is_deleted = True
        self.updated_at = datetime.now(UTC)


@dataclass
class CommentReaction:
    """One actor's like on one comment."""

    comment_id: UUID
    actor_id: UUID
    created_at: datetime


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_comment(
    post_id: UUID,
    author_id: UUID,
    author_department: str,
    body: str,
    parent_id: UUID | None = None,
    created_at: datetime | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = created_at or datetime.now(UTC)
    return Comment(
        comment_id=uuid4(),
        post_id=post_id,
        parent_id=parent_id,
        author_id=author_id,
        author_department=author_department,
        body=body,
        like_count=0,
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
