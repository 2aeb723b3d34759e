"""User directory models.

Users are owned by the surrounding platform (sign-up, student ID
verification). The board only reads the department label and the verified
flag when an actor writes.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid4


USERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    user_id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    department TEXT,
    verified BOOLEAN
)
"""

USERS_TABLES_CQL = [USERS_TABLE_CQL]


@dataclass
class User:
    """Community member as seen by the board."""

    user_id: UUID
    email: str
    name: str
    department: str
    verified: bool

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User from Cassandra row."""
        return cls(
            user_id=row.user_id,
            email=row.email,
            name=row.name or row.email.split("@")[0],
            department=row.department,
            verified=row.verified or False,
        )


def create_user(
    email: str,
    department: str,
    name: str | None = None,
    verified: bool = False,
) -> User:
    """Create a new directory entry."""
    return User(
        user_id=uuid4(),
        email=email,
        name=name or email.split("@")[0],
        department=department,
        verified=verified,
    )
