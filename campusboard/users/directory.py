"""Actor resolution.

The board consumes a user directory to turn an actor id into a department
label and a verified flag. Two backings exist: an in-process one (default,
tests, local runs) and a Cassandra one.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from campusboard.core.exceptions import DepartmentNotVerifiedError, UserNotFoundError

from .models import User


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class UserDirectory(ABC):
    """Lookup interface plus the authorization checks built on it."""

    @abstractmethod
    async def get_user(self, user_id: UUID) -> User | None:
        ...

    @abstractmethod
    async def save_user(self, user: User) -> None:
        ...

    async def require_actor(self, actor_id: UUID) -> User:
        """Resolve an actor or fail with UserNotFoundError."""
        user = await self.get_user(actor_id)
        if user is None:
            raise UserNotFoundError
        return user

    async def require_verified_actor(self, actor_id: UUID) -> User:
        """Resolve an actor allowed to write (department verified)."""
        user = await self.require_actor(actor_id)
        if not user.verified:
            logger.warning("unverified_actor_write_attempt", actor_id=str(actor_id))
            raise DepartmentNotVerifiedError
        return user


class InMemoryUserDirectory(UserDirectory):
    """Process-local directory."""

    def __init__(self, users: list[User] | None = None):
        self._users: dict[UUID, User] = {u.user_id: u for u in users or []}

    async def get_user(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    async def save_user(self, user: User) -> None:
        self._users[user.user_id] = user


class CassandraUserDirectory(UserDirectory):
    """Directory backed by the ``users`` table."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get_user = session.prepare(
            f"SELECT * FROM {keyspace}.users WHERE user_id = ?"
        )
        self._upsert_user = session.prepare(f"""
            INSERT INTO {keyspace}.users (user_id, email, name, department, verified)
            VALUES (?, ?, ?, ?, ?)
        """)

    async def get_user(self, user_id: UUID) -> User | None:
        result = await self.session.aexecute(self._get_user, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def save_user(self, user: User) -> None:
        await self.session.aexecute(
            self._upsert_user,
            [user.user_id, user.email, user.name, user.department, user.verified],
        )
