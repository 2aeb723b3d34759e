"""User directory consumed by the board."""

from .directory import CassandraUserDirectory, InMemoryUserDirectory, UserDirectory
from .models import USERS_TABLES_CQL, User, create_user


__all__ = [
    "USERS_TABLES_CQL",
    "CassandraUserDirectory",
    "InMemoryUserDirectory",
    "User",
    "UserDirectory",
    "create_user",
]
