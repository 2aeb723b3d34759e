"""Entity store: persistence of posts, comments, and reactions."""

from campusboard.store.base import EntityStore, is_active
from campusboard.store.memory import InMemoryEntityStore


__all__ = ["EntityStore", "InMemoryEntityStore", "is_active"]
