"""Board posts module.

Provides:
- Posts on category boards, with view and reaction counters
- Board listing with keyword/category/department filters

Note: Router and service are not exported here to avoid circular imports.
"""

from .models import POSTS_TABLES_CQL, BoardCategory, CategoryGroup, Post, create_post


__all__ = [
    "POSTS_TABLES_CQL",
    "BoardCategory",
    "CategoryGroup",
    "Post",
    "create_post",
]
