"""Comment system module.

Provides a two-level comment system with:
- Top-level comments and one level of replies
- Binary likes
- Cached tree assembly

Note: Router and service are not exported here to avoid circular imports.
"""

from .models import COMMENTS_TABLES_CQL, Comment, CommentReaction, create_comment


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentReaction",
    "create_comment",
]
