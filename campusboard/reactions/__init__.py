"""Like/dislike reactions on posts and likes on comments.

Note: the engine is not exported here to avoid circular imports (post and
comment models import the reaction kinds). Import it from
campusboard.reactions.engine.
"""

from .models import (
    ReactionKind,
    ReactionState,
    apply_delta,
    plan_comment_like,
    plan_post_reaction,
)


__all__ = [
    "ReactionKind",
    "ReactionState",
    "apply_delta",
    "plan_comment_like",
    "plan_post_reaction",
]
