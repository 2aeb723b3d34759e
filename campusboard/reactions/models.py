"""Reaction state machines.

Posts carry a three-way state per (post, actor): NONE, LIKE or DISLIKE.
Comments carry a binary one: liked or not. Planning a transition is a pure
function of the current state and the requested action; the plan says which
reaction-row write to perform and how the subject's counters move, and the
entity store applies both as one unit.
"""

from dataclasses import dataclass
from enum import Enum


class ReactionKind(str, Enum):
    """Kinds of reaction an actor can cast on a post."""

    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class ReactionState(str, Enum):
    """Effective reaction of one actor on one subject."""

    NONE = "NONE"
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"

    @classmethod
    def of(cls, kind: ReactionKind | None) -> "ReactionState":
        """State corresponding to an existing reaction row (or none)."""
        return cls.NONE if kind is None else cls(kind.value)

    @property
    def kind(self) -> ReactionKind | None:
        """Reaction row kind backing this state, if any."""
        return None if self is ReactionState.NONE else ReactionKind(self.value)


class RowAction(str, Enum):
    """Write to perform on the reaction row."""

    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True)
class PostReactionTransition:
    """Planned change of one actor's reaction on one post."""

    current: ReactionState
    target: ReactionState
    action: RowAction
    like_delta: int
    dislike_delta: int


@dataclass(frozen=True)
class CommentLikeTransition:
    """Planned change of one actor's like on one comment."""

    currently_liked: bool
    action: RowAction
    like_delta: int

    @property
    def liked(self) -> bool:
        """Like state after the transition."""
        return self.action is RowAction.INSERT


def _counter_deltas(state: ReactionState, sign: int) -> tuple[int, int]:
    if state is ReactionState.LIKE:
        return sign, 0
    if state is ReactionState.DISLIKE:
        return 0, sign
    return 0, 0


def plan_post_reaction(
    current: ReactionState, desired: ReactionKind
) -> PostReactionTransition:
    """Plan the next post reaction state.

    - same kind as current: toggle off (delete row, decrement)
    - no current reaction: insert row, increment desired counter
    - opposite kind: switch row kind, move one count across
    """
    target = ReactionState(desired.value)

    if current is target:
        like_delta, dislike_delta = _counter_deltas(current, -1)
        return PostReactionTransition(
            current=current,
            target=ReactionState.NONE,
            action=RowAction.DELETE,
            like_delta=like_delta,
            dislike_delta=dislike_delta,
        )

    if current is ReactionState.NONE:
        like_delta, dislike_delta = _counter_deltas(target, 1)
        return PostReactionTransition(
            current=current,
            target=target,
            action=RowAction.INSERT,
            like_delta=like_delta,
            dislike_delta=dislike_delta,
        )

    old_like, old_dislike = _counter_deltas(current, -1)
    new_like, new_dislike = _counter_deltas(target, 1)
    return PostReactionTransition(
        current=current,
        target=target,
        action=RowAction.UPDATE,
        like_delta=old_like + new_like,
        dislike_delta=old_dislike + new_dislike,
    )


def plan_comment_like(currently_liked: bool) -> CommentLikeTransition:
    """Plan a comment like toggle."""
    if currently_liked:
        return CommentLikeTransition(
            currently_liked=True, action=RowAction.DELETE, like_delta=-1
        )
    return CommentLikeTransition(
        currently_liked=False, action=RowAction.INSERT, like_delta=1
    )


def apply_delta(count: int, delta: int) -> int:
    """Apply a counter delta, flooring at zero."""
    return max(0, count + delta)
