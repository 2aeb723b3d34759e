"""Tests for post request schemas."""

import pytest
from pydantic import ValidationError

from campusboard.posts.models import BoardCategory
from campusboard.posts.schemas import CreatePostRequest, ReactToPostRequest
from campusboard.reactions.models import ReactionKind


def make_request(title: str, body: str = "Body") -> CreatePostRequest:
    return CreatePostRequest(title=title, body=body, category=BoardCategory.FREE)


class TestPostWriteRequest:
    """Tests for title and body validation."""

    def test_title_is_stripped(self):
        """Surrounding whitespace is removed."""
        assert make_request("  Study group  ").title == "Study group"

    @pytest.mark.parametrize("title", [" a ", "a", "   ", "x" * 101, " " + "x" * 101])
    def test_title_length_counts_after_stripping(self, title):
        """Titles must have 2 to 100 characters once stripped."""
        with pytest.raises(ValidationError):
            make_request(title)

    def test_padded_title_within_bounds(self):
        """Padding does not count against the upper bound."""
        title = "  " + "x" * 100 + "  "

        assert make_request(title).title == "x" * 100

    def test_blank_body_rejected(self):
        """Bodies cannot be only whitespace."""
        with pytest.raises(ValidationError):
            make_request("Title", body="   ")


class TestReactToPostRequest:
    """Tests for the reaction payload."""

    def test_is_like_maps_to_kind(self):
        """is_like true/false selects LIKE/DISLIKE."""
        assert ReactToPostRequest(is_like=True).reaction_kind is ReactionKind.LIKE
        assert ReactToPostRequest(is_like=False).reaction_kind is ReactionKind.DISLIKE

    def test_kind_is_used_as_is(self):
        """kind is passed through."""
        request = ReactToPostRequest(kind="DISLIKE")

        assert request.reaction_kind is ReactionKind.DISLIKE
