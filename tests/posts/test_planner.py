"""Tests for the board query planner.

Covers filter precedence, sort keys, tie-breaking, and pagination.
"""

from uuid import UUID

import pytest

from campusboard.posts.models import BoardCategory, create_post
from campusboard.posts.planner import (
    BoardQuery,
    FilterMode,
    SortKey,
    execute,
    resolve_sort_key,
)


@pytest.fixture
def make_post(at):
    """Factory for posts with controlled timestamps and counters."""

    def _make(
        minutes: int,
        title: str = "Notice",
        body: str = "Details inside.",
        category: BoardCategory = BoardCategory.FREE,
        department: str = "Computer Science",
        views: int = 0,
        likes: int = 0,
    ):
        post = create_post(
            author_id=UUID(int=minutes + 1),
            author_department=department,
            title=title,
            body=body,
            category=category,
            created_at=at(minutes),
        )
        post.view_count = views
        post.like_count = likes
        return post

    return _make


class TestFilterPrecedence:
    """Only the highest-precedence filter applies."""

    def test_keyword_beats_category_and_department(self):
        """A keyword query ignores category and department."""
        query = BoardQuery.build(
            keyword="exam",
            category=BoardCategory.CAREER,
            department="Electronic Engineering",
        )
        assert query.mode is FilterMode.KEYWORD

    def test_category_beats_department(self):
        """Category wins over department."""
        query = BoardQuery.build(
            category=BoardCategory.CAREER, department="Electronic Engineering"
        )
        assert query.mode is FilterMode.CATEGORY

    def test_empty_keyword_is_ignored(self):
        """Empty strings do not select a filter."""
        query = BoardQuery.build(keyword="", department="")
        assert query.mode is FilterMode.ALL

    def test_keyword_is_case_sensitive_substring(self, make_post):
        """Keyword matches title or body by exact-case containment."""
        in_title = make_post(1, title="Final Exam tips")
        in_body = make_post(2, body="The Exam room changed")
        lower = make_post(3, title="final exam tips")

        page = execute(BoardQuery.build(keyword="Exam"), [in_title, in_body, lower])

        assert [p.post_id for p in page.items] == [in_body.post_id, in_title.post_id]

    def test_department_filter(self, make_post):
        """Department mode matches author_department exactly."""
        cs = make_post(1, department="Computer Science")
        ee = make_post(2, department="Electronic Engineering")

        page = execute(BoardQuery.build(department="Computer Science"), [cs, ee])

        assert [p.post_id for p in page.items] == [cs.post_id]


class TestSorting:
    """Sort keys and tie-breaking."""

    def test_category_filter_ignores_sort_key(self, make_post):
        """category=FREE with sort=views returns FREE posts newest first."""
        old_popular = make_post(1, views=500)
        new_quiet = make_post(2, views=1)
        other_board = make_post(3, category=BoardCategory.CAREER, views=900)

        page = execute(
            BoardQuery.build(category=BoardCategory.FREE, sort="views"),
            [old_popular, new_quiet, other_board],
        )

        assert [p.post_id for p in page.items] == [
            new_quiet.post_id,
            old_popular.post_id,
        ]

    def test_views_sort_in_default_mode(self, make_post):
        """Unfiltered boards honor sort=views."""
        low = make_post(1, views=3)
        high = make_post(2, views=30)
        mid = make_post(3, views=10)

        page = execute(BoardQuery.build(sort="views"), [low, high, mid])

        assert [p.view_count for p in page.items] == [30, 10, 3]

    def test_likes_sort_ties_by_created_at(self, make_post):
        """Equal like counts fall back to newest first."""
        older = make_post(1, likes=5)
        newer = make_post(2, likes=5)
        top = make_post(0, likes=9)

        page = execute(BoardQuery.build(sort="likes"), [older, newer, top])

        assert [p.post_id for p in page.items] == [
            top.post_id,
            newer.post_id,
            older.post_id,
        ]

    def test_identical_timestamps_tie_by_id_desc(self, make_post):
        """Posts created at the same instant order by id, highest first."""
        first = make_post(1)
        second = make_post(1)
        first.post_id, second.post_id = UUID(int=1), UUID(int=2)

        page = execute(BoardQuery.build(), [first, second])

        assert [p.post_id for p in page.items] == [UUID(int=2), UUID(int=1)]

    @pytest.mark.parametrize("raw", [None, "", "created", "oldest", "VIEWS"])
    def test_unknown_sort_falls_back_to_created(self, raw):
        """Anything but 'views' or 'likes' sorts by creation time."""
        assert resolve_sort_key(raw) is SortKey.CREATED


class TestPagination:
    """Page slicing and clamping."""

    def test_out_of_range_page(self, make_post):
        """page=5 of a 2-page result is empty but keeps totals."""
        posts = [make_post(i) for i in range(15)]

        page = execute(BoardQuery.build(page=5, size=10), posts)

        assert page.items == []
        assert page.total_elements == 15
        assert page.total_pages == 2
        assert page.current_page == 5

    def test_second_page(self, make_post):
        """The second page holds the oldest remainder."""
        posts = [make_post(i) for i in range(15)]

        page = execute(BoardQuery.build(page=1, size=10), posts)

        assert len(page.items) == 5
        assert page.items[-1].post_id == posts[0].post_id

    def test_empty_board(self):
        """No posts means zero pages."""
        page = execute(BoardQuery.build(), [])

        assert page.items == []
        assert page.total_pages == 0
        assert page.total_elements == 0

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(None, 10), (0, 1), (-4, 1), (25, 25), (1000, 100)],
    )
    def test_size_is_clamped(self, size, expected):
        """Page size defaults to 10 and stays within [1, 100]."""
        assert BoardQuery.build(size=size).size == expected

    def test_negative_page_becomes_zero(self):
        """Negative pages read as the first page."""
        assert BoardQuery.build(page=-3).page == 0
