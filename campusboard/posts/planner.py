"""Board query planner.

Turns list parameters into a filtered, ordered, paged slice of active posts.
Filters are mutually exclusive and applied in fixed precedence: keyword,
then category, then department, then the unfiltered board. Filtered modes
always order newest first; only the unfiltered board honors the sort key.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from .models import BoardCategory, Post


T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class FilterMode(str, Enum):
    """Which filter a board query resolves to."""

    KEYWORD = "keyword"
    CATEGORY = "category"
    DEPARTMENT = "department"
    ALL = "all"


class SortKey(str, Enum):
    """Ordering of the unfiltered board."""

    CREATED = "created"
    VIEWS = "views"
    LIKES = "likes"


def resolve_sort_key(raw: str | None) -> SortKey:
    """Map a raw sort parameter to a key; unknown values fall back to CREATED."""
    if raw == SortKey.VIEWS.value:
        return SortKey.VIEWS
    if raw == SortKey.LIKES.value:
        return SortKey.LIKES
    return SortKey.CREATED


@dataclass
class Page(Generic[T]):
    """One page of a result set."""

    items: list[T]
    total_elements: int
    total_pages: int
    current_page: int
    size: int


@dataclass
class BoardQuery:
    """Board listing request after normalization."""

    keyword: str | None = None
    category: BoardCategory | None = None
    department: str | None = None
    sort: SortKey = SortKey.CREATED
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    mode: FilterMode = field(init=False)

    def __post_init__(self) -> None:
        if self.keyword:
            self.mode = FilterMode.KEYWORD
        elif self.category is not None:
            self.mode = FilterMode.CATEGORY
        elif self.department:
            self.mode = FilterMode.DEPARTMENT
        else:
            self.mode = FilterMode.ALL

    @classmethod
    def build(
        cls,
        keyword: str | None = None,
        category: BoardCategory | None = None,
        department: str | None = None,
        sort: str | None = None,
        page: int | None = 0,
        size: int | None = None,
        default_size: int = DEFAULT_PAGE_SIZE,
        max_size: int = MAX_PAGE_SIZE,
    ) -> "BoardQuery":
        """Normalize raw list parameters.

        Negative pages become 0; the size defaults to ``default_size`` and is
        clamped to ``[1, max_size]``.
        """
        page = max(0, page or 0)
        size = default_size if size is None else size
        size = min(max(1, size), max_size)
        return cls(
            keyword=keyword,
            category=category,
            department=department,
            sort=resolve_sort_key(sort),
            page=page,
            size=size,
        )

    @property
    def effective_sort(self) -> SortKey:
        """Sort key actually used; filtered modes always sort by creation."""
        return self.sort if self.mode is FilterMode.ALL else SortKey.CREATED

    def matches(self, post: Post) -> bool:
        """Whether the post passes the active filter."""
        if self.mode is FilterMode.KEYWORD:
            return self.keyword in post.title or self.keyword in post.body
        if self.mode is FilterMode.CATEGORY:
            return post.category is self.category
        if self.mode is FilterMode.DEPARTMENT:
            return post.author_department == self.department
        return True


def _sort_key(sort: SortKey):
    if sort is SortKey.VIEWS:
        return lambda p: (p.view_count, p.created_at, p.post_id)
    if sort is SortKey.LIKES:
        return lambda p: (p.like_count, p.created_at, p.post_id)
    return lambda p: (p.created_at, p.post_id)


def paginate(items: list[T], page: int, size: int) -> Page[T]:
    """Slice a fully ordered list into one page."""
    total = len(items)
    start = page * size
    return Page(
        items=items[start : start + size],
        total_elements=total,
        total_pages=math.ceil(total / size),
        current_page=page,
        size=size,
    )


def execute(query: BoardQuery, posts: list[Post]) -> Page[Post]:
    """Filter, order, and page a list of active posts."""
    matching = [p for p in posts if query.matches(p)]
    matching.sort(key=_sort_key(query.effective_sort), reverse=True)
    return paginate(matching, query.page, query.size)
