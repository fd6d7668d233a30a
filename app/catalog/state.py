"""Query and page bookkeeping for the course browser."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

PAGE_SIZE = 5


def page_bounds(page: int) -> tuple[int, int]:
    """Return the ``(start, end)`` offsets of a 1-indexed page."""

    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    start = (page - 1) * PAGE_SIZE
    return start, start + PAGE_SIZE


def total_pages_for(total_matches: int) -> int:
    return math.ceil(max(total_matches, 0) / PAGE_SIZE)


def normalize_query(query: str | None) -> str:
    """Blank queries mean "no filter" and collapse to an empty string."""

    if query is None:
        return ""
    return query.strip()


class SearchState(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    page: int = Field(default=1, ge=1)
    range_start: int = Field(default=0, ge=0)
    range_end: int = Field(default=PAGE_SIZE, ge=PAGE_SIZE)

    @classmethod
    def for_page(cls, query: str | None, page: int) -> "SearchState":
        start, end = page_bounds(page)
        return cls(
            query=normalize_query(query),
            page=page,
            range_start=start,
            range_end=end,
        )


__all__ = [
    "PAGE_SIZE",
    "SearchState",
    "normalize_query",
    "page_bounds",
    "total_pages_for",
]
