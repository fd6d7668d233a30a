"""Combine filtered and recommended courses into a single display state."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from app.catalog.state import PAGE_SIZE, total_pages_for
from app.domain.models import Course, ResultState


class Notice(str, Enum):
    NO_RESULTS = "no_results"
    NO_MORE_RESULTS = "no_more_results"


def merge(
    filtered: Sequence[Course],
    defaults: Sequence[Course],
    total_matches: int,
) -> ResultState:
    """Build the settled state for one page.

    ``filtered`` is already range-limited by the repository. Recommended
    courses only fill the shortfall below a full page.
    """

    shortfall = max(0, PAGE_SIZE - len(filtered))
    return ResultState(
        visible_items=tuple(filtered),
        fallback_items=tuple(defaults[:shortfall]),
        total_matches=total_matches,
        total_pages=total_pages_for(total_matches),
        is_loading=False,
    )


def shows_pagination(state: ResultState) -> bool:
    return state.total_matches > PAGE_SIZE


def notice_for(state: ResultState) -> Notice | None:
    if state.is_loading or state.error is not None:
        return None
    visible = len(state.visible_items)
    if visible >= PAGE_SIZE:
        return None
    if visible == 0:
        return Notice.NO_RESULTS
    return Notice.NO_MORE_RESULTS


__all__ = ["Notice", "merge", "notice_for", "shows_pagination"]
