"""Course catalog browsing: search state, lookups and result merging."""

from app.catalog.controller import CatalogSnapshot, LoadOutcome, SearchController
from app.catalog.merger import Notice, merge, notice_for, shows_pagination
from app.catalog.navigation import InitialLocation, LocationNavigation
from app.catalog.sessions import BrowsingSessions
from app.catalog.state import PAGE_SIZE, SearchState, normalize_query, page_bounds

__all__ = [
    "BrowsingSessions",
    "CatalogSnapshot",
    "InitialLocation",
    "LoadOutcome",
    "LocationNavigation",
    "Notice",
    "PAGE_SIZE",
    "SearchController",
    "SearchState",
    "merge",
    "normalize_query",
    "notice_for",
    "page_bounds",
    "shows_pagination",
]
