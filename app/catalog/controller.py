"""Paginated search controller.

Owns the query/page state of one browsing session, fires the catalog lookups
for every load and decides which settlement is allowed to become visible.

Loads overlap freely: nothing is cancelled, a superseded load simply runs to
completion and its result is dropped. Each load captures a generation number
when it is issued and only commits if that number is still the newest one
when its lookups settle, regardless of the order in which the network
answers.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from app.catalog.merger import merge
from app.catalog.navigation import Navigation
from app.catalog.repository import CourseRepository
from app.catalog.state import SearchState
from app.domain.models import Course, LoadError, ResultState
from app.logging import logger
from app.services.exceptions import LookupFailure, SessionClosed


class LoadOutcome(str, Enum):
    COMMITTED = "committed"
    DISCARDED = "discarded"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class CatalogSnapshot:
    search: SearchState
    result: ResultState


@dataclass(slots=True, eq=False)
class PendingRequest:
    generation: int
    search: SearchState
    lookup: "asyncio.Future[Sequence[Course]]"


Listener = Callable[[CatalogSnapshot], None]


class SearchController:
    def __init__(
        self,
        repository: CourseRepository,
        navigation: Navigation,
        *,
        lookup_timeout: float | None = None,
        session_key: str | None = None,
    ) -> None:
        self._repository = repository
        self._navigation = navigation
        self._lookup_timeout = lookup_timeout
        self._search = SearchState()
        self._result = ResultState()
        self._pending: deque[PendingRequest] = deque()
        self._generation = 0
        self._committed_pages = 0
        self._listeners: list[Listener] = []
        self._started = False
        self._closed = False
        self._log = logger.bind(session=session_key)

    @property
    def search_state(self) -> SearchState:
        return self._search

    @property
    def result_state(self) -> ResultState:
        return self._result

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_generations(self) -> tuple[int, ...]:
        """Generations of in-flight loads, newest first."""

        return tuple(request.generation for request in self._pending)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(search=self._search, result=self._result)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> LoadOutcome:
        """Run the first load from the navigation's initial location."""

        if self._started:
            raise RuntimeError("Search controller already started.")
        self._started = True
        initial = self._navigation.read_initial()
        return await self.load(initial.query, initial.page or 1)

    async def load(self, query: str | None, page: int) -> LoadOutcome:
        if self._closed:
            raise SessionClosed("Browsing session is closed.")

        search = SearchState.for_page(query, page)
        self._started = True
        self._navigation.write(search.query or None, search.page)
        self._search = search
        self._publish(ResultState.loading())

        self._generation += 1
        request = PendingRequest(
            generation=self._generation,
            search=search,
            lookup=asyncio.ensure_future(
                self._lookup(
                    self._repository.get_range_by_search(
                        search.query, search.range_start, search.range_end
                    )
                )
            ),
        )
        self._pending.appendleft(request)
        self._log.debug(
            "catalog_load_issued",
            generation=request.generation,
            query=search.query,
            page=search.page,
            pending=self.pending_generations,
        )

        try:
            filtered, defaults, total = await asyncio.gather(
                request.lookup,
                self._lookup(self._repository.get_range(search.range_start, search.range_end)),
                self._lookup(self._repository.get_count_by_search(search.query)),
                return_exceptions=True,
            )
            return self._settle(request, filtered, defaults, total)
        finally:
            self._pending.remove(request)

    async def retry(self) -> LoadOutcome:
        return await self.load(self._search.query, self._search.page)

    async def goto_page(self, page: int) -> LoadOutcome:
        """Load ``page`` of the current query, clamped to the last committed page count."""

        last_page = max(1, self._committed_pages)
        return await self.load(self._search.query, min(max(1, page), last_page))

    async def next_page(self) -> LoadOutcome:
        return await self.goto_page(self._search.page + 1)

    async def previous_page(self) -> LoadOutcome:
        return await self.goto_page(self._search.page - 1)

    def close(self) -> None:
        """End the session; loads still in flight will be discarded."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._listeners.clear()
        self._log.debug("catalog_session_closed", pending=len(self._pending))

    async def _lookup(self, operation: Awaitable[Any]) -> Any:
        if self._lookup_timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, timeout=self._lookup_timeout)
        except asyncio.TimeoutError as exc:
            raise LookupFailure(
                f"Catalog lookup timed out after {self._lookup_timeout}s"
            ) from exc

    def _settle(
        self,
        request: PendingRequest,
        filtered: Any,
        defaults: Any,
        total: Any,
    ) -> LoadOutcome:
        search = request.search
        failure = next(
            (item for item in (filtered, defaults, total) if isinstance(item, BaseException)),
            None,
        )

        if request.generation != self._generation:
            self._log.debug(
                "catalog_load_discarded",
                generation=request.generation,
                current_generation=self._generation,
                query=search.query,
                page=search.page,
                failed=failure is not None,
            )
            return LoadOutcome.DISCARDED

        if failure is not None and not isinstance(failure, Exception):
            raise failure

        if failure is not None:
            error = LoadError(
                query=search.query,
                page=search.page,
                message=str(failure) or failure.__class__.__name__,
            )
            self._log.warning(
                "catalog_load_failed",
                generation=request.generation,
                query=search.query,
                page=search.page,
                error=error.message,
                error_type=failure.__class__.__name__,
                exc_info=False if isinstance(failure, LookupFailure) else failure,
            )
            self._publish(ResultState.failed(error))
            return LoadOutcome.FAILED

        state = merge(filtered, defaults, total)
        self._committed_pages = state.total_pages
        self._publish(state)
        self._log.info(
            "catalog_load_committed",
            generation=request.generation,
            query=search.query,
            page=search.page,
            visible=len(state.visible_items),
            fallback=len(state.fallback_items),
            total_matches=state.total_matches,
        )
        return LoadOutcome.COMMITTED

    def _publish(self, state: ResultState) -> None:
        self._result = state
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self._log.exception("catalog_listener_failed", listener=repr(listener))


__all__ = ["CatalogSnapshot", "LoadOutcome", "PendingRequest", "SearchController"]
