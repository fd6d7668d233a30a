"""Per-chat registry of browsing sessions."""

from __future__ import annotations

from collections import OrderedDict

from app.catalog.controller import SearchController
from app.catalog.navigation import LocationNavigation
from app.catalog.repository import CourseRepository
from app.logging import logger


class BrowsingSessions:
    """Creates one search controller per chat and disposes of idle ones.

    The registry is bounded; once ``max_sessions`` is exceeded the least
    recently used session is closed.
    """

    def __init__(
        self,
        repository: CourseRepository,
        *,
        max_sessions: int = 1000,
        lookup_timeout: float | None = None,
        default_location: str = "/search",
    ) -> None:
        self._repository = repository
        self._max_sessions = max_sessions
        self._lookup_timeout = lookup_timeout
        self._default_location = default_location
        self._sessions: OrderedDict[int, SearchController] = OrderedDict()
        self._active_messages: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions

    def get(self, chat_id: int, *, location: str | None = None) -> SearchController:
        controller = self._sessions.get(chat_id)
        if controller is not None and not controller.closed:
            self._sessions.move_to_end(chat_id)
            return controller

        controller = SearchController(
            self._repository,
            LocationNavigation(location or self._default_location),
            lookup_timeout=self._lookup_timeout,
            session_key=str(chat_id),
        )
        self._sessions[chat_id] = controller
        self._sessions.move_to_end(chat_id)
        logger.debug("catalog_session_opened", chat_id=chat_id, sessions=len(self._sessions))

        while len(self._sessions) > self._max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            evicted.close()
            self._active_messages.pop(evicted_id, None)
            logger.info("catalog_session_evicted", chat_id=evicted_id)
        return controller

    def mark_active_message(self, chat_id: int, message_id: int) -> None:
        """Remember the message that renders the newest load of a chat."""

        self._active_messages[chat_id] = message_id

    def active_message(self, chat_id: int) -> int | None:
        return self._active_messages.get(chat_id)

    def close(self, chat_id: int) -> bool:
        self._active_messages.pop(chat_id, None)
        controller = self._sessions.pop(chat_id, None)
        if controller is None:
            return False
        controller.close()
        return True

    def close_all(self) -> None:
        self._active_messages.clear()
        while self._sessions:
            _, controller = self._sessions.popitem(last=False)
            controller.close()


__all__ = ["BrowsingSessions"]
