"""Simple per-user throttle to keep rapid searches and page clicks in check."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from app.config import CatalogSettings, get_settings

THROTTLE_TEXT = "Too many requests, please slow down."


class ThrottleMiddleware(BaseMiddleware):
    def __init__(self, settings: CatalogSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.window_seconds = self.settings.request_limit.interval_seconds
        self.max_requests = self.settings.request_limit.max_requests
        self._events: Dict[int, Deque[float]] = defaultdict(deque)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user_id = self._extract_user_id(event)
        if user_id is None or self.max_requests <= 0:
            return await handler(event, data)

        now = time.monotonic()
        bucket = self._events[user_id]

        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()

        if len(bucket) >= self.max_requests:
            await self._notify_limit(event)
            return None

        bucket.append(now)
        return await handler(event, data)

    @staticmethod
    def _extract_user_id(event: TelegramObject) -> int | None:
        if isinstance(event, (Message, CallbackQuery)) and event.from_user is not None:
            return event.from_user.id
        return None

    @staticmethod
    async def _notify_limit(event: TelegramObject) -> None:
        if isinstance(event, CallbackQuery):
            await event.answer(THROTTLE_TEXT)
        elif isinstance(event, Message):
            await event.answer(THROTTLE_TEXT, parse_mode=None)


__all__ = ["ThrottleMiddleware"]
