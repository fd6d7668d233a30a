"""Report unhandled bot errors to the log and, when configured, to an admin chat."""

from __future__ import annotations

import traceback

from aiogram import Bot
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import ErrorEvent, Update

from app.config import CatalogSettings
from app.logging import logger

TELEGRAM_MESSAGE_LIMIT = 3900
TRACEBACK_CHAR_LIMIT = 1800


class ErrorMonitor:
    """Async callable plugged into the aiogram error observer."""

    def __init__(self, settings: CatalogSettings) -> None:
        self._settings = settings

    async def __call__(self, event: ErrorEvent, bot: Bot):
        return await self.handle_error(event, bot)

    async def handle_error(self, event: ErrorEvent, bot: Bot):
        logger.error(
            "bot_error_captured",
            exception_type=event.exception.__class__.__name__,
            exception=str(event.exception),
            update_id=getattr(event.update, "update_id", None),
        )
        admin_id = self._settings.admin_telegram_id
        if admin_id is None:
            return UNHANDLED

        try:
            await bot.send_message(chat_id=admin_id, text=self._build_message(event), parse_mode=None)
        except Exception:
            logger.exception(
                "error_monitor_notification_failed",
                update_id=getattr(event.update, "update_id", None),
            )
        return UNHANDLED

    def _build_message(self, event: ErrorEvent) -> str:
        exception = event.exception
        lines = [
            "CATALOG BOT ERROR",
            f"Environment: {self._settings.environment}",
            f"Exception: {exception.__class__.__name__}: {exception}",
            f"Update ID: {getattr(event.update, 'update_id', 'unknown')}",
            f"Chat: {self._chat_id(event.update)}",
        ]
        trace = "".join(
            traceback.format_exception(exception.__class__, exception, exception.__traceback__)
        ).strip()
        if trace:
            lines.extend(["", "Traceback:", _truncate(trace, TRACEBACK_CHAR_LIMIT)])
        return _truncate("\n".join(lines), TELEGRAM_MESSAGE_LIMIT)

    @staticmethod
    def _chat_id(update: Update | None) -> str:
        if update is None:
            return "unknown"
        source = update.message or (update.callback_query.message if update.callback_query else None)
        chat = getattr(source, "chat", None)
        return str(chat.id) if chat is not None else "unknown"


def _truncate(value: str, limit: int) -> str:
    value = value.strip()
    if len(value) <= limit:
        return value
    return f"{value[: limit - 15].rstrip()}\n...[truncated]"


__all__ = ["ErrorMonitor"]
