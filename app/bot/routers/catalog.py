"""Telegram handlers for browsing the course catalog."""

from __future__ import annotations

import contextlib
from typing import Awaitable, Callable

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, InaccessibleMessage, LinkPreviewOptions, Message
from aiogram.utils.deep_linking import decode_payload

from app.bot.utils.catalog_view import CatalogCallback, render_loading, render_snapshot
from app.bot.utils.telegram import answer_with_retry, edit_with_retry
from app.catalog.controller import LoadOutcome, SearchController
from app.catalog.sessions import BrowsingSessions
from app.config import CatalogSettings
from app.i18n import I18nService
from app.logging import logger

router = Router()

LoadAction = Callable[[], Awaitable[LoadOutcome]]


def _locale(i18n: I18nService, event: Message | CallbackQuery) -> str:
    user = event.from_user
    return i18n.resolve_locale(user.language_code if user is not None else None)


async def _present(
    message: Message,
    controller: SearchController,
    action: LoadAction,
    *,
    sessions: BrowsingSessions,
    i18n: I18nService,
    locale: str,
    settings: CatalogSettings,
    edit: bool = False,
) -> LoadOutcome:
    """Show the skeleton, run the load and render whatever it settled to.

    A superseded load leaves rendering to the newer one. Its message is
    deleted unless the newer load renders into that same message.
    """

    loading_text = render_loading(i18n, locale)
    if edit:
        target = message
        await edit_with_retry(target, loading_text, reply_markup=None)
    else:
        target = await answer_with_retry(message, loading_text, parse_mode=None)

    chat_id = target.chat.id
    sessions.mark_active_message(chat_id, target.message_id)

    outcome = await action()
    if outcome is LoadOutcome.DISCARDED:
        if sessions.active_message(chat_id) != target.message_id:
            with contextlib.suppress(TelegramBadRequest):
                await target.delete()
        return outcome

    text, markup = render_snapshot(
        controller.snapshot(),
        i18n=i18n,
        locale=locale,
        course_base_url=str(settings.browsing.course_base_url),
    )
    await edit_with_retry(
        target,
        text,
        reply_markup=markup,
        parse_mode=None,
        link_preview_options=LinkPreviewOptions(is_disabled=True),
    )
    return outcome


def _start_location(payload: str | None) -> str | None:
    """Turn a deep-link payload into a `/search?...` location.

    Payloads are base64url-encoded query strings such as `q=python&page=2`.
    Undecodable payloads are ignored.
    """

    if not payload:
        return None
    try:
        decoded = decode_payload(payload)
    except ValueError:
        logger.info("catalog_start_payload_invalid", payload=payload)
        return None
    return f"/search?{decoded.lstrip('?')}"


@router.message(CommandStart())
async def handle_start(
    message: Message,
    command: CommandObject,
    sessions: BrowsingSessions,
    i18n: I18nService,
    settings: CatalogSettings,
) -> None:
    locale = _locale(i18n, message)
    name = message.from_user.full_name if message.from_user else ""
    await answer_with_retry(
        message,
        i18n.gettext("start.greeting", locale=locale, name=name),
        parse_mode=None,
    )
    location = _start_location(command.args)
    if location is not None:
        sessions.close(message.chat.id)
    controller = sessions.get(message.chat.id, location=location)
    if controller.started:
        action: LoadAction = lambda: controller.load(None, 1)  # noqa: E731
    else:
        action = controller.start
    await _present(
        message,
        controller,
        action,
        sessions=sessions,
        i18n=i18n,
        locale=locale,
        settings=settings,
    )


@router.message(Command("help"))
async def handle_help(message: Message, i18n: I18nService) -> None:
    await answer_with_retry(
        message,
        i18n.gettext("help.text", locale=_locale(i18n, message)),
        parse_mode=None,
    )


@router.message(Command("courses"))
async def handle_courses(
    message: Message,
    command: CommandObject,
    sessions: BrowsingSessions,
    i18n: I18nService,
    settings: CatalogSettings,
) -> None:
    query = command.args or ""
    controller = sessions.get(message.chat.id)
    logger.info("catalog_search_submitted", chat_id=message.chat.id, query=query)
    await _present(
        message,
        controller,
        lambda: controller.load(query, 1),
        sessions=sessions,
        i18n=i18n,
        locale=_locale(i18n, message),
        settings=settings,
    )


@router.message(Command("stop"))
async def handle_stop(message: Message, sessions: BrowsingSessions, i18n: I18nService) -> None:
    key = "stop.done" if sessions.close(message.chat.id) else "stop.none"
    await answer_with_retry(message, i18n.gettext(key, locale=_locale(i18n, message)), parse_mode=None)


@router.message(F.chat.type == "private", F.text, ~F.text.startswith("/"))
async def handle_search_text(
    message: Message,
    sessions: BrowsingSessions,
    i18n: I18nService,
    settings: CatalogSettings,
) -> None:
    query = message.text or ""
    controller = sessions.get(message.chat.id)
    logger.info("catalog_search_submitted", chat_id=message.chat.id, query=query)
    await _present(
        message,
        controller,
        lambda: controller.load(query, 1),
        sessions=sessions,
        i18n=i18n,
        locale=_locale(i18n, message),
        settings=settings,
    )


@router.callback_query(CatalogCallback.filter(F.action == "page"))
async def handle_page(
    callback: CallbackQuery,
    callback_data: CatalogCallback,
    sessions: BrowsingSessions,
    i18n: I18nService,
    settings: CatalogSettings,
) -> None:
    await callback.answer()
    message = callback.message
    if message is None or isinstance(message, InaccessibleMessage):
        return
    controller = sessions.get(message.chat.id)
    page = max(1, callback_data.page)
    await _present(
        message,
        controller,
        lambda: controller.load(controller.search_state.query, page),
        sessions=sessions,
        i18n=i18n,
        locale=_locale(i18n, callback),
        settings=settings,
        edit=True,
    )


@router.callback_query(CatalogCallback.filter(F.action == "retry"))
async def handle_retry(
    callback: CallbackQuery,
    sessions: BrowsingSessions,
    i18n: I18nService,
    settings: CatalogSettings,
) -> None:
    await callback.answer()
    message = callback.message
    if message is None or isinstance(message, InaccessibleMessage):
        return
    controller = sessions.get(message.chat.id)
    await _present(
        message,
        controller,
        controller.retry,
        sessions=sessions,
        i18n=i18n,
        locale=_locale(i18n, callback),
        settings=settings,
        edit=True,
    )


__all__ = ["router"]
