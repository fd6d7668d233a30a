"""Plain-text rendering of catalog snapshots for Telegram."""

from __future__ import annotations

from typing import Iterable

import httpx
from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from app.catalog.controller import CatalogSnapshot
from app.catalog.merger import notice_for, shows_pagination
from app.catalog.state import PAGE_SIZE
from app.domain.models import Course
from app.i18n import I18nService

DESCRIPTION_CHAR_LIMIT = 180
PAGE_BUTTONS = 5


class CatalogCallback(CallbackData, prefix="catalog"):
    action: str
    page: int = 0


def course_link(base_url: str, course: Course) -> str:
    root = str(base_url).rstrip("/")
    return str(httpx.URL(f"{root}/course", params={"q": course.id, "title": course.title}))


def page_window(current: int, total: int, width: int = PAGE_BUTTONS) -> list[int]:
    """Page numbers to show as buttons, keeping ``current`` roughly centred."""

    if total <= 0:
        return []
    width = min(width, total)
    first = max(1, min(current - width // 2, total - width + 1))
    return list(range(first, first + width))


def render_loading(i18n: I18nService, locale: str) -> str:
    skeleton = i18n.gettext("catalog.skeleton", locale=locale)
    return "\n".join([i18n.gettext("catalog.loading", locale=locale), *([skeleton] * PAGE_SIZE)])


def render_card(course: Course, *, i18n: I18nService, locale: str, course_base_url: str) -> str:
    description = course.description.strip()
    if len(description) > DESCRIPTION_CHAR_LIMIT:
        description = f"{description[: DESCRIPTION_CHAR_LIMIT - 3].rstrip()}..."
    return i18n.gettext(
        "catalog.card",
        locale=locale,
        title=course.title,
        author=course.author or "-",
        description=description,
        link=course_link(course_base_url, course),
    )


def _cards(courses: Iterable[Course], **kwargs) -> list[str]:
    return [render_card(course, **kwargs) for course in courses]


def pagination_keyboard(current: int, total: int, i18n: I18nService, locale: str) -> InlineKeyboardMarkup:
    numbers = [
        InlineKeyboardButton(
            text=f"· {page} ·" if page == current else str(page),
            callback_data=CatalogCallback(action="page", page=page).pack(),
        )
        for page in page_window(current, total)
    ]
    arrows: list[InlineKeyboardButton] = []
    if current > 1:
        arrows.append(
            InlineKeyboardButton(
                text=i18n.gettext("catalog.previous", locale=locale),
                callback_data=CatalogCallback(action="page", page=current - 1).pack(),
            )
        )
    if current < total:
        arrows.append(
            InlineKeyboardButton(
                text=i18n.gettext("catalog.next", locale=locale),
                callback_data=CatalogCallback(action="page", page=current + 1).pack(),
            )
        )
    rows = [row for row in (numbers, arrows) if row]
    return InlineKeyboardMarkup(inline_keyboard=rows)


def retry_keyboard(i18n: I18nService, locale: str) -> InlineKeyboardMarkup:
    button = InlineKeyboardButton(
        text=i18n.gettext("catalog.retry", locale=locale),
        callback_data=CatalogCallback(action="retry").pack(),
    )
    return InlineKeyboardMarkup(inline_keyboard=[[button]])


def render_snapshot(
    snapshot: CatalogSnapshot,
    *,
    i18n: I18nService,
    locale: str,
    course_base_url: str,
) -> tuple[str, InlineKeyboardMarkup | None]:
    search, result = snapshot.search, snapshot.result
    if result.is_loading:
        return render_loading(i18n, locale), None
    if result.error is not None:
        text = i18n.gettext("catalog.error", locale=locale, error=result.error.message)
        return text, retry_keyboard(i18n, locale)

    if search.query:
        heading = i18n.gettext("catalog.heading_query", locale=locale, query=search.query)
    else:
        heading = i18n.gettext("catalog.heading_all", locale=locale)
    blocks = [heading]
    paginated = shows_pagination(result)
    if paginated:
        blocks.append(
            i18n.gettext(
                "catalog.page_status",
                locale=locale,
                page=search.page,
                pages=result.total_pages,
                total=result.total_matches,
            )
        )

    card_options = {"i18n": i18n, "locale": locale, "course_base_url": course_base_url}
    blocks.extend(_cards(result.visible_items, **card_options))

    notice = notice_for(result)
    if notice is not None:
        blocks.append(i18n.gettext(f"catalog.{notice.value}", locale=locale))
        blocks.extend(_cards(result.fallback_items, **card_options))

    markup = pagination_keyboard(search.page, result.total_pages, i18n, locale) if paginated else None
    return "\n\n".join(blocks), markup


__all__ = [
    "CatalogCallback",
    "course_link",
    "page_window",
    "pagination_keyboard",
    "render_card",
    "render_loading",
    "render_snapshot",
    "retry_keyboard",
]
