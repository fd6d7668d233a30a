"""Application entrypoint."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack

import httpx
from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession

from app.bot.middlewares import ThrottleMiddleware
from app.bot.routers import setup_routers
from app.catalog.repository import (
    CourseRepository,
    DatabaseCourseRepository,
    HttpCourseRepository,
    InMemoryCourseRepository,
    load_sample_courses,
)
from app.catalog.sessions import BrowsingSessions
from app.config import CatalogSettings, get_settings
from app.db.session import Database
from app.i18n import I18nService
from app.logging import configure_logging, logger
from app.services.error_monitor import ErrorMonitor
from app.services.seeds import ensure_sample_courses


async def build_repository(settings: CatalogSettings, stack: AsyncExitStack) -> CourseRepository:
    """Create the configured course source; cleanup is registered on ``stack``."""

    if settings.source == "memory":
        return InMemoryCourseRepository(load_sample_courses())

    if settings.source == "database":
        database = Database(settings=settings)
        stack.push_async_callback(database.dispose)
        await database.create_schema()
        if settings.database.seed_sample_courses:
            async with database.session() as seed_session:
                await ensure_sample_courses(seed_session, load_sample_courses())
        return DatabaseCourseRepository(database.session)

    client = await stack.enter_async_context(httpx.AsyncClient())
    return HttpCourseRepository(client, settings.http)


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    session = (
        AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    )
    bot = Bot(token=settings.telegram_token.get_secret_value(), session=session)
    dp = Dispatcher()
    dp.include_router(setup_routers())
    dp.errors.register(ErrorMonitor(settings=settings))

    throttle_middleware = ThrottleMiddleware(settings)
    dp.message.middleware(throttle_middleware)
    dp.callback_query.middleware(throttle_middleware)

    async with AsyncExitStack() as stack:
        repository = await build_repository(settings, stack)
        sessions = BrowsingSessions(
            repository,
            max_sessions=settings.browsing.max_sessions,
            lookup_timeout=settings.browsing.lookup_timeout_seconds,
        )
        stack.callback(sessions.close_all)

        logger.info("bot_starting", environment=settings.environment, source=settings.source)
        await dp.start_polling(
            bot,
            sessions=sessions,
            i18n=I18nService(default_locale=settings.default_language),
            settings=settings,
        )


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
