from aiogram import Router

from app.bot.routers import catalog


def setup_routers() -> Router:
    router = Router()
    router.include_router(catalog.router)
    return router


__all__ = ["setup_routers"]
