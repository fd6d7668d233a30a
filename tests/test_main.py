"""Tests for logging configuration and async main bootstrap."""

from __future__ import annotations

from contextlib import AsyncExitStack
from types import SimpleNamespace

import pytest
import structlog

from app import main as main_module
from app.catalog.repository import HttpCourseRepository, InMemoryCourseRepository
from app.catalog.sessions import BrowsingSessions
from app.config import HttpSourceSettings
from app.logging import configure_logging


def test_configure_logging_outputs_json(capsys):
    configure_logging("DEBUG")
    logger = structlog.get_logger()
    logger.info("unit-test", foo="bar")
    out = capsys.readouterr().out
    assert "unit-test" in out
    assert "foo" in out


class DummyToken:
    def __init__(self, value: str) -> None:
        self.value = value

    def get_secret_value(self) -> str:
        return self.value


class DummyDispatcher:
    def __init__(self) -> None:
        self.included = []
        self.message_middlewares = []
        self.callback_middlewares = []
        self.started = False
        self.message = SimpleNamespace(middleware=self.message_middlewares.append)
        self.callback_query = SimpleNamespace(middleware=self.callback_middlewares.append)
        self.registered_error_handlers = []
        self.errors = SimpleNamespace(register=self.registered_error_handlers.append)

    def include_router(self, router):
        self.included.append(router)

    async def start_polling(self, bot, **kwargs):
        self.started = True
        self.bot = bot
        self.start_kwargs = kwargs


def _settings(source: str = "memory") -> SimpleNamespace:
    return SimpleNamespace(
        source=source,
        telegram_proxy=None,
        telegram_token=DummyToken("token"),
        environment="test",
        default_language="en",
        log_level="INFO",
        http=HttpSourceSettings(),
        request_limit=SimpleNamespace(interval_seconds=1, max_requests=1),
        browsing=SimpleNamespace(max_sessions=10, lookup_timeout_seconds=5.0),
        database=SimpleNamespace(seed_sample_courses=True),
    )


@pytest.mark.asyncio
async def test_main_bootstrap(monkeypatch):
    settings = _settings()
    dummy_dispatcher = DummyDispatcher()
    throttle_inits = []

    def _throttle(*args, **kwargs):
        throttle_inits.append(args)
        return "throttle-instance"

    monkeypatch.setattr(main_module, "configure_logging", lambda level: None)
    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "Bot", lambda *args, **kwargs: SimpleNamespace())
    monkeypatch.setattr(main_module, "Dispatcher", lambda: dummy_dispatcher)
    monkeypatch.setattr(main_module, "ThrottleMiddleware", _throttle)
    dummy_monitor = object()
    monkeypatch.setattr(main_module, "ErrorMonitor", lambda settings: dummy_monitor)
    monkeypatch.setattr(main_module, "setup_routers", lambda: "router")

    await main_module.main()

    assert dummy_dispatcher.started is True
    assert dummy_dispatcher.included == ["router"]
    assert dummy_dispatcher.registered_error_handlers == [dummy_monitor]
    assert throttle_inits == [(settings,)]
    assert dummy_dispatcher.message_middlewares == ["throttle-instance"]
    assert dummy_dispatcher.callback_middlewares == ["throttle-instance"]

    kwargs = dummy_dispatcher.start_kwargs
    assert kwargs["settings"] is settings
    sessions = kwargs["sessions"]
    assert isinstance(sessions, BrowsingSessions)
    # Sessions are disposed once polling stops.
    assert len(sessions) == 0


@pytest.mark.asyncio
async def test_build_repository_memory_and_http():
    async with AsyncExitStack() as stack:
        memory = await main_module.build_repository(_settings("memory"), stack)
        http = await main_module.build_repository(_settings("http"), stack)

    assert isinstance(memory, InMemoryCourseRepository)
    assert await memory.get_count_by_search("") == 12
    assert isinstance(http, HttpCourseRepository)


@pytest.mark.asyncio
async def test_build_repository_database_creates_schema_and_seeds(monkeypatch):
    events = []

    class DummyDatabase:
        def __init__(self, settings) -> None:
            events.append("init")

        async def create_schema(self):
            events.append("schema")

        async def dispose(self):
            events.append("dispose")

        def session(self):
            class _Ctx:
                async def __aenter__(self_inner):
                    return "db-session"

                async def __aexit__(self_inner, *exc):
                    return False

            return _Ctx()

    async def fake_seed(session, courses):
        events.append(("seed", session, len(courses)))
        return len(courses)

    monkeypatch.setattr(main_module, "Database", DummyDatabase)
    monkeypatch.setattr(main_module, "ensure_sample_courses", fake_seed)

    async with AsyncExitStack() as stack:
        repository = await main_module.build_repository(_settings("database"), stack)
        assert isinstance(repository, main_module.DatabaseCourseRepository)

    assert events == ["init", "schema", ("seed", "db-session", 12), "dispose"]
