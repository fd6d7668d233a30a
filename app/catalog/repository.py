"""Course sources consulted by the search controller.

Every repository exposes the same three coroutines:

* ``get_range(start, end)``: unfiltered courses in ``[start, end)``.
* ``get_range_by_search(query, start, end)``: courses matching ``query``
  in ``[start, end)``; an empty query matches everything.
* ``get_count_by_search(query)``: total number of matches for ``query``.

Failures are reported as :class:`~app.services.exceptions.LookupFailure`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncContextManager, Callable, Protocol, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.state import normalize_query
from app.config import HttpSourceSettings
from app.db.models.catalog import CourseRecord
from app.domain.models import Course
from app.logging import logger
from app.services.exceptions import LookupFailure
from app.utils.retry import retry_async

DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "sample_courses.json"

_COURSE_LIST = TypeAdapter(list[Course])


class CourseRepository(Protocol):
    async def get_range(self, start: int, end: int) -> Sequence[Course]: ...

    async def get_range_by_search(self, query: str, start: int, end: int) -> Sequence[Course]: ...

    async def get_count_by_search(self, query: str) -> int: ...


def load_sample_courses(path: Path = DATA_FILE) -> list[Course]:
    with path.open("r", encoding="utf-8") as fp:
        return _COURSE_LIST.validate_python(json.load(fp))


def _matches(course: Course, needle: str) -> bool:
    haystack = " ".join((course.title, course.author, course.description)).lower()
    return needle in haystack


class InMemoryCourseRepository:
    """List-backed source used for demos and local runs."""

    def __init__(self, courses: Sequence[Course]) -> None:
        self._courses = list(courses)

    def _search(self, query: str) -> list[Course]:
        needle = normalize_query(query).lower()
        if not needle:
            return self._courses
        return [course for course in self._courses if _matches(course, needle)]

    async def get_range(self, start: int, end: int) -> list[Course]:
        return self._courses[start:end]

    async def get_range_by_search(self, query: str, start: int, end: int) -> list[Course]:
        return self._search(query)[start:end]

    async def get_count_by_search(self, query: str) -> int:
        return len(self._search(query))


class HttpCourseRepository:
    """Remote course API client.

    ``GET {base_url}/courses?start=&end=[&q=]`` returns a JSON list of courses
    (or an object with an ``items`` list) and ``GET {base_url}/courses/count[?q=]``
    returns ``{"count": n}``. Transport errors are retried; HTTP errors are not.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: HttpSourceSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or HttpSourceSettings()

    async def get_range(self, start: int, end: int) -> list[Course]:
        payload = await self._get_json("courses_range", "courses", {"start": start, "end": end})
        return self._parse_courses(payload)

    async def get_range_by_search(self, query: str, start: int, end: int) -> list[Course]:
        params: dict[str, Any] = {"start": start, "end": end}
        query = normalize_query(query)
        if query:
            params["q"] = query
        payload = await self._get_json("courses_search", "courses", params)
        return self._parse_courses(payload)

    async def get_count_by_search(self, query: str) -> int:
        query = normalize_query(query)
        params = {"q": query} if query else {}
        payload = await self._get_json("courses_count", "courses/count", params)
        count = payload.get("count") if isinstance(payload, dict) else payload
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise LookupFailure(f"Unexpected count payload: {payload!r}", operation="courses_count")
        return count

    def _url(self, path: str) -> str:
        return f"{str(self._settings.base_url).rstrip('/')}/{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._settings.api_token
        if token is not None:
            headers["Authorization"] = f"Bearer {token.get_secret_value()}"
        return headers

    async def _get_json(self, name: str, path: str, params: dict[str, Any]) -> Any:
        url = self._url(path)

        async def _request():
            response = await self._client.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            response = await retry_async(
                _request,
                max_attempts=self._settings.max_attempts,
                base_delay=self._settings.retry_base_delay,
                retry_on=(httpx.TransportError,),
                logger=logger,
                operation_name=name,
            )
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise LookupFailure(
                f"Course API request failed ({status_code})", operation=name
            ) from exc
        except httpx.RequestError as exc:
            raise LookupFailure(f"Course API request failed: {exc}", operation=name) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise LookupFailure("Course API returned invalid JSON", operation=name) from exc

    @staticmethod
    def _parse_courses(payload: Any) -> list[Course]:
        if isinstance(payload, dict):
            payload = payload.get("items")
        try:
            return _COURSE_LIST.validate_python(payload)
        except ValidationError as exc:
            raise LookupFailure(f"Malformed course payload: {exc.error_count()} errors") from exc


SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DatabaseCourseRepository:
    """Reads courses from the ``courses`` table, ordered by id."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _search_clause(query: str):
        pattern = _like_pattern(query)
        return or_(
            CourseRecord.title.ilike(pattern, escape="\\"),
            CourseRecord.author.ilike(pattern, escape="\\"),
            CourseRecord.description.ilike(pattern, escape="\\"),
        )

    async def get_range(self, start: int, end: int) -> list[Course]:
        return await self._select_range("", start, end)

    async def get_range_by_search(self, query: str, start: int, end: int) -> list[Course]:
        return await self._select_range(normalize_query(query), start, end)

    async def get_count_by_search(self, query: str) -> int:
        query = normalize_query(query)
        stmt = select(func.count()).select_from(CourseRecord)
        if query:
            stmt = stmt.where(self._search_clause(query))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Course count failed: {exc}", operation="courses_count") from exc

    async def _select_range(self, query: str, start: int, end: int) -> list[Course]:
        stmt = select(CourseRecord).order_by(CourseRecord.id).offset(start).limit(max(0, end - start))
        if query:
            stmt = stmt.where(self._search_clause(query))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [record.to_course() for record in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Course query failed: {exc}", operation="courses_range") from exc


__all__ = [
    "CourseRepository",
    "DatabaseCourseRepository",
    "HttpCourseRepository",
    "InMemoryCourseRepository",
    "load_sample_courses",
]
