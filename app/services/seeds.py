"""Startup seed helpers."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.catalog import CourseRecord
from app.domain.models import Course
from app.logging import logger


async def ensure_sample_courses(session: AsyncSession, courses: Sequence[Course]) -> int:
    """Insert ``courses`` when the catalog table is still empty.

    Returns the number of inserted rows. Existing catalogs are left untouched.
    """

    result = await session.execute(select(func.count()).select_from(CourseRecord))
    if result.scalar_one() > 0:
        return 0

    session.add_all(
        [
            CourseRecord(
                title=course.title,
                author=course.author,
                image=course.image,
                description=course.description,
            )
            for course in courses
        ]
    )
    await session.commit()
    logger.info("catalog_seeded", courses=len(courses))
    return len(courses)


__all__ = ["ensure_sample_courses"]
