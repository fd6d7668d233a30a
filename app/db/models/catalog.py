"""SQLAlchemy models backing the database course source."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.domain.models import Course


class CourseRecord(Base):
    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    image: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    def to_course(self) -> Course:
        return Course(
            id=str(self.id),
            title=self.title,
            author=self.author or "",
            image=self.image or "",
            description=self.description or "",
        )


__all__ = ["CourseRecord"]
