"""Declarative base shared by the catalog tables."""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Declarative base: lowercase class name as table name, integer primary key."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return cls.__name__.lower()

    id: Mapped[int] = mapped_column(primary_key=True)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id!r}>"


__all__ = ["Base"]
