"""Pydantic models shared across catalog and bot layers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Course(BaseModel):
    """A catalog entry as delivered by a course repository."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    author: str = ""
    image: str = ""
    description: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("author", "image", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class LoadError(BaseModel):
    """Retryable failure attached to a settled load."""

    model_config = ConfigDict(frozen=True)

    query: str
    page: int
    message: str


class ResultState(BaseModel):
    model_config = ConfigDict(frozen=True)

    visible_items: tuple[Course, ...] = ()
    fallback_items: tuple[Course, ...] = ()
    total_matches: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    is_loading: bool = False
    error: LoadError | None = None

    @classmethod
    def loading(cls) -> "ResultState":
        return cls(is_loading=True)

    @classmethod
    def failed(cls, error: LoadError) -> "ResultState":
        return cls(is_loading=False, error=error)


__all__ = ["Course", "LoadError", "ResultState"]
