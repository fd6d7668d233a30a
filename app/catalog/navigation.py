"""Addressable location that mirrors the current search (``/search?q=...&page=...``)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx


@dataclass(slots=True, frozen=True)
class InitialLocation:
    query: str | None = None
    page: int | None = None


class Navigation(Protocol):
    def read_initial(self) -> InitialLocation: ...

    def write(self, query: str | None, page: int) -> None: ...


class LocationNavigation:
    """Keeps a path plus query string, rewritten in place on every load."""

    def __init__(self, location: str = "/search") -> None:
        url = httpx.URL(location)
        self._path = url.path or "/search"
        self._params = url.params

    @property
    def location(self) -> str:
        query = str(self._params)
        return f"{self._path}?{query}" if query else self._path

    def read_initial(self) -> InitialLocation:
        query = (self._params.get("q") or "").strip() or None
        return InitialLocation(query=query, page=self._parse_page(self._params.get("page")))

    def write(self, query: str | None, page: int) -> None:
        params = self._params
        if query and query.strip():
            params = params.set("q", query)
        else:
            params = params.remove("q")
        self._params = params.set("page", str(page))

    @staticmethod
    def _parse_page(raw: str | None) -> int | None:
        if not raw:
            return None
        try:
            page = int(raw)
        except ValueError:
            return None
        return page if page >= 1 else None


__all__ = ["InitialLocation", "LocationNavigation", "Navigation"]
