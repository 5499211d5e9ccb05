"""Paginators: turn page[...] query parameters into a query window and links.

Invariants:
    - Requested sizes above the configured maximum raise PageSizeExceededError,
      never silently clamped
    - Page parameters a paginator does not know raise InvalidPageParameterError
    - "first" and "last" links are always present for paged/offset lists;
      "prev"/"next" only when such a page exists

Design Decisions:
    - One paginator instance per process, chosen from ResourceConfig at startup
    - Link params returned as plain dicts so URL building stays in one helper
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

from addressbook.core.domain_types import PaginatorKind
from addressbook.core.errors import (
    InvalidPageParameterError, PageSizeExceededError,
)
from addressbook.core.identifiers import MAX_DATABASE_INT
from addressbook.core.resource_config import ResourceConfig

_INTEGER = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class PageWindow:
    """Rows to fetch: OFFSET offset LIMIT limit (no limit when None)."""
    offset: int = 0
    limit: int | None = None


class Paginator(Protocol):
    kind: PaginatorKind

    def window(self, page: Mapping[str, str]) -> PageWindow: ...

    def link_params(
        self, window: PageWindow, record_count: int,
    ) -> dict[str, dict[str, int]]: ...

    def page_count(self, window: PageWindow, record_count: int) -> int: ...


def _reject_unknown(page: Mapping[str, str], allowed: tuple[str, ...]) -> None:
    for key in page:
        if key not in allowed:
            raise InvalidPageParameterError(
                f"page[{key}]", f"page[{key}] is not a valid page parameter",
            )


def _int_param(
    page: Mapping[str, str],
    key: str,
    default: int,
    minimum: int,
    bounded: bool = True,
) -> int:
    """Integer page value; bounded=False leaves the range check to the caller."""
    raw = page.get(key)
    if raw is None:
        return default
    if not _INTEGER.fullmatch(raw):
        raise InvalidPageParameterError(
            f"page[{key}]", f"{raw!r} is not a valid value for page[{key}]",
        )
    try:
        value = int(raw)
    except ValueError:
        # past the interpreter's digit limit for str -> int
        raise InvalidPageParameterError(
            f"page[{key}]", f"page[{key}] is out of range",
        )
    if value < minimum:
        raise InvalidPageParameterError(
            f"page[{key}]", f"page[{key}] must be at least {minimum}",
        )
    if bounded and value > MAX_DATABASE_INT:
        raise InvalidPageParameterError(
            f"page[{key}]", f"page[{key}] is out of range",
        )
    return value


class PagedPaginator:
    """page[number] (1-based) and page[size]."""
    kind = PaginatorKind.PAGED

    def __init__(self, default_size: int, maximum_size: int):
        self.default_size = default_size
        self.maximum_size = maximum_size

    def window(self, page: Mapping[str, str]) -> PageWindow:
        _reject_unknown(page, ("number", "size"))
        number = _int_param(page, "number", 1, 1)
        size = _int_param(page, "size", self.default_size, 1, bounded=False)
        if size > self.maximum_size:
            raise PageSizeExceededError(size, self.maximum_size)
        offset = (number - 1) * size
        if offset > MAX_DATABASE_INT:
            raise InvalidPageParameterError(
                "page[number]", "page[number] is out of range",
            )
        return PageWindow(offset=offset, limit=size)

    def page_count(self, window: PageWindow, record_count: int) -> int:
        return math.ceil(record_count / window.limit)

    def link_params(
        self, window: PageWindow, record_count: int,
    ) -> dict[str, dict[str, int]]:
        size = window.limit
        number = window.offset // size + 1
        page_count = self.page_count(window, record_count)
        params = {"first": {"number": 1, "size": size}}
        if number > 1:
            params["prev"] = {"number": number - 1, "size": size}
        if number < page_count:
            params["next"] = {"number": number + 1, "size": size}
        params["last"] = {"number": max(page_count, 1), "size": size}
        return params


class OffsetPaginator:
    """page[offset] (0-based) and page[limit]."""
    kind = PaginatorKind.OFFSET

    def __init__(self, default_limit: int, maximum_limit: int):
        self.default_limit = default_limit
        self.maximum_limit = maximum_limit

    def window(self, page: Mapping[str, str]) -> PageWindow:
        _reject_unknown(page, ("offset", "limit"))
        offset = _int_param(page, "offset", 0, 0)
        limit = _int_param(page, "limit", self.default_limit, 1, bounded=False)
        if limit > self.maximum_limit:
            raise PageSizeExceededError(
                limit, self.maximum_limit, parameter="page[limit]",
            )
        return PageWindow(offset=offset, limit=limit)

    def page_count(self, window: PageWindow, record_count: int) -> int:
        return math.ceil(record_count / window.limit)

    def link_params(
        self, window: PageWindow, record_count: int,
    ) -> dict[str, dict[str, int]]:
        limit, offset = window.limit, window.offset
        params = {"first": {"offset": 0, "limit": limit}}
        if offset > 0:
            params["prev"] = {"offset": max(offset - limit, 0), "limit": limit}
        if offset + limit < record_count:
            params["next"] = {"offset": offset + limit, "limit": limit}
        last_offset = ((record_count - 1) // limit) * limit if record_count else 0
        params["last"] = {"offset": last_offset, "limit": limit}
        return params


class NonePaginator:
    """Every record in one response; page parameters are rejected."""
    kind = PaginatorKind.NONE

    def window(self, page: Mapping[str, str]) -> PageWindow:
        _reject_unknown(page, ())
        return PageWindow()

    def page_count(self, window: PageWindow, record_count: int) -> int:
        return 1

    def link_params(
        self, window: PageWindow, record_count: int,
    ) -> dict[str, dict[str, int]]:
        return {}


def build_paginator(config: ResourceConfig) -> Paginator:
    if config.paginator == PaginatorKind.PAGED:
        return PagedPaginator(config.default_page_size, config.maximum_page_size)
    if config.paginator == PaginatorKind.OFFSET:
        return OffsetPaginator(config.default_page_size, config.maximum_page_size)
    return NonePaginator()


def pagination_links(
    url: str,
    query_items: Iterable[tuple[str, str]],
    link_params: dict[str, dict[str, int]],
) -> dict[str, str]:
    """Build absolute links, keeping every non-page query parameter of the request."""
    kept = [(k, v) for k, v in query_items if not k.startswith("page[")]
    links = {}
    for name, params in link_params.items():
        query = kept + [(f"page[{k}]", str(v)) for k, v in params.items()]
        links[name] = f"{url}?{urlencode(query)}"
    return links
