"""Application pagination – ResponseEnvelope and ResponseAssembler."""
from __future__ import annotations

import dataclasses
import math
from typing import Any, Generic, TypeVar

import httpx

from pageable.application.pagination.builder import LIMIT_PARAM, PAGE_PARAM
from pageable.application.pagination.filter import FilterClause, filter_to_dict
from pageable.application.pagination.sort import SortClause
from pageable.application.pagination.spec import CanonicalQuerySpec

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class PageMeta:
    current_page: int
    offset: int
    items_per_page: int
    unpaged: bool
    total_pages: int
    total_items: int
    sort_by: list[SortClause]
    filter: FilterClause

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "offset": self.offset,
            "itemsPerPage": self.items_per_page,
            "unpaged": self.unpaged,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "sortBy": [clause.to_dict() for clause in self.sort_by],
            "filter": filter_to_dict(self.filter),
        }


@dataclasses.dataclass(frozen=True)
class PageLinks:
    first: str | None = None
    previous: str | None = None
    current: str | None = None
    next: str | None = None
    last: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}


@dataclasses.dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Uniform paginated response: rows, metadata and navigation links."""

    data: list[T]
    meta: PageMeta
    links: PageLinks

    def to_dict(self) -> dict[str, Any]:
        return {"data": list(self.data), "meta": self.meta.to_dict(), "links": self.links.to_dict()}


def total_pages(total_items: int, items_per_page: int) -> int:
    if total_items <= 0 or items_per_page <= 0:
        return 0
    return math.ceil(total_items / items_per_page)


class ResponseAssembler:
    """Compute page counts and navigation links for an executed query."""

    def links(self, spec: CanonicalQuerySpec, pages: int) -> PageLinks:
        """Build links from ``spec.url``; empty when there is no page or no URL.

        Only ``page`` (and, for paged results or an explicit limit,
        ``limit``) are overwritten; other query parameters are preserved.
        """
        if pages <= 0 or spec.url is None:
            return PageLinks()
        base = httpx.URL(spec.url)
        with_limit = not spec.unpaged or spec.limit is not None

        def build(page: int) -> str:
            url = base.copy_set_param(PAGE_PARAM, str(page))
            if with_limit:
                url = url.copy_set_param(LIMIT_PARAM, str(spec.items_per_page))
            return str(url)

        current = spec.current_page
        return PageLinks(
            first=build(1),
            previous=build(current - 1) if current > 1 else None,
            current=build(current),
            next=build(current + 1) if current < pages else None,
            last=build(pages),
        )

    def assemble(self, rows: list[T], total_items: int, spec: CanonicalQuerySpec) -> ResponseEnvelope[T]:
        pages = total_pages(total_items, spec.items_per_page)
        meta = PageMeta(
            current_page=spec.current_page,
            offset=spec.offset,
            items_per_page=spec.items_per_page,
            unpaged=spec.unpaged,
            total_pages=pages,
            total_items=total_items,
            sort_by=list(spec.sort_by),
            filter=spec.filter,
        )
        return ResponseEnvelope(data=rows, meta=meta, links=self.links(spec, pages))


__all__ = ["PageLinks", "PageMeta", "ResponseAssembler", "ResponseEnvelope", "total_pages"]
