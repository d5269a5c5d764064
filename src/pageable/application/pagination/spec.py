"""Application pagination – CanonicalQuerySpec and PaginateOptions."""
from __future__ import annotations

import dataclasses
from typing import Any

from pageable.application.pagination.filter import FilterClause, filter_to_dict
from pageable.application.pagination.sort import SortClause
from pageable.config.pagination import DEFAULT_OPERAND_SEPARATOR, DEFAULT_PAGE, DEFAULT_SIZE


@dataclasses.dataclass(frozen=True)
class CanonicalQuerySpec:
    """Fully defaulted, validated list query.

    ``offset`` is always derived: ``(current_page - 1) * items_per_page``.
    ``limit`` is an explicit cap on the total number of rows the endpoint
    may ever return, independent of the page size.
    """

    current_page: int = DEFAULT_PAGE
    items_per_page: int = DEFAULT_SIZE
    offset: int = 0
    limit: int | None = None
    unpaged: bool = False
    sort_by: list[SortClause] = dataclasses.field(default_factory=list)
    filter: FilterClause = dataclasses.field(default_factory=dict)
    operand_separator: str = DEFAULT_OPERAND_SEPARATOR
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "itemsPerPage": self.items_per_page,
            "offset": self.offset,
            "limit": self.limit,
            "unpaged": self.unpaged,
            "sortBy": [clause.to_dict() for clause in self.sort_by],
            "filter": filter_to_dict(self.filter),
            "operandSeparator": self.operand_separator,
            "url": self.url,
        }


@dataclasses.dataclass(frozen=True)
class PaginateOptions:
    """Per-endpoint defaults and switches.

    Every field is optional and validated on its own; an invalid value falls
    back to the library default for that field only.

    Attributes
    ----------
    current_page, items_per_page, unpaged, sort_by:
        Defaults used when the query does not override them.
    limit:
        Explicit cap on the total rows the endpoint returns.
    max_size:
        Page-size ceiling for this endpoint.
    enable_size, enable_sort, enable_unpaged:
        Whether the query may override the page size, the sort and the
        unpaged flag.
    operand_separator:
        Separator between a filter operator and its operand.
    """

    current_page: Any = None
    items_per_page: Any = None
    unpaged: Any = None
    sort_by: Any = None
    limit: Any = None
    max_size: Any = None
    enable_size: Any = None
    enable_sort: Any = None
    enable_unpaged: Any = None
    operand_separator: Any = None


__all__ = ["CanonicalQuerySpec", "PaginateOptions"]
