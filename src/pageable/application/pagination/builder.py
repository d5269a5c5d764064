"""Application pagination – QuerySpecBuilder.

Merges three tiers into a :class:`CanonicalQuerySpec`:

1. library defaults (:class:`~pageable.config.PaginationSettings`);
2. per-endpoint :class:`PaginateOptions`;
3. the raw query parameters ``page``, ``limit``, ``unpaged``, ``sortBy`` and
   ``filter[<field>]``.

Each field is validated on its own.  An invalid value in tier 2 or 3 is
dropped and the value merged so far is kept, so a single malformed
parameter never fails the request.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from pageable.application.pagination.coercion import (
    MAX_SAFE_INTEGER,
    coerce_bool,
    coerce_int,
    coerce_str,
)
from pageable.application.pagination.filter import extract_filter_params, parse_filter
from pageable.application.pagination.sort import SortClause, coerce_sort, parse_sort
from pageable.application.pagination.spec import CanonicalQuerySpec, PaginateOptions
from pageable.config.pagination import DEFAULT_PAGE, DEFAULT_SETTINGS, PaginationSettings
from pageable.observability.logging import get_logger

logger = get_logger(__name__)

PAGE_PARAM = "page"
LIMIT_PARAM = "limit"
UNPAGED_PARAM = "unpaged"
SORT_PARAM = "sortBy"

_OPTION_ALIASES = {
    "currentPage": "current_page",
    "itemsPerPage": "items_per_page",
    "sortBy": "sort_by",
    "maxSize": "max_size",
    "enableSize": "enable_size",
    "enableSort": "enable_sort",
    "enableUnpaged": "enable_unpaged",
    "operandSeparator": "operand_separator",
}
_OPTION_FIELDS = frozenset(f.name for f in dataclasses.fields(PaginateOptions))


def options_from_mapping(values: Mapping[str, Any]) -> PaginateOptions:
    """Build :class:`PaginateOptions` from snake_case or camelCase keys; unknown keys are ignored."""
    kwargs: dict[str, Any] = {}
    for key, value in values.items():
        name = _OPTION_ALIASES.get(key, key)
        if name in _OPTION_FIELDS:
            kwargs[name] = value
    return PaginateOptions(**kwargs)


class QuerySpecBuilder:
    """Stateless builder; one instance may serve every request of an endpoint."""

    def __init__(
        self,
        defaults: PaginateOptions | Mapping[str, Any] | None = None,
        settings: PaginationSettings | None = None,
    ) -> None:
        if defaults is None:
            defaults = PaginateOptions()
        elif isinstance(defaults, Mapping):
            defaults = options_from_mapping(defaults)
        self._options = defaults
        self._settings = settings or DEFAULT_SETTINGS

    def build(self, raw_query: Mapping[str, Any] | None = None, url: Any = None) -> CanonicalQuerySpec:
        raw_query = raw_query or {}
        options = self._options
        settings = self._settings

        # tier 1
        max_size = settings.max_size
        enable_size = settings.enable_size
        enable_sort = settings.enable_sort
        enable_unpaged = settings.enable_unpaged
        separator = settings.operand_separator
        page = DEFAULT_PAGE
        size = settings.default_size
        unpaged = False
        sort_by: list[SortClause] = []
        limit: int | None = None

        # tier 2: switches first, they bound the values below
        if options.max_size is not None:
            max_size = _pick(coerce_int(options.max_size, minimum=1), max_size, "max_size", options.max_size)
        enable_size = _pick_bool(options.enable_size, enable_size, "enable_size")
        enable_sort = _pick_bool(options.enable_sort, enable_sort, "enable_sort")
        enable_unpaged = _pick_bool(options.enable_unpaged, enable_unpaged, "enable_unpaged")
        if options.operand_separator is not None:
            separator = _pick(coerce_str(options.operand_separator), separator, "operand_separator", options.operand_separator)
        if options.limit is not None:
            limit = _pick(coerce_int(options.limit, minimum=1), limit, "limit", options.limit)

        page, size = _merge_page_size(page, size, options.current_page, options.items_per_page, max_size, "default")
        unpaged = _pick_bool(options.unpaged, unpaged, "unpaged")
        if options.sort_by is not None:
            sort_by = _pick(coerce_sort(options.sort_by), sort_by, "sort_by", options.sort_by)

        # tier 3
        raw_size = raw_query.get(LIMIT_PARAM) if enable_size else None
        page, size = _merge_page_size(page, size, raw_query.get(PAGE_PARAM), raw_size, max_size, "query")

        if enable_unpaged and raw_query.get(UNPAGED_PARAM) is not None:
            unpaged = _pick(coerce_bool(raw_query[UNPAGED_PARAM]), unpaged, UNPAGED_PARAM, raw_query[UNPAGED_PARAM], source="query")

        if enable_sort and raw_query.get(SORT_PARAM) is not None:
            parsed = parse_sort(raw_query[SORT_PARAM])
            if parsed:
                sort_by = parsed

        if max_size is not None and size > max_size:
            size = max_size

        return CanonicalQuerySpec(
            current_page=page,
            items_per_page=size,
            offset=(page - 1) * size,
            limit=limit,
            unpaged=unpaged,
            sort_by=sort_by,
            filter=parse_filter(extract_filter_params(raw_query), separator),
            operand_separator=separator,
            url=str(url) if url is not None else None,
        )


def build_query_spec(
    raw_query: Mapping[str, Any] | None = None,
    defaults: PaginateOptions | Mapping[str, Any] | None = None,
    url: Any = None,
    settings: PaginationSettings | None = None,
) -> CanonicalQuerySpec:
    """Turn raw query parameters into a :class:`CanonicalQuerySpec`.

    Example::

        spec = build_query_spec(
            {"page": "2", "sortBy": "property[id];direction[desc];"},
            defaults={"itemsPerPage": 20},
            url="https://api.example.com/items?page=2",
        )
    """
    return QuerySpecBuilder(defaults, settings).build(raw_query, url)


def _pick(candidate: Any, current: Any, field: str, raw: Any, source: str = "default") -> Any:
    if candidate is None:
        logger.debug("value_ignored", field=field, value=raw, source=source)
        return current
    return candidate


def _pick_bool(raw: Any, current: bool, field: str) -> bool:
    if raw is None:
        return current
    return _pick(coerce_bool(raw), current, field, raw)


def _merge_page_size(
    page: int,
    size: int,
    raw_page: Any,
    raw_size: Any,
    max_size: int | None,
    source: str,
) -> tuple[int, int]:
    """Apply one tier's page/size candidates, keeping the offset exactly representable."""
    new_page, new_size = page, size
    if raw_page is not None:
        new_page = _pick(coerce_int(raw_page, minimum=1), page, "page", raw_page, source)
    if raw_size is not None:
        new_size = _pick(coerce_int(raw_size, minimum=1, maximum=max_size), size, "items_per_page", raw_size, source)
    if (new_page - 1) * new_size > MAX_SAFE_INTEGER:
        logger.debug("offset_out_of_range", page=raw_page, size=raw_size, source=source)
        return page, size
    return new_page, new_size


__all__ = [
    "LIMIT_PARAM",
    "PAGE_PARAM",
    "QuerySpecBuilder",
    "SORT_PARAM",
    "UNPAGED_PARAM",
    "build_query_spec",
    "options_from_mapping",
]
