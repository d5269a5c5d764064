"""Application pagination – QueryExecutor.

Applies a :class:`CanonicalQuerySpec` and an :class:`ExecutionConfig` to a
:class:`QuerySource`:

1. projection and relation joins;
2. the static ``where`` and the parsed filter predicates;
3. a count of every matching row;
4. the explicit row limit (caps both the count and the query);
5. ordering restricted to the sortable fields;
6. offset and a page size shrunk so the last page never reads past the end;
7. fetch and row mapping in fetch order.

Count and fetch are two separate reads; under concurrent writes they may
disagree.  Errors raised by the source propagate unchanged.
"""
from __future__ import annotations

import asyncio
import dataclasses
import inspect
from typing import Any, Generic, TypeVar

from pageable.application.pagination.config import ExecutionConfig, RowMapper
from pageable.application.pagination.page import ResponseAssembler, ResponseEnvelope
from pageable.application.pagination.sort import translate_sort
from pageable.application.pagination.source import QuerySource
from pageable.application.pagination.spec import CanonicalQuerySpec
from pageable.observability.logging import get_logger

logger = get_logger(__name__)

TRow = TypeVar("TRow")


@dataclasses.dataclass(frozen=True)
class ExecutionResult(Generic[TRow]):
    """Mapped rows, the (limit-capped) total and the spec as actually applied."""

    rows: list[Any]
    total_items: int
    spec: CanonicalQuerySpec


class QueryExecutor(Generic[TRow]):
    """Run a list query against one data source.

    The executor never mutates the spec it is given; the spec in the result
    carries the applied ``sort_by`` and, for unpaged results, the recomputed
    paging fields.
    """

    def __init__(
        self,
        source: QuerySource[TRow],
        config: ExecutionConfig | None = None,
        assembler: ResponseAssembler | None = None,
    ) -> None:
        self._source = source
        self._config = config or ExecutionConfig()
        self._assembler = assembler or ResponseAssembler()

    async def execute(self, spec: CanonicalQuerySpec) -> ExecutionResult[TRow]:
        config = self._config
        query = self._source.clone()

        if config.alias is not None:
            query.alias(config.alias)
        query.select(config.select)
        for relation in config.relations:
            query.join(relation, relation.resolved_alias)

        if config.where is not None:
            query.where(config.where)
        for field, predicates in spec.filter.items():
            query.where_field(field, predicates)

        total_items = await query.count()
        query = query.clone()
        logger.debug("pagination_count", total_items=total_items, backend=query.backend.value)

        limit = spec.limit if config.enable.size else None
        if limit is not None:
            query.limit(limit)
            total_items = min(total_items, limit)

        sort_by = [
            clause
            for clause in spec.sort_by
            if config.sortable is None or clause.property in config.sortable
        ] if config.enable.sort else []
        if sort_by:
            query.order_by(translate_sort(sort_by, query.backend))

        unpaged = spec.unpaged and config.enable.unpaged
        if not unpaged:
            shortfall = spec.offset + spec.items_per_page - total_items
            size = max(0, spec.items_per_page - max(shortfall, 0))
            query.offset(spec.offset)
            query.limit(size)
            applied = dataclasses.replace(spec, sort_by=sort_by, unpaged=False)
            logger.debug("pagination_fetch", offset=spec.offset, size=size)
        else:
            applied = dataclasses.replace(
                spec,
                sort_by=sort_by,
                current_page=1,
                offset=0,
                items_per_page=total_items,
            )
            logger.debug("pagination_fetch", offset=0, size=None, unpaged=True)

        rows = await query.fetch()
        return ExecutionResult(rows=await self._map(rows), total_items=total_items, spec=applied)

    async def paginate(self, spec: CanonicalQuerySpec) -> ResponseEnvelope[Any]:
        """Execute *spec* and assemble the response envelope."""
        result = await self.execute(spec)
        return self._assembler.assemble(result.rows, result.total_items, result.spec)

    async def _map(self, rows: list[TRow]) -> list[Any]:
        mapper = self._config.mapper
        if mapper is None:
            return list(rows)
        tasks = [asyncio.ensure_future(_apply(mapper, row)) for row in rows]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # one row failed: stop the rest before the error leaves the executor
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


async def _apply(mapper: RowMapper, row: Any) -> Any:
    result = mapper(row)
    if inspect.isawaitable(result):
        return await result
    return result


async def paginate(
    spec: CanonicalQuerySpec,
    source: QuerySource[Any],
    config: ExecutionConfig | None = None,
) -> ResponseEnvelope[Any]:
    """Shorthand for ``QueryExecutor(source, config).paginate(spec)``."""
    return await QueryExecutor(source, config).paginate(spec)


__all__ = ["ExecutionResult", "QueryExecutor", "paginate"]
