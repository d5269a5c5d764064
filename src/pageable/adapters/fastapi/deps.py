"""FastAPI adapter – request extraction and the ``Paginate`` dependency.

Usage::

    @app.get("/articles")
    async def list_articles(
        spec: CanonicalQuerySpec = Depends(Paginate(max_size=50, enable_unpaged=True)),
        session: AsyncSession = Depends(get_session),
    ) -> dict[str, Any]:
        source = SqlAlchemyQuerySource(session, Article, backend=BackendKind.POSTGRESQL)
        page = await QueryExecutor(source, ExecutionConfig(sortable={"id", "title"})).paginate(spec)
        return page.to_dict()
"""
# No ``from __future__ import annotations`` here: FastAPI reads the
# dependency's ``Request`` annotation at runtime.
from typing import Annotated, Any, Callable

from fastapi import Depends, Request

from pageable.application.pagination.builder import QuerySpecBuilder
from pageable.application.pagination.spec import CanonicalQuerySpec, PaginateOptions
from pageable.config.pagination import PaginationSettings


def raw_query_from_request(request: Request) -> dict[str, list[str]]:
    """Group the request's query parameters by key, keeping repeated keys in order."""
    raw: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        raw.setdefault(key, []).append(value)
    return raw


def Paginate(  # noqa: N802
    defaults: PaginateOptions | dict[str, Any] | None = None,
    *,
    settings: PaginationSettings | None = None,
    **options: Any,
) -> Callable[[Request], CanonicalQuerySpec]:
    """Return a dependency that builds a :class:`CanonicalQuerySpec` per request.

    Parameters
    ----------
    defaults:
        A :class:`PaginateOptions` or mapping of per-endpoint defaults.
    settings:
        Library defaults; the module default settings when omitted.
    **options:
        Shorthand for ``defaults`` given as keyword arguments
        (``max_size=5``, ``enable_sort=False``, ...).
    """
    if defaults is None:
        defaults = dict(options)
    elif options:
        raise TypeError("Pass either 'defaults' or keyword options, not both")
    builder = QuerySpecBuilder(defaults, settings)

    def paginate_dependency(request: Request) -> CanonicalQuerySpec:
        return builder.build(raw_query_from_request(request), str(request.url))

    return paginate_dependency


PaginateDep = Annotated[CanonicalQuerySpec, Depends(Paginate())]


__all__ = ["Paginate", "PaginateDep", "raw_query_from_request"]
