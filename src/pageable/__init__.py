"""
pageable – list-query parsing and paginated execution.

Import path convention::

    from pageable.application.pagination import build_query_spec, QueryExecutor
    from pageable.adapters.sqlalchemy import SqlAlchemyQuerySource
    from pageable.adapters.fastapi import Paginate
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
