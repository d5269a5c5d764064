"""Application pagination – list-query parsing, execution and response assembly."""
from pageable.application.pagination.builder import QuerySpecBuilder, build_query_spec, options_from_mapping
from pageable.application.pagination.coercion import MAX_SAFE_INTEGER, coerce_bool, coerce_int
from pageable.application.pagination.config import ExecutionConfig, JoinType, PagingOverrides, RelationSpec
from pageable.application.pagination.executor import ExecutionResult, QueryExecutor, paginate
from pageable.application.pagination.filter import FilterClause, FilterOperator, FilterPredicate, parse_filter
from pageable.application.pagination.page import PageLinks, PageMeta, ResponseAssembler, ResponseEnvelope
from pageable.application.pagination.sort import (
    SortClause,
    SortDirection,
    parse_sort,
    serialize_sort,
    translate_sort,
)
from pageable.application.pagination.source import BackendKind, NullsPlacement, OrderInstruction, QuerySource
from pageable.application.pagination.spec import CanonicalQuerySpec, PaginateOptions

__all__ = [
    "BackendKind",
    "CanonicalQuerySpec",
    "ExecutionConfig",
    "ExecutionResult",
    "FilterClause",
    "FilterOperator",
    "FilterPredicate",
    "JoinType",
    "MAX_SAFE_INTEGER",
    "NullsPlacement",
    "OrderInstruction",
    "PageLinks",
    "PageMeta",
    "PaginateOptions",
    "PagingOverrides",
    "QueryExecutor",
    "QuerySource",
    "QuerySpecBuilder",
    "RelationSpec",
    "ResponseAssembler",
    "ResponseEnvelope",
    "SortClause",
    "SortDirection",
    "build_query_spec",
    "coerce_bool",
    "coerce_int",
    "options_from_mapping",
    "paginate",
    "parse_filter",
    "parse_sort",
    "serialize_sort",
    "translate_sort",
]
