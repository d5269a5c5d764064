"""Application pagination – filter operators and the ``filter[field]`` parser.

A raw filter value is ``<operator><separator><operand>`` or a bare operand::

    filter[id]=4                 -> id $eq 4
    filter[id]=$gte:2            -> id $gte 2
    filter[id]=$lte:4&filter[id]=$gte:2   -> both, ANDed
    filter[tag]=$in:a,b,c        -> tag $in [a, b, c]

The separator is configurable per request so operands such as ISO datetimes
can contain ``:``.
"""
from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pageable.application.pagination.coercion import as_list
from pageable.config.pagination import DEFAULT_OPERAND_SEPARATOR
from pageable.observability.logging import get_logger

logger = get_logger(__name__)

FilterClause = dict[str, list["FilterPredicate"]]

_FILTER_KEY_RE = re.compile(r"^filter\[(.+)\]$")


class FilterOperator(str, Enum):
    """Closed operator set shared by the parser and every data source."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    LIKE = "$like"
    ILIKE = "$ilike"
    CONTAINS = "$contains"
    NULL = "$null"
    NOT_NULL = "$notnull"
    BETWEEN = "$btw"

    @property
    def takes_list(self) -> bool:
        return self in (FilterOperator.IN, FilterOperator.NIN, FilterOperator.BETWEEN)

    @property
    def takes_operand(self) -> bool:
        return self not in (FilterOperator.NULL, FilterOperator.NOT_NULL)

    @classmethod
    def from_token(cls, token: str) -> FilterOperator | None:
        try:
            return cls(token.lower())
        except ValueError:
            return None


LIST_SEPARATOR = ","


@dataclasses.dataclass(frozen=True)
class FilterPredicate:
    """One ``operator operand`` pair; all predicates of a field are ANDed."""

    operator: FilterOperator
    operand: str

    @property
    def values(self) -> list[str]:
        """The operand split into items for list operators."""
        if not self.operator.takes_list:
            return [self.operand]
        return self.operand.split(LIST_SEPARATOR)

    def to_dict(self) -> dict[str, str]:
        return {"operator": self.operator.value, "operand": self.operand}


def parse_filter_value(raw: str, separator: str = DEFAULT_OPERAND_SEPARATOR) -> FilterPredicate:
    """Split *raw* once on *separator*; an unknown prefix means ``$eq``."""
    head, sep, tail = raw.partition(separator)
    if sep:
        operator = FilterOperator.from_token(head)
        if operator is not None:
            return FilterPredicate(operator, tail)
    return FilterPredicate(FilterOperator.EQ, raw)


def parse_filter(raw_filter: Any, separator: str = DEFAULT_OPERAND_SEPARATOR) -> FilterClause:
    """Parse a ``{field: value | [values]}`` mapping into a :data:`FilterClause`."""
    clause: FilterClause = {}
    if not isinstance(raw_filter, Mapping):
        return clause
    for field, raw_values in raw_filter.items():
        if not isinstance(field, str) or not field:
            continue
        predicates = [
            parse_filter_value(raw, separator)
            for raw in as_list(raw_values)
            if isinstance(raw, str)
        ]
        if predicates:
            clause[field] = predicates
        else:
            logger.debug("filter_field_ignored", field=field)
    return clause


def extract_filter_params(raw_query: Mapping[str, Any]) -> dict[str, Any]:
    """Collect the filter mapping from a raw query.

    Accepts both a pre-nested ``{"filter": {field: ...}}`` mapping (as
    produced by extended query-string parsers) and flat ``filter[field]``
    keys.  Values for the same field are concatenated.
    """
    collected: dict[str, list[Any]] = {}
    nested = raw_query.get("filter")
    if isinstance(nested, Mapping):
        for field, value in nested.items():
            collected.setdefault(field, []).extend(as_list(value))
    for key, value in raw_query.items():
        match = _FILTER_KEY_RE.match(key)
        if match:
            collected.setdefault(match.group(1), []).extend(as_list(value))
    return collected


def filter_to_dict(clause: FilterClause) -> dict[str, list[dict[str, str]]]:
    return {field: [p.to_dict() for p in predicates] for field, predicates in clause.items()}


__all__ = [
    "FilterClause",
    "FilterOperator",
    "FilterPredicate",
    "LIST_SEPARATOR",
    "extract_filter_params",
    "filter_to_dict",
    "parse_filter",
    "parse_filter_value",
]
