"""Application pagination – sort clauses and the ``sortBy`` mini-language.

A ``sortBy`` token is a ``;``-separated list of ``key[value]`` segments::

    property[createdAt];direction[desc];nulls-first[true];

``property`` is required and may hold anything except ``[``, ``]`` and ``;``.
``direction`` defaults to ``asc``.  ``nulls-first`` is optional; when absent
the backend's default null placement applies.
"""
from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any

from pageable.application.pagination.coercion import as_list, coerce_bool, coerce_enum
from pageable.application.pagination.source import BackendKind, NullsPlacement, OrderInstruction
from pageable.observability.logging import get_logger

logger = get_logger(__name__)

_SEGMENT_RE = re.compile(r"^\s*([A-Za-z][A-Za-z-]*)\[([^\[\];]*)\]\s*$")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclasses.dataclass(frozen=True)
class SortClause:
    """Single sort key; position in the owning list is its precedence."""

    property: str
    direction: SortDirection = SortDirection.ASC
    nulls_first: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"property": self.property, "direction": self.direction.value}
        if self.nulls_first is not None:
            payload["nullsFirst"] = self.nulls_first
        return payload

    def to_token(self) -> str:
        token = f"property[{self.property}];direction[{self.direction.value}];"
        if self.nulls_first is not None:
            token += f"nulls-first[{'true' if self.nulls_first else 'false'}];"
        return token


def parse_sort_token(token: Any) -> SortClause | None:
    """Parse one ``sortBy`` token, or return ``None`` when it is malformed."""
    if not isinstance(token, str):
        return None
    segments: dict[str, str] = {}
    for raw in token.split(";"):
        if not raw.strip():
            continue
        match = _SEGMENT_RE.match(raw)
        if match is None:
            return None
        segments.setdefault(match.group(1).lower(), match.group(2))

    prop = segments.get("property")
    if not prop:
        return None

    direction = SortDirection.ASC
    if "direction" in segments:
        parsed = coerce_enum(segments["direction"], SortDirection)
        if parsed is None:
            return None
        direction = parsed

    nulls_first = coerce_bool(segments["nulls-first"]) if "nulls-first" in segments else None
    return SortClause(property=prop, direction=direction, nulls_first=nulls_first)


def parse_sort(tokens: Any) -> list[SortClause]:
    """Parse one token or a sequence of them, dropping malformed tokens individually."""
    clauses: list[SortClause] = []
    for token in as_list(tokens):
        clause = parse_sort_token(token)
        if clause is None:
            logger.debug("sort_token_ignored", token=token)
            continue
        clauses.append(clause)
    return clauses


def coerce_sort_clause(value: Any) -> SortClause | None:
    """Validate a caller-supplied default: a clause, a mapping or a token."""
    if isinstance(value, SortClause):
        if not isinstance(value.property, str) or not value.property:
            return None
        direction = coerce_enum(value.direction, SortDirection)
        if direction is None:
            return None
        nulls_first = value.nulls_first if isinstance(value.nulls_first, bool) else None
        return SortClause(value.property, direction, nulls_first)
    if isinstance(value, Mapping):
        prop = value.get("property")
        if not isinstance(prop, str) or not prop:
            return None
        direction = coerce_enum(value.get("direction", SortDirection.ASC), SortDirection)
        if direction is None:
            return None
        nulls_raw = value.get("nullsFirst", value.get("nulls_first"))
        return SortClause(prop, direction, coerce_bool(nulls_raw))
    return parse_sort_token(value)


def coerce_sort(values: Any) -> list[SortClause] | None:
    """Validate a whole default sort sequence; ``None`` when it is not a sequence."""
    if isinstance(values, (str, SortClause, Mapping)):
        values = [values]
    if not isinstance(values, Sequence):
        return None
    clauses = []
    for value in values:
        clause = coerce_sort_clause(value)
        if clause is not None:
            clauses.append(clause)
    return clauses


def serialize_sort(clauses: Iterable[SortClause]) -> list[str]:
    """Render *clauses* as ``sortBy`` tokens that :func:`parse_sort` reads back."""
    return [clause.to_token() for clause in clauses]


def translate_sort(clauses: Iterable[SortClause], backend: BackendKind) -> list[OrderInstruction]:
    """Translate sort clauses into ordering instructions for *backend*."""
    instructions: list[OrderInstruction] = []
    for clause in clauses:
        descending = clause.direction is SortDirection.DESC
        if clause.nulls_first is None:
            instructions.append(OrderInstruction(clause.property, descending))
            continue
        nulls = NullsPlacement.FIRST if clause.nulls_first else NullsPlacement.LAST
        if backend.supports_nulls_ordering:
            instructions.append(OrderInstruction(clause.property, descending, nulls))
        else:
            # IS NULL sorts true (1) after false (0): descending puts nulls first
            instructions.append(OrderInstruction(clause.property, clause.nulls_first, is_null_key=True))
            instructions.append(OrderInstruction(clause.property, descending))
    return instructions


__all__ = [
    "SortClause",
    "SortDirection",
    "coerce_sort",
    "coerce_sort_clause",
    "parse_sort",
    "parse_sort_token",
    "serialize_sort",
    "translate_sort",
]
