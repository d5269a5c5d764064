"""In-memory adapter – InMemoryQuerySource.

Evaluates list-query instructions against a list of dicts or objects.
Dotted paths walk nested values (``author.name``).  A relation join is a
path into each row: an inner join drops rows whose related value is missing
(``None`` or an empty collection); rows are never multiplied.
"""
from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, TypeVar

from pageable.application.pagination.coercion import coerce_bool
from pageable.application.pagination.config import JoinType, RelationSpec
from pageable.application.pagination.filter import FilterOperator, FilterPredicate
from pageable.application.pagination.source import BackendKind, NullsPlacement, OrderInstruction
from pageable.kernel.errors import InvalidOperandError, UnknownFieldError

T = TypeVar("T")

Predicate = Callable[[Any], bool]


@dataclasses.dataclass
class _Join:
    path: str
    join_type: JoinType
    condition: Predicate | None


class InMemoryQuerySource(Generic[T]):
    """:class:`~pageable.application.pagination.QuerySource` over a Python list.

    Example::

        source = InMemoryQuerySource(rows)
        page = await QueryExecutor(source).paginate(spec)
    """

    backend = BackendKind.MEMORY

    def __init__(self, items: Sequence[T]) -> None:
        self._items = items
        self._root_alias: str | None = None
        self._columns: tuple[str, ...] | None = None
        self._aliases: dict[str, str] = {}
        self._joins: list[_Join] = []
        self._predicates: list[Predicate] = []
        self._order: list[OrderInstruction] = []
        self._limit: int | None = None
        self._offset = 0

    # Builder ------------------------------------------------------------
    def alias(self, alias: str) -> None:
        self._root_alias = alias

    def select(self, columns: Sequence[str] | None) -> None:
        self._columns = tuple(columns) if columns is not None else None

    def join(self, relation: RelationSpec, alias: str) -> None:
        path = self._path(relation.property)
        self._aliases[alias] = path
        self._joins.append(_Join(path, relation.join_type, relation.condition))

    def where(self, predicate: Any) -> None:
        if not callable(predicate):
            raise TypeError("InMemoryQuerySource.where expects a callable(row) -> bool")
        self._predicates.append(predicate)

    def where_field(self, field: str, predicates: Sequence[FilterPredicate]) -> None:
        path = self._path(field)
        for predicate in predicates:
            self._predicates.append(self._compile(field, path, predicate))

    def order_by(self, instructions: Sequence[OrderInstruction]) -> None:
        self._order = list(instructions)

    def limit(self, limit: int | None) -> None:
        self._limit = limit

    def offset(self, offset: int) -> None:
        self._offset = offset

    def clone(self) -> InMemoryQuerySource[T]:
        other: InMemoryQuerySource[T] = InMemoryQuerySource(self._items)
        other._root_alias = self._root_alias
        other._columns = self._columns
        other._aliases = dict(self._aliases)
        other._joins = list(self._joins)
        other._predicates = list(self._predicates)
        other._order = list(self._order)
        other._limit = self._limit
        other._offset = self._offset
        return other

    # Execution ----------------------------------------------------------
    async def count(self) -> int:
        return len(self._matching())

    async def fetch(self) -> list[Any]:
        rows = self._sorted(self._matching())
        end = None if self._limit is None else self._offset + self._limit
        rows = rows[self._offset:end]
        if self._columns is None:
            return rows
        return [{column: self._value(row, self._path(column)) for column in self._columns} for row in rows]

    # Internals ----------------------------------------------------------
    def _matching(self) -> list[T]:
        result = []
        for row in self._items:
            if not all(self._joined(row, join) for join in self._joins):
                continue
            if all(predicate(row) for predicate in self._predicates):
                result.append(row)
        return result

    def _joined(self, row: Any, join: _Join) -> bool:
        if join.join_type is JoinType.LEFT:
            return True
        related = self._value(row, join.path)
        if related is None or (isinstance(related, (list, tuple)) and not related):
            return False
        if join.condition is None:
            return True
        if isinstance(related, (list, tuple)):
            # to-many: the row joins when any related element satisfies the condition
            return any(join.condition(item) for item in related)
        return bool(join.condition(related))

    def _sorted(self, rows: list[T]) -> list[T]:
        # stable sorts applied from the least to the most significant key
        for instruction in reversed(self._order):
            path = self._path(instruction.field)
            if instruction.is_null_key:
                rows = sorted(rows, key=lambda r: self._value(r, path) is None, reverse=instruction.descending)
                continue
            present = [r for r in rows if self._value(r, path) is not None]
            missing = [r for r in rows if self._value(r, path) is None]
            present.sort(key=lambda r: self._value(r, path), reverse=instruction.descending)
            nulls = instruction.nulls
            if nulls is None:
                # nulls compare lowest: first ascending, last descending
                nulls = NullsPlacement.LAST if instruction.descending else NullsPlacement.FIRST
            rows = missing + present if nulls is NullsPlacement.FIRST else present + missing
        return rows

    def _path(self, field: str) -> str:
        head, sep, tail = field.partition(".")
        if sep and head == self._root_alias:
            return tail
        if sep and head in self._aliases:
            return f"{self._aliases[head]}.{tail}"
        return field

    def _value(self, row: Any, path: str) -> Any:
        current = row
        for part in path.split("."):
            if current is None:
                return None
            if isinstance(current, Mapping):
                if part not in current:
                    raise UnknownFieldError(path)
                current = current[part]
            elif hasattr(current, part):
                current = getattr(current, part)
            else:
                raise UnknownFieldError(path)
        return current

    def _compile(self, field: str, path: str, predicate: FilterPredicate) -> Predicate:
        op = predicate.operator
        if op is FilterOperator.NULL:
            return lambda row: self._value(row, path) is None
        if op is FilterOperator.NOT_NULL:
            return lambda row: self._value(row, path) is not None
        if op in (FilterOperator.LIKE, FilterOperator.ILIKE):
            flags = re.IGNORECASE if op is FilterOperator.ILIKE else 0
            pattern = re.compile(_like_to_regex(predicate.operand), flags | re.DOTALL)
            return lambda row: _is_str(v := self._value(row, path)) and pattern.fullmatch(v) is not None
        if op is FilterOperator.CONTAINS:
            return lambda row: _is_str(v := self._value(row, path)) and predicate.operand in v
        if op is FilterOperator.BETWEEN and len(predicate.values) != 2:
            raise InvalidOperandError(field, predicate.operand)

        def matches(row: Any) -> bool:
            value = self._value(row, path)
            if value is None:
                return False
            operands = [_coerce_operand(field, value, item) for item in predicate.values]
            match op:
                case FilterOperator.EQ:  return value == operands[0]
                case FilterOperator.NE:  return value != operands[0]
                case FilterOperator.GT:  return value > operands[0]
                case FilterOperator.GTE: return value >= operands[0]
                case FilterOperator.LT:  return value < operands[0]
                case FilterOperator.LTE: return value <= operands[0]
                case FilterOperator.IN:  return value in operands
                case FilterOperator.NIN: return value not in operands
                case FilterOperator.BETWEEN: return operands[0] <= value <= operands[1]
            return False

        return matches


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _like_to_regex(pattern: str) -> str:
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def _coerce_operand(field: str, sample: Any, operand: str) -> Any:
    """Convert *operand* to the type of the stored *sample* value."""
    try:
        if isinstance(sample, bool):
            parsed = coerce_bool(operand)
            if parsed is None:
                raise ValueError(operand)
            return parsed
        if isinstance(sample, int):
            return int(operand)
        if isinstance(sample, float):
            return float(operand)
        if isinstance(sample, Decimal):
            return Decimal(operand)
        if isinstance(sample, datetime):
            return datetime.fromisoformat(operand.replace("Z", "+00:00"))
        if isinstance(sample, date):
            return date.fromisoformat(operand)
    except (ValueError, InvalidOperation) as exc:
        raise InvalidOperandError(field, operand, cause=exc) from exc
    return operand


__all__ = ["InMemoryQuerySource"]
