"""SQLAlchemy adapter – SqlAlchemyQuerySource.

Builds an async SQLAlchemy 2.x ``Select`` from list-query instructions.  The
source keeps its instructions as state and renders a fresh statement for
every :meth:`count` / :meth:`fetch`, so :meth:`clone` is a cheap copy.

Fields are addressed as ``attr`` on the root entity or ``alias.attr`` on
the root alias or a joined relation alias.

When relations are joined, entity pages are windowed over root identities
rather than joined rows: a first query selects one page of primary keys and
a second loads those entities with their joins and eager loaders.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, TypeVar

from sqlalchemy import case, func, inspect, select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import QueryableAttribute, RelationshipProperty, aliased, contains_eager
from sqlalchemy.sql import ColumnElement, Select

from pageable.application.pagination.coercion import coerce_bool
from pageable.application.pagination.config import JoinType, RelationSpec
from pageable.application.pagination.filter import FilterOperator, FilterPredicate
from pageable.application.pagination.source import BackendKind, NullsPlacement, OrderInstruction
from pageable.kernel.errors import ConfigError, InvalidOperandError, UnknownFieldError

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class _Join:
    onclause: Any
    isouter: bool
    loader: Any | None


class SqlAlchemyQuerySource(Generic[T]):
    """:class:`~pageable.application.pagination.QuerySource` over a mapped model.

    Parameters
    ----------
    session:
        An open :class:`~sqlalchemy.ext.asyncio.AsyncSession`.
    model:
        The mapped root entity.
    backend:
        The database the session talks to; it decides how explicit null
        placement is rendered.

    Example::

        source = SqlAlchemyQuerySource(session, Article, backend=BackendKind.POSTGRESQL)
        page = await QueryExecutor(source, ExecutionConfig(sortable={"id"})).paginate(spec)
    """

    def __init__(self, session: AsyncSession, model: type[T], *, backend: BackendKind) -> None:
        self._session = session
        self._model = model
        self.backend = backend
        self._root: Any = model
        self._entities: dict[str, Any] = {}
        self._loaders: dict[str, Any] = {}
        self._columns: tuple[str, ...] | None = None
        self._joins: list[_Join] = []
        self._clauses: list[Any] = []
        self._order: list[OrderInstruction] = []
        self._limit: int | None = None
        self._offset = 0

    # Builder ------------------------------------------------------------
    def alias(self, alias: str) -> None:
        if self._joins or self._clauses:
            raise ConfigError("The root alias must be set before joins and filters")
        self._root = aliased(self._model, name=alias)
        self._entities[alias] = self._root

    def select(self, columns: Sequence[str] | None) -> None:
        # resolved when a statement is rendered, after the joins are known
        self._columns = tuple(columns) if columns is not None else None

    def join(self, relation: RelationSpec, alias: str) -> None:
        parent_key = relation.parent
        if parent_key is None:
            parent = self._root
        elif parent_key in self._entities:
            parent = self._entities[parent_key]
        else:
            raise UnknownFieldError(relation.property, f"Relation parent '{parent_key}' has not been joined")

        attr = getattr(parent, relation.attribute, None)
        if not isinstance(attr, QueryableAttribute) or not isinstance(attr.property, RelationshipProperty):
            raise UnknownFieldError(relation.property, f"Unknown relation '{relation.property}'")

        target = aliased(attr.property.mapper.class_, name=alias)
        onclause = attr.of_type(target)
        if relation.condition is not None:
            condition = relation.condition(target) if callable(relation.condition) else relation.condition
            onclause = onclause.and_(condition)

        loader = None
        if relation.fetch:
            if parent_key is None:
                loader = contains_eager(attr.of_type(target))
            elif parent_key in self._loaders:
                loader = self._loaders[parent_key].contains_eager(attr.of_type(target))
            else:
                raise ConfigError(f"Eager fetch of '{relation.property}' requires fetching '{parent_key}'")
            self._loaders[alias] = loader

        self._entities[alias] = target
        self._joins.append(_Join(onclause, relation.join_type is JoinType.LEFT, loader))

    def where(self, predicate: Any) -> None:
        self._clauses.append(predicate(self._root) if callable(predicate) else predicate)

    def where_field(self, field: str, predicates: Sequence[FilterPredicate]) -> None:
        column = self._column(field)
        for predicate in predicates:
            self._clauses.append(self._compile(field, column, predicate))

    def order_by(self, instructions: Sequence[OrderInstruction]) -> None:
        for instruction in instructions:
            self._column(instruction.field)
        self._order = list(instructions)

    def limit(self, limit: int | None) -> None:
        self._limit = limit

    def offset(self, offset: int) -> None:
        self._offset = offset

    def clone(self) -> SqlAlchemyQuerySource[T]:
        other: SqlAlchemyQuerySource[T] = SqlAlchemyQuerySource(self._session, self._model, backend=self.backend)
        other._root = self._root
        other._entities = dict(self._entities)
        other._loaders = dict(self._loaders)
        other._columns = self._columns
        other._joins = list(self._joins)
        other._clauses = list(self._clauses)
        other._order = list(self._order)
        other._limit = self._limit
        other._offset = self._offset
        return other

    # Execution ----------------------------------------------------------
    async def count(self) -> int:
        if self._columns is None:
            # joins may repeat a root row; count distinct identities
            base = self._statement(self._primary_key())
            stmt = select(func.count()).select_from(base.distinct().subquery())
        else:
            stmt = select(func.count()).select_from(self._statement().subquery())
        return int(await self._session.scalar(stmt) or 0)

    async def fetch(self) -> list[Any]:
        if self._columns is None and self._joins:
            return await self._fetch_by_identity()
        stmt = self._window(self._statement().order_by(*self._order_expressions()))
        result = await self._session.execute(stmt)
        if self._columns is not None:
            return [dict(row._mapping) for row in result]
        return list(result.scalars().all())

    async def _fetch_by_identity(self) -> list[Any]:
        pk = self._primary_key()
        page = self._statement(pk).group_by(*pk).order_by(*self._order_expressions(aggregate=True))
        identities = [tuple(row) for row in (await self._session.execute(self._window(page))).all()]
        if not identities:
            return []

        if len(pk) == 1:
            in_page = pk[0].in_([identity[0] for identity in identities])
        else:
            in_page = tuple_(*pk).in_(identities)
        stmt = self._statement().where(in_page)
        loaders = [join.loader for join in self._joins if join.loader is not None]
        if loaders:
            stmt = stmt.options(*loaders)
        entities = (await self._session.execute(stmt)).scalars().unique().all()
        position = {identity: index for index, identity in enumerate(identities)}
        return sorted(entities, key=lambda entity: position[inspect(entity).identity])

    # Internals ----------------------------------------------------------
    def _statement(self, columns: Sequence[Any] | None = None) -> Select[Any]:
        if columns is not None:
            stmt = select(*columns)
        elif self._columns is not None:
            stmt = select(*(self._column(name).label(name) for name in self._columns))
        else:
            stmt = select(self._root)
        stmt = stmt.select_from(self._root)
        for join in self._joins:
            stmt = stmt.join(join.onclause, isouter=join.isouter)
        if self._clauses:
            stmt = stmt.where(*self._clauses)
        return stmt

    def _primary_key(self) -> list[Any]:
        mapper = inspect(self._model)
        return [getattr(self._root, mapper.get_property_by_column(column).key) for column in mapper.primary_key]

    def _column(self, field: str) -> Any:
        head, sep, tail = field.partition(".")
        entity, name = (self._entities[head], tail) if sep and head in self._entities else (self._root, field)
        attr = getattr(entity, name, None) if not name.startswith("_") else None
        if not isinstance(attr, (QueryableAttribute, ColumnElement)) or _is_relationship(attr):
            raise UnknownFieldError(field)
        return attr

    def _window(self, stmt: Select[Any]) -> Select[Any]:
        if self._offset:
            stmt = stmt.offset(self._offset)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def _order_expressions(self, aggregate: bool = False) -> list[Any]:
        """Render the ordering; *aggregate* orders grouped root rows by min/max of each key."""
        expressions = []
        for instruction in self._order:
            column = self._column(instruction.field)
            key = case((column.is_(None), 1), else_=0) if instruction.is_null_key else column
            if aggregate:
                key = func.max(key) if instruction.descending else func.min(key)
            expression = key.desc() if instruction.descending else key.asc()
            if not instruction.is_null_key:
                if instruction.nulls is NullsPlacement.FIRST:
                    expression = expression.nulls_first()
                elif instruction.nulls is NullsPlacement.LAST:
                    expression = expression.nulls_last()
            expressions.append(expression)
        return expressions

    def _compile(self, field: str, column: Any, predicate: FilterPredicate) -> Any:
        op = predicate.operator
        if op is FilterOperator.NULL:
            return column.is_(None)
        if op is FilterOperator.NOT_NULL:
            return column.is_not(None)
        if op is FilterOperator.LIKE:
            return column.like(predicate.operand)
        if op is FilterOperator.ILIKE:
            return column.ilike(predicate.operand)
        if op is FilterOperator.CONTAINS:
            return column.contains(predicate.operand, autoescape=True)

        values = [_coerce_operand(field, column, item) for item in predicate.values]
        match op:
            case FilterOperator.EQ:  return column == values[0]
            case FilterOperator.NE:  return column != values[0]
            case FilterOperator.GT:  return column > values[0]
            case FilterOperator.GTE: return column >= values[0]
            case FilterOperator.LT:  return column < values[0]
            case FilterOperator.LTE: return column <= values[0]
            case FilterOperator.IN:  return column.in_(values)
            case FilterOperator.NIN: return column.not_in(values)
            case FilterOperator.BETWEEN:
                if len(values) != 2:
                    raise InvalidOperandError(field, predicate.operand)
                return column.between(values[0], values[1])
        raise InvalidOperandError(field, predicate.operand)


def _is_relationship(attr: Any) -> bool:
    try:
        return isinstance(attr.property, RelationshipProperty)
    except AttributeError:
        return False


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    int: int,
    float: float,
    Decimal: Decimal,
    datetime: lambda raw: datetime.fromisoformat(raw.replace("Z", "+00:00")),
    date: date.fromisoformat,
}


def _coerce_operand(field: str, column: Any, raw: str) -> Any:
    """Convert *raw* to the column's Python type when it has one."""
    try:
        python_type = getattr(column, "expression", column).type.python_type
    except (AttributeError, NotImplementedError):
        return raw
    try:
        if python_type is bool:
            parsed = coerce_bool(raw)
            if parsed is None:
                raise ValueError(raw)
            return parsed
        converter = _CONVERTERS.get(python_type)
        return converter(raw) if converter is not None else raw
    except (ValueError, InvalidOperation) as exc:
        raise InvalidOperandError(field, raw, cause=exc) from exc


__all__ = ["SqlAlchemyQuerySource"]
