"""Application pagination – ExecutionConfig and RelationSpec.

Both are frozen; the ``with_*`` helpers return modified copies::

    config = (
        ExecutionConfig(sortable=frozenset({"id", "title"}))
        .with_relations(RelationSpec("author", join_type=JoinType.LEFT, fetch=True))
        .with_mapper(to_dto)
    )
"""
from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from pageable.kernel.errors import ConfigError

RowMapper = Callable[[Any], Any | Awaitable[Any]]


class JoinType(str, Enum):
    INNER = "inner"
    LEFT = "left"


@dataclasses.dataclass(frozen=True)
class RelationSpec:
    """A relation to join, addressed by its property path (``"author"``, ``"author.company"``).

    ``condition`` narrows an inner join. In memory it is called with each
    related element. On SQLAlchemy it is a SQL expression, or a callable taking
    the aliased target, added to the ON clause.
    """

    property: str
    join_type: JoinType = JoinType.INNER
    alias: str | None = None
    condition: Any = None
    fetch: bool = False

    def __post_init__(self) -> None:
        if not self.property:
            raise ConfigError("RelationSpec.property must not be empty")
        if not isinstance(self.join_type, JoinType):
            try:
                object.__setattr__(self, "join_type", JoinType(self.join_type))
            except ValueError as exc:
                raise ConfigError(f"Unknown join type {self.join_type!r}", cause=exc) from exc

    @property
    def resolved_alias(self) -> str:
        """The explicit alias, or the last segment of the property path."""
        return self.alias or self.property.rsplit(".", 1)[-1]

    @property
    def parent(self) -> str | None:
        """The alias or path the relation hangs off, ``None`` for the root entity."""
        head, sep, _ = self.property.rpartition(".")
        return head if sep else None

    @property
    def attribute(self) -> str:
        return self.property.rsplit(".", 1)[-1]


@dataclasses.dataclass(frozen=True)
class PagingOverrides:
    """Endpoint switches applied at execution time.

    ``size`` off ignores an explicit row limit, ``sort`` off ignores the
    requested ordering and ``unpaged`` off forces paged results.
    """

    size: bool = True
    sort: bool = True
    unpaged: bool = True


@dataclasses.dataclass(frozen=True)
class ExecutionConfig:
    """Operator-supplied, per-endpoint execution settings."""

    select: tuple[str, ...] | None = None
    sortable: frozenset[str] | None = None
    relations: tuple[RelationSpec, ...] = ()
    where: Any = None
    alias: str | None = None
    mapper: RowMapper | None = None
    enable: PagingOverrides = dataclasses.field(default_factory=PagingOverrides)

    def __post_init__(self) -> None:
        if self.select is not None and not isinstance(self.select, tuple):
            object.__setattr__(self, "select", tuple(self.select))
        if self.sortable is not None and not isinstance(self.sortable, frozenset):
            object.__setattr__(self, "sortable", frozenset(self.sortable))
        if isinstance(self.relations, RelationSpec):
            object.__setattr__(self, "relations", (self.relations,))
        elif not isinstance(self.relations, tuple):
            object.__setattr__(self, "relations", tuple(self.relations))

    def with_select(self, columns: Sequence[str] | None) -> ExecutionConfig:
        return dataclasses.replace(self, select=tuple(columns) if columns is not None else None)

    def with_sortable(self, fields: Iterable[str] | None) -> ExecutionConfig:
        return dataclasses.replace(self, sortable=frozenset(fields) if fields is not None else None)

    def with_relations(self, *relations: RelationSpec) -> ExecutionConfig:
        return dataclasses.replace(self, relations=self.relations + relations)

    def with_where(self, where: Any) -> ExecutionConfig:
        return dataclasses.replace(self, where=where)

    def with_alias(self, alias: str | None) -> ExecutionConfig:
        return dataclasses.replace(self, alias=alias)

    def with_mapper(self, mapper: RowMapper | None) -> ExecutionConfig:
        return dataclasses.replace(self, mapper=mapper)

    def with_enable(self, **switches: bool) -> ExecutionConfig:
        return dataclasses.replace(self, enable=dataclasses.replace(self.enable, **switches))


__all__ = ["ExecutionConfig", "JoinType", "PagingOverrides", "RelationSpec", "RowMapper"]
