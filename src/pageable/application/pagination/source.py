"""Application pagination – the queryable data-source port.

A :class:`QuerySource` is a *mutable* query builder: every instruction
mutates the receiver in place and returns ``None``.  Call :meth:`clone` to
branch before applying row-level instructions (limit / offset) so that the
count and the fetch share the same filtered, joined base query.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from pageable.application.pagination.config import RelationSpec
    from pageable.application.pagination.filter import FilterPredicate

TRow = TypeVar("TRow")


class BackendKind(str, Enum):
    """Closed set of backends a source can declare itself as."""

    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MSSQL = "mssql"
    ORACLE = "oracle"
    MEMORY = "memory"

    @property
    def supports_nulls_ordering(self) -> bool:
        """Whether ``ORDER BY … NULLS FIRST/LAST`` is native."""
        return self not in (BackendKind.MYSQL, BackendKind.MARIADB, BackendKind.MSSQL)


class NullsPlacement(str, Enum):
    FIRST = "first"
    LAST = "last"


@dataclasses.dataclass(frozen=True)
class OrderInstruction:
    """One backend ordering key.

    ``nulls`` is ``None`` when the backend's default placement applies.  An
    ``is_null_key`` instruction orders on ``field IS NULL`` and is how
    explicit placement is emulated on backends without native support.
    """

    field: str
    descending: bool = False
    nulls: NullsPlacement | None = None
    is_null_key: bool = False


@runtime_checkable
class QuerySource(Protocol[TRow]):
    """Port implemented by every data-source adapter."""

    backend: BackendKind

    def alias(self, alias: str) -> None:
        """Name the root entity so fields may be addressed as ``alias.field``."""

    def select(self, columns: Sequence[str] | None) -> None:
        """Project *columns*, or every column of the root entity when ``None``."""

    def join(self, relation: RelationSpec, alias: str) -> None: ...

    def where(self, predicate: Any) -> None:
        """AND a backend-native predicate onto the query."""

    def where_field(self, field: str, predicates: Sequence[FilterPredicate]) -> None:
        """AND every parsed predicate for *field* onto the query."""

    def order_by(self, instructions: Sequence[OrderInstruction]) -> None: ...

    def limit(self, limit: int | None) -> None: ...

    def offset(self, offset: int) -> None: ...

    def clone(self) -> QuerySource[TRow]: ...

    async def count(self) -> int: ...

    async def fetch(self) -> list[TRow]: ...


__all__ = ["BackendKind", "NullsPlacement", "OrderInstruction", "QuerySource"]
