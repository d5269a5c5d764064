"""Unit tests for InMemoryQuerySource."""
from __future__ import annotations

import asyncio
import dataclasses
import datetime
from typing import Any

import pytest

from pageable.adapters.memory import InMemoryQuerySource
from pageable.application.pagination import (
    FilterOperator,
    FilterPredicate,
    JoinType,
    NullsPlacement,
    OrderInstruction,
    RelationSpec,
)
from pageable.kernel.errors import InvalidOperandError, UnknownFieldError

ROWS: list[dict[str, Any]] = [
    {"id": 1, "name": "Alpha", "score": 30, "active": True, "author": {"name": "ann"}},
    {"id": 2, "name": "beta", "score": None, "active": False, "author": None},
    {"id": 3, "name": "Gamma ray", "score": 10, "active": True, "author": {"name": "bob"}},
    {"id": 4, "name": "delta", "score": 20, "active": False, "author": {"name": "ann"}},
]


def _ids(rows: list[Any]) -> list[int]:
    return [row["id"] for row in rows]


def _fetch(source: InMemoryQuerySource[Any]) -> list[Any]:
    return asyncio.run(source.fetch())


def _filtered(field: str, operator: FilterOperator, operand: str = "") -> list[int]:
    source = InMemoryQuerySource(ROWS)
    source.where_field(field, [FilterPredicate(operator, operand)])
    return _ids(_fetch(source))


# ---------------------------------------------------------------------------
# Filter operators
# ---------------------------------------------------------------------------


class TestFilters:
    @pytest.mark.parametrize(
        ("operator", "operand", "expected"),
        [
            (FilterOperator.EQ, "3", [3]),
            (FilterOperator.NE, "3", [1, 2, 4]),
            (FilterOperator.GT, "2", [3, 4]),
            (FilterOperator.GTE, "2", [2, 3, 4]),
            (FilterOperator.LT, "2", [1]),
            (FilterOperator.LTE, "2", [1, 2]),
            (FilterOperator.IN, "1,4", [1, 4]),
            (FilterOperator.NIN, "1,4", [2, 3]),
            (FilterOperator.BETWEEN, "2,3", [2, 3]),
        ],
    )
    def test_comparison_on_int(self, operator: FilterOperator, operand: str, expected: list[int]) -> None:
        assert _filtered("id", operator, operand) == expected

    def test_null_values_fail_comparisons(self) -> None:
        assert _filtered("score", FilterOperator.NE, "30") == [3, 4]
        assert _filtered("score", FilterOperator.LT, "100") == [1, 3, 4]

    def test_null_and_not_null(self) -> None:
        assert _filtered("score", FilterOperator.NULL) == [2]
        assert _filtered("score", FilterOperator.NOT_NULL) == [1, 3, 4]

    def test_like_is_case_sensitive(self) -> None:
        assert _filtered("name", FilterOperator.LIKE, "%ta") == [2, 4]
        assert _filtered("name", FilterOperator.LIKE, "%A") == []

    def test_ilike(self) -> None:
        assert _filtered("name", FilterOperator.ILIKE, "%A") == [1, 2, 4]

    def test_like_underscore(self) -> None:
        assert _filtered("name", FilterOperator.LIKE, "bet_") == [2]

    def test_contains(self) -> None:
        assert _filtered("name", FilterOperator.CONTAINS, "a r") == [3]

    def test_bool_operand(self) -> None:
        assert _filtered("active", FilterOperator.EQ, "true") == [1, 3]

    def test_predicates_are_anded(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.where_field("id", [FilterPredicate(FilterOperator.GTE, "2"), FilterPredicate(FilterOperator.LTE, "3")])
        assert _ids(_fetch(source)) == [2, 3]

    def test_datetime_operand(self) -> None:
        rows = [
            {"id": 1, "at": datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)},
            {"id": 2, "at": datetime.datetime(2024, 6, 1, tzinfo=datetime.timezone.utc)},
        ]
        source = InMemoryQuerySource(rows)
        source.where_field("at", [FilterPredicate(FilterOperator.LT, "2024-03-01T00:00:00Z")])
        assert _ids(_fetch(source)) == [1]

    def test_invalid_operand(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.where_field("id", [FilterPredicate(FilterOperator.EQ, "abc")])
        with pytest.raises(InvalidOperandError) as info:
            asyncio.run(source.count())
        assert info.value.field == "id"

    def test_between_needs_two_values(self) -> None:
        source = InMemoryQuerySource(ROWS)
        with pytest.raises(InvalidOperandError):
            source.where_field("id", [FilterPredicate(FilterOperator.BETWEEN, "1,2,3")])

    def test_unknown_field(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.where_field("missing", [FilterPredicate(FilterOperator.EQ, "1")])
        with pytest.raises(UnknownFieldError):
            asyncio.run(source.count())

    def test_where_requires_callable(self) -> None:
        with pytest.raises(TypeError):
            InMemoryQuerySource(ROWS).where("id = 1")


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_ascending_puts_nulls_first_by_default(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.order_by([OrderInstruction("score")])
        assert _ids(_fetch(source)) == [2, 3, 4, 1]

    def test_descending_puts_nulls_last_by_default(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.order_by([OrderInstruction("score", descending=True)])
        assert _ids(_fetch(source)) == [1, 4, 3, 2]

    def test_explicit_nulls_last(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.order_by([OrderInstruction("score", nulls=NullsPlacement.LAST)])
        assert _ids(_fetch(source)) == [3, 4, 1, 2]

    def test_null_key_emulation(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.order_by([OrderInstruction("score", False, is_null_key=True), OrderInstruction("score")])
        assert _ids(_fetch(source)) == [3, 4, 1, 2]

    def test_multiple_keys(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.order_by([OrderInstruction("active", descending=True), OrderInstruction("id", descending=True)])
        assert _ids(_fetch(source)) == [3, 1, 4, 2]


# ---------------------------------------------------------------------------
# Joins, aliases and projection
# ---------------------------------------------------------------------------


class TestJoins:
    def test_inner_join_drops_missing_relation(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.join(RelationSpec("author"), "author")
        assert asyncio.run(source.count()) == 3

    def test_left_join_keeps_rows(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.join(RelationSpec("author", join_type=JoinType.LEFT), "author")
        assert asyncio.run(source.count()) == 4

    def test_join_condition(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.join(RelationSpec("author", condition=lambda a: a["name"] == "ann"), "author")
        assert _ids(_fetch(source)) == [1, 4]

    def test_join_condition_on_collection_matches_any_element(self) -> None:
        rows = [
            {"id": 1, "tags": [{"name": "news"}, {"name": "sport"}]},
            {"id": 2, "tags": [{"name": "tech"}]},
            {"id": 3, "tags": []},
        ]
        source = InMemoryQuerySource(rows)
        source.join(RelationSpec("tags", condition=lambda tag: tag["name"] == "sport"), "tags")
        assert _ids(_fetch(source)) == [1]

    def test_left_join_ignores_condition(self) -> None:
        rows = [{"id": 1, "tags": [{"name": "news"}]}, {"id": 2, "tags": []}]
        source = InMemoryQuerySource(rows)
        source.join(RelationSpec("tags", join_type=JoinType.LEFT, condition=lambda tag: False), "tags")
        assert _ids(_fetch(source)) == [1, 2]

    def test_filter_through_relation_alias(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.join(RelationSpec("author", alias="w"), "w")
        source.where_field("w.name", [FilterPredicate(FilterOperator.EQ, "bob")])
        assert _ids(_fetch(source)) == [3]

    def test_root_alias(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.alias("a")
        source.where_field("a.id", [FilterPredicate(FilterOperator.EQ, "2")])
        assert _ids(_fetch(source)) == [2]

    def test_projection(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.select(["id", "author.name"])
        source.limit(2)
        assert _fetch(source) == [{"id": 1, "author.name": "ann"}, {"id": 2, "author.name": None}]


# ---------------------------------------------------------------------------
# Offset, limit and clone
# ---------------------------------------------------------------------------


class TestWindow:
    def test_offset_and_limit(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.offset(1)
        source.limit(2)
        assert _ids(_fetch(source)) == [2, 3]

    def test_count_ignores_window(self) -> None:
        source = InMemoryQuerySource(ROWS)
        source.offset(3)
        source.limit(1)
        assert asyncio.run(source.count()) == 4

    def test_clone_is_independent(self) -> None:
        source = InMemoryQuerySource(ROWS)
        copy = source.clone()
        copy.where_field("id", [FilterPredicate(FilterOperator.EQ, "1")])
        assert asyncio.run(source.count()) == 4
        assert asyncio.run(copy.count()) == 1


@dataclasses.dataclass
class Article:
    id: int
    title: str


def test_object_rows() -> None:
    source = InMemoryQuerySource([Article(1, "x"), Article(2, "y")])
    source.where_field("title", [FilterPredicate(FilterOperator.EQ, "y")])
    assert [a.id for a in _fetch(source)] == [2]
