# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Fluent helpers to compose the filter, sort, update and projection clauses
accepted by the collection and table methods. Each builder produces, with
`build()`, the same plain dictionary one could write by hand:

    >>> FilterBuilder().eq("genre", "fantasy").gt("year", 2000).build()
    {'genre': {'$eq': 'fantasy'}, 'year': {'$gt': 2000}}
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Union

from astradb_dataapi.constants import (
    FilterType,
    ProjectionType,
    SortMode,
    SortType,
    UpdateType,
)

FilterLike = Union["FilterBuilder", FilterType]


def _to_filter(filter_like: FilterLike) -> FilterType:
    if isinstance(filter_like, FilterBuilder):
        return filter_like.build()
    return dict(filter_like)


class FilterBuilder:
    """
    Compose a filter. Conditions on different fields are implicitly in "and";
    several conditions on the same field are merged under that field.
    """

    def __init__(self) -> None:
        self._clauses: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._clauses})"

    def _add(self, field_name: str, operator: str, value: Any) -> FilterBuilder:
        field_clause = self._clauses.setdefault(field_name, {})
        field_clause[operator] = value
        return self

    def eq(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$eq", value)

    def ne(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$ne", value)

    def gt(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$gt", value)

    def gte(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$gte", value)

    def lt(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$lt", value)

    def lte(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "$lte", value)

    def in_(self, field_name: str, values: Iterable[Any]) -> FilterBuilder:
        return self._add(field_name, "$in", list(values))

    def nin(self, field_name: str, values: Iterable[Any]) -> FilterBuilder:
        return self._add(field_name, "$nin", list(values))

    def exists(self, field_name: str, value: bool = True) -> FilterBuilder:
        return self._add(field_name, "$exists", value)

    def all(self, field_name: str, values: Iterable[Any]) -> FilterBuilder:
        return self._add(field_name, "$all", list(values))

    def size(self, field_name: str, size: int) -> FilterBuilder:
        return self._add(field_name, "$size", size)

    def match(self, text: str) -> FilterBuilder:
        """A lexical (full-text) match against the "$lexical" field."""
        return self._add("$lexical", "$match", text)

    def and_(self, *filters: FilterLike) -> FilterBuilder:
        self._clauses.setdefault("$and", []).extend(_to_filter(f) for f in filters)
        return self

    def or_(self, *filters: FilterLike) -> FilterBuilder:
        self._clauses.setdefault("$or", []).extend(_to_filter(f) for f in filters)
        return self

    def not_(self, filter_like: FilterLike) -> FilterBuilder:
        self._clauses["$not"] = _to_filter(filter_like)
        return self

    def build(self) -> FilterType:
        return copy.deepcopy(self._clauses)


class SortBuilder:
    """
    Compose a sort clause. Field-based sorts keep the order in which they are
    added; vector, vectorize and lexical sorts exclude any other sort.
    """

    def __init__(self) -> None:
        self._sort: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._sort})"

    def ascending(self, field_name: str) -> SortBuilder:
        self._sort[field_name] = SortMode.ASCENDING
        return self

    def descending(self, field_name: str) -> SortBuilder:
        self._sort[field_name] = SortMode.DESCENDING
        return self

    def vector(self, vector: Iterable[float], column: str = "$vector") -> SortBuilder:
        """ANN sort by similarity to a vector (for tables, name the vector column)."""
        self._sort[column] = list(vector)
        return self

    def vectorize(self, text: str, column: str = "$vectorize") -> SortBuilder:
        """ANN sort by similarity to the embedding the server computes for `text`."""
        self._sort[column] = text
        return self

    def lexical(self, text: str) -> SortBuilder:
        self._sort["$lexical"] = text
        return self

    def build(self) -> SortType:
        return copy.deepcopy(self._sort)


class UpdateBuilder:
    """Compose an update clause, grouping the field changes by operator."""

    def __init__(self) -> None:
        self._update: dict[str, dict[str, Any]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._update})"

    def _add(self, operator: str, field_name: str, value: Any) -> UpdateBuilder:
        self._update.setdefault(operator, {})[field_name] = value
        return self

    def set(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$set", field_name, value)

    def unset(self, field_name: str) -> UpdateBuilder:
        return self._add("$unset", field_name, "")

    def inc(self, field_name: str, amount: int | float = 1) -> UpdateBuilder:
        return self._add("$inc", field_name, amount)

    def push(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$push", field_name, value)

    def push_each(
        self, field_name: str, values: Iterable[Any], position: int | None = None
    ) -> UpdateBuilder:
        push_spec: dict[str, Any] = {"$each": list(values)}
        if position is not None:
            push_spec["$position"] = position
        return self._add("$push", field_name, push_spec)

    def add_to_set(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$addToSet", field_name, value)

    def pop(self, field_name: str, from_end: bool = True) -> UpdateBuilder:
        return self._add("$pop", field_name, 1 if from_end else -1)

    def rename(self, field_name: str, new_name: str) -> UpdateBuilder:
        return self._add("$rename", field_name, new_name)

    def min(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$min", field_name, value)

    def max(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$max", field_name, value)

    def mul(self, field_name: str, factor: int | float) -> UpdateBuilder:
        return self._add("$mul", field_name, factor)

    def current_date(self, field_name: str) -> UpdateBuilder:
        return self._add("$currentDate", field_name, True)

    def set_on_insert(self, field_name: str, value: Any) -> UpdateBuilder:
        return self._add("$setOnInsert", field_name, value)

    def build(self) -> UpdateType:
        return copy.deepcopy(self._update)


class ProjectionBuilder:
    """
    Compose a projection. Besides the projection proper, the builder can
    record that the similarity score is wanted, to be passed as the
    `include_similarity` parameter of find methods.
    """

    def __init__(self) -> None:
        self._projection: dict[str, Any] = {}
        self.similarity_requested = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._projection})"

    def include(self, *field_names: str) -> ProjectionBuilder:
        for field_name in field_names:
            self._projection[field_name] = True
        return self

    def exclude(self, *field_names: str) -> ProjectionBuilder:
        for field_name in field_names:
            self._projection[field_name] = False
        return self

    def slice(
        self, field_name: str, limit: int, skip: int | None = None
    ) -> ProjectionBuilder:
        """Project a portion of an array field: `limit` items, after `skip` ones."""
        self._projection[field_name] = {
            "$slice": limit if skip is None else [skip, limit]
        }
        return self

    def include_similarity(self) -> ProjectionBuilder:
        self.similarity_requested = True
        return self

    def build(self) -> ProjectionType:
        return copy.deepcopy(self._projection)
