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

from __future__ import annotations

import pytest

from astradb_dataapi.builders import (
    FilterBuilder,
    ProjectionBuilder,
    SortBuilder,
    UpdateBuilder,
)


class TestBuilders:
    @pytest.mark.describe("test of the filter builder")
    def test_filter_builder(self) -> None:
        built = (
            FilterBuilder()
            .eq("genre", "fantasy")
            .gt("year", 2000)
            .lte("year", 2020)
            .in_("tags", ("a", "b"))
            .exists("author")
            .build()
        )
        assert built == {
            "genre": {"$eq": "fantasy"},
            "year": {"$gt": 2000, "$lte": 2020},
            "tags": {"$in": ["a", "b"]},
            "author": {"$exists": True},
        }
        compound = (
            FilterBuilder()
            .or_(FilterBuilder().eq("a", 1), {"b": {"$ne": 2}})
            .not_(FilterBuilder().size("c", 3))
            .build()
        )
        assert compound == {
            "$or": [{"a": {"$eq": 1}}, {"b": {"$ne": 2}}],
            "$not": {"c": {"$size": 3}},
        }
        assert FilterBuilder().match("dragons").build() == {
            "$lexical": {"$match": "dragons"}
        }

    @pytest.mark.describe("test of builders returning independent copies")
    def test_builder_copies(self) -> None:
        builder = FilterBuilder().in_("x", [1])
        built = builder.build()
        built["x"]["$in"].append(2)
        assert builder.build() == {"x": {"$in": [1]}}

    @pytest.mark.describe("test of the sort builder")
    def test_sort_builder(self) -> None:
        assert SortBuilder().ascending("a").descending("b").build() == {
            "a": 1,
            "b": -1,
        }
        assert list(SortBuilder().descending("z").ascending("a").build()) == ["z", "a"]
        assert SortBuilder().vector((0.1, 0.2)).build() == {"$vector": [0.1, 0.2]}
        assert SortBuilder().vectorize("query", column="emb").build() == {
            "emb": "query"
        }
        assert SortBuilder().lexical("words").build() == {"$lexical": "words"}

    @pytest.mark.describe("test of the update builder")
    def test_update_builder(self) -> None:
        built = (
            UpdateBuilder()
            .set("a", 1)
            .set("b", 2)
            .unset("c")
            .inc("n")
            .push_each("arr", [1, 2], position=0)
            .pop("stack", from_end=False)
            .current_date("updated")
            .build()
        )
        assert built == {
            "$set": {"a": 1, "b": 2},
            "$unset": {"c": ""},
            "$inc": {"n": 1},
            "$push": {"arr": {"$each": [1, 2], "$position": 0}},
            "$pop": {"stack": -1},
            "$currentDate": {"updated": True},
        }

    @pytest.mark.describe("test of the projection builder")
    def test_projection_builder(self) -> None:
        builder = (
            ProjectionBuilder()
            .include("title", "year")
            .exclude("_id")
            .slice("arr", 3, skip=1)
        )
        assert builder.build() == {
            "title": True,
            "year": True,
            "_id": False,
            "arr": {"$slice": [1, 3]},
        }
        assert builder.similarity_requested is False
        assert builder.include_similarity().similarity_requested is True
        assert ProjectionBuilder().slice("arr", -2).build() == {"arr": {"$slice": -2}}
