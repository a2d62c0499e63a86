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

import datetime
import uuid
from dataclasses import dataclass

import pytest

from astradb_dataapi.exceptions import DataAPIUsageException
from astradb_dataapi.schema import (
    ColumnRole,
    ColumnSpec,
    TableSchema,
    UserDefinedTypeSpec,
    alter_add_columns,
    alter_add_vectorize,
    alter_drop_columns,
    alter_drop_vectorize,
    alter_type_add_fields,
    alter_type_rename_fields,
    analyzer_definition,
)


@dataclass
class Book:
    title: str
    year: int
    published_at: datetime.datetime | None = None
    tags: set[str] | None = None
    book_id: uuid.UUID | None = None
    embedding: list[float] | None = None


BOOK_ID = uuid.UUID("01234567-89ab-cdef-0123-456789abcdef")


@pytest.fixture
def book_schema() -> TableSchema:
    return TableSchema(
        [
            ColumnSpec("title", "text", ColumnRole.PARTITION),
            ColumnSpec("year", "int", ColumnRole.CLUSTERING, sort_order=-1),
            ColumnSpec("published_at", "timestamp", column_name="publishedAt"),
            ColumnSpec("tags", "set", value_type="text"),
            ColumnSpec("book_id", "uuid"),
            ColumnSpec("embedding", "vector", ColumnRole.VECTOR, dimension=2),
        ],
        row_factory=Book,
    )


class TestTableSchema:
    @pytest.mark.describe("test of the table definition from a schema")
    def test_schema_definition(self, book_schema: TableSchema) -> None:
        definition = book_schema.definition()
        assert definition["primaryKey"] == {
            "partitionBy": ["title"],
            "partitionSort": {"year": -1},
        }
        assert definition["columns"]["publishedAt"] == {"type": "timestamp"}
        assert definition["columns"]["tags"] == {"type": "set", "valueType": "text"}
        assert definition["columns"]["embedding"] == {
            "type": "vector",
            "dimension": 2,
        }
        assert book_schema.primary_key_names() == ["title", "year"]
        assert [col.name for col in book_schema.vector_columns] == ["embedding"]

    @pytest.mark.describe("test of rows converted to and from the wire")
    def test_schema_row_conversion(self, book_schema: TableSchema) -> None:
        book = Book(
            title="Dune",
            year=1965,
            published_at=datetime.datetime(1965, 8, 1, 12, 0),
            tags={"sf"},
            book_id=BOOK_ID,
            embedding=[1, 2],
        )
        wire_row = book_schema.to_wire_row(book)
        assert wire_row == {
            "title": "Dune",
            "year": 1965,
            "publishedAt": "1965-08-01T12:00:00Z",
            "tags": ["sf"],
            "book_id": str(BOOK_ID),
            "embedding": [1.0, 2.0],
        }
        assert book_schema.primary_key_of(wire_row) == {"title": "Dune", "year": 1965}
        back = book_schema.from_wire_row(wire_row)
        assert back == Book(
            title="Dune",
            year=1965,
            published_at=datetime.datetime(
                1965, 8, 1, 12, 0, tzinfo=datetime.timezone.utc
            ),
            tags={"sf"},
            book_id=BOOK_ID,
            embedding=[1.0, 2.0],
        )

    @pytest.mark.describe("test of dictionary rows and null values")
    def test_schema_dict_rows(self, book_schema: TableSchema) -> None:
        wire_row = book_schema.to_wire_row(
            {"title": "T", "year": 1, "tags": None, "extra_column": 42}
        )
        assert wire_row == {"extra_column": 42, "title": "T", "year": 1, "tags": None}
        dict_schema = TableSchema(book_schema.columns)
        assert dict_schema.from_wire_row({"title": "T", "other": 1}) == {
            "title": "T",
            "other": 1,
        }
        assert book_schema.decode_value("book_id", str(BOOK_ID)) == BOOK_ID
        assert book_schema.decode_value("unmapped", "x") == "x"
        with pytest.raises(DataAPIUsageException):
            book_schema.to_wire_row(12)

    @pytest.mark.describe("test of custom column codecs")
    def test_schema_custom_codec(self) -> None:
        col = ColumnSpec(
            "price",
            "decimal",
            encode=lambda v: str(v),
            decode=lambda v: float(v),
        )
        assert col.to_wire(1.5) == "1.5"
        assert col.from_wire("1.5") == 1.5
        assert col.to_wire(None) is None
        date_col = ColumnSpec("d", "date")
        assert date_col.to_wire(datetime.date(2024, 2, 29)) == "2024-02-29"
        assert date_col.from_wire("2024-02-29") == datetime.date(2024, 2, 29)

    @pytest.mark.describe("test of schema validation")
    def test_schema_validation(self) -> None:
        with pytest.raises(DataAPIUsageException):
            TableSchema([ColumnSpec("a", "text"), ColumnSpec("a", "int")])
        with pytest.raises(DataAPIUsageException):
            TableSchema([ColumnSpec("v", "text", ColumnRole.VECTOR)])
        with pytest.raises(DataAPIUsageException):
            TableSchema([ColumnSpec("v", "vector", ColumnRole.VECTOR)])
        with pytest.raises(DataAPIUsageException):
            TableSchema(
                [
                    ColumnSpec("p", "text", ColumnRole.PARTITION),
                    ColumnSpec("c", "int", ColumnRole.CLUSTERING, sort_order=0),
                ]
            )
        with pytest.raises(DataAPIUsageException):
            TableSchema([ColumnSpec("a", "text")]).definition()

    @pytest.mark.describe("test of the alter-table operations")
    def test_alter_operations(self) -> None:
        assert alter_add_columns(
            [ColumnSpec("c", "map", key_type="text", value_type="int")]
        ) == {
            "add": {"columns": {"c": {"type": "map", "keyType": "text", "valueType": "int"}}}
        }
        assert alter_drop_columns(["a", "b"]) == {"drop": {"columns": ["a", "b"]}}
        service = {"provider": "openai", "modelName": "text-embedding-3-small"}
        assert alter_add_vectorize({"emb": service}) == {
            "addVectorize": {"columns": {"emb": service}}
        }
        assert alter_drop_vectorize(["emb"]) == {"dropVectorize": {"columns": ["emb"]}}

    @pytest.mark.describe("test of user-defined types in schemas")
    def test_schema_user_defined_types(self) -> None:
        address = UserDefinedTypeSpec({"street": "text", "number": "int"})
        assert address.definition() == {
            "fields": {"street": {"type": "text"}, "number": {"type": "int"}}
        }
        with pytest.raises(DataAPIUsageException):
            UserDefinedTypeSpec({}).definition()

        @dataclass
        class Address:
            street: str
            number: int

        col = ColumnSpec("home", "userDefined", udt_name="address")
        assert col.column_definition() == {"type": "userDefined", "udtName": "address"}
        assert col.to_wire(Address("Main St", 12)) == {"street": "Main St", "number": 12}
        assert col.to_wire({"street": "Elm St"}) == {"street": "Elm St"}
        assert col.from_wire({"street": "Elm St"}) == {"street": "Elm St"}

        assert alter_type_add_fields({"city": "text"}) == {
            "add": {"fields": {"city": {"type": "text"}}}
        }
        assert alter_type_rename_fields({"number": "house_number"}) == {
            "rename": {"fields": {"number": "house_number"}}
        }

    @pytest.mark.describe("test of custom text analyzer definitions")
    def test_analyzer_definition(self) -> None:
        assert analyzer_definition(
            "ngram",
            tokenizer_args={"minGramSize": 2, "maxGramSize": 3},
            filters=["lowercase", "porterstem"],
            char_filters=["htmlstrip"],
        ) == {
            "tokenizer": {"name": "ngram", "args": {"minGramSize": 2, "maxGramSize": 3}},
            "filters": [{"name": "lowercase"}, {"name": "porterstem"}],
            "charFilters": [{"name": "htmlstrip"}],
        }
        assert analyzer_definition("whitespace") == {
            "tokenizer": {"name": "whitespace", "args": {}},
            "filters": [],
            "charFilters": [],
        }
