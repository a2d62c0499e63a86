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
Declarative mapping between Python rows and the tables (or documents) of the
Data API.

A mapping is an explicit list of `ColumnSpec` entries, each naming an
attribute, the type of the corresponding column on the API and its role in
the table (partition key, clustering key, regular or vector column):

    >>> schema = TableSchema(
    ...     [
    ...         ColumnSpec("title", "text", ColumnRole.PARTITION),
    ...         ColumnSpec("year", "int", ColumnRole.CLUSTERING, sort_order=-1),
    ...         ColumnSpec("tags", "set", value_type="text"),
    ...         ColumnSpec("embedding", "vector", ColumnRole.VECTOR, dimension=3),
    ...     ],
    ...     row_factory=Book,
    ... )
    >>> schema.definition()["primaryKey"]
    {'partitionBy': ['title'], 'partitionSort': {'year': -1}}

The same schema then converts rows: `to_wire_row` turns a dataclass instance
(or a dictionary) into the JSON-ready dictionary sent to the API,
`from_wire_row` turns a row read from the API back into a `Book`.
"""

from __future__ import annotations

import dataclasses
import datetime
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from astradb_dataapi.constants import SortMode
from astradb_dataapi.exceptions import DataAPIUsageException
from astradb_dataapi.utils.str_enum import StrEnum


class ColumnRole(StrEnum):
    PARTITION = "partition"
    CLUSTERING = "clustering"
    REGULAR = "regular"
    VECTOR = "vector"


def _encode_timestamp(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.isoformat().replace("+00:00", "Z")
    return value


def _decode_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def _encode_date(value: Any) -> Any:
    if isinstance(value, datetime.date):
        return value.isoformat()
    return value


def _decode_date(value: Any) -> Any:
    if isinstance(value, str):
        return datetime.date.fromisoformat(value)
    return value


def _encode_uuid(value: Any) -> Any:
    return str(value) if isinstance(value, uuid.UUID) else value


def _decode_uuid(value: Any) -> Any:
    return uuid.UUID(value) if isinstance(value, str) else value


def _encode_collection(value: Any) -> Any:
    return list(value) if isinstance(value, (set, frozenset, tuple)) else value


def _decode_set(value: Any) -> Any:
    return set(value) if isinstance(value, list) else value


def _encode_vector(value: Any) -> Any:
    return [float(x) for x in value] if not isinstance(value, str) else value


def _encode_udt(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return dict(value)


# wire type -> (encode, decode); types not listed travel unchanged
_DEFAULT_CODECS: dict[str, tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    "timestamp": (_encode_timestamp, _decode_timestamp),
    "date": (_encode_date, _decode_date),
    "uuid": (_encode_uuid, _decode_uuid),
    "timeuuid": (_encode_uuid, _decode_uuid),
    "set": (_encode_collection, _decode_set),
    "list": (_encode_collection, lambda value: value),
    "vector": (_encode_vector, lambda value: value),
    "userDefined": (_encode_udt, lambda value: value),
}


@dataclass(frozen=True)
class ColumnSpec:
    """
    The mapping of one attribute to one column.

    Attributes:
        name: the attribute name on the Python side.
        wire_type: the column type on the API (e.g. "text", "int", "map",
            "vector").
        role: the role of the column in the table.
        column_name: the column name on the API, if different from `name`.
        key_type: the key type, for "map" columns.
        value_type: the value type, for "map", "set" and "list" columns.
        sort_order: for clustering columns, SortMode.ASCENDING (1) or
            SortMode.DESCENDING (-1).
        dimension: the vector dimension, for vector columns.
        udt_name: the name of the user-defined type, for "userDefined"
            columns.
        service: the vectorize service definition (provider, modelName, ...)
            for vector columns whose embeddings are computed by the server.
        encode: a custom function converting a value to its wire form.
        decode: a custom function converting a wire value back.
    """

    name: str
    wire_type: str
    role: ColumnRole = ColumnRole.REGULAR
    column_name: str | None = None
    key_type: str | None = None
    value_type: str | None = None
    sort_order: int = SortMode.ASCENDING
    dimension: int | None = None
    udt_name: str | None = None
    service: dict[str, Any] | None = None
    encode: Callable[[Any], Any] | None = None
    decode: Callable[[Any], Any] | None = None

    @property
    def api_name(self) -> str:
        return self.column_name or self.name

    def column_definition(self) -> dict[str, Any]:
        """The definition of this column in a createTable/alterTable payload."""
        definition: dict[str, Any] = {"type": self.wire_type}
        if self.key_type is not None:
            definition["keyType"] = self.key_type
        if self.value_type is not None:
            definition["valueType"] = self.value_type
        if self.dimension is not None:
            definition["dimension"] = self.dimension
        if self.udt_name is not None:
            definition["udtName"] = self.udt_name
        if self.service is not None:
            definition["service"] = self.service
        return definition

    def to_wire(self, value: Any) -> Any:
        if value is None:
            return None
        if self.encode is not None:
            return self.encode(value)
        codec = _DEFAULT_CODECS.get(self.wire_type)
        return codec[0](value) if codec else value

    def from_wire(self, value: Any) -> Any:
        if value is None:
            return None
        if self.decode is not None:
            return self.decode(value)
        codec = _DEFAULT_CODECS.get(self.wire_type)
        return codec[1](value) if codec else value


class TableSchema:
    """
    An ordered set of ColumnSpec, describing a table (or the shape of the
    documents in a collection) and converting rows to and from the API.

    Args:
        columns: the column specs. The order of partition columns is the
            order of the partition key; likewise for clustering columns.
        row_factory: a callable building a Python row from keyword arguments
            (typically a dataclass). If omitted, rows are read as dictionaries.

    Raises:
        DataAPIUsageException: for duplicate names or inconsistent specs.
    """

    def __init__(
        self,
        columns: Sequence[ColumnSpec],
        row_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.columns = list(columns)
        self.row_factory = row_factory
        self._by_name = {col.name: col for col in self.columns}
        self._by_api_name = {col.api_name: col for col in self.columns}
        if len(self._by_name) != len(self.columns) or len(self._by_api_name) != len(
            self.columns
        ):
            raise DataAPIUsageException("Duplicate column names in table schema.")
        for col in self.columns:
            if col.role == ColumnRole.VECTOR:
                if col.wire_type != "vector":
                    raise DataAPIUsageException(
                        f"Vector column '{col.name}' must have wire type 'vector'."
                    )
                if col.dimension is None and col.service is None:
                    raise DataAPIUsageException(
                        f"Vector column '{col.name}' needs a dimension or a service."
                    )
            if col.role == ColumnRole.CLUSTERING and col.sort_order not in {
                SortMode.ASCENDING,
                SortMode.DESCENDING,
            }:
                raise DataAPIUsageException(
                    f"Invalid sort order for clustering column '{col.name}'."
                )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({[col.name for col in self.columns]})"

    @property
    def partition_columns(self) -> list[ColumnSpec]:
        return [col for col in self.columns if col.role == ColumnRole.PARTITION]

    @property
    def clustering_columns(self) -> list[ColumnSpec]:
        return [col for col in self.columns if col.role == ColumnRole.CLUSTERING]

    @property
    def vector_columns(self) -> list[ColumnSpec]:
        return [col for col in self.columns if col.role == ColumnRole.VECTOR]

    def primary_key(self) -> dict[str, Any]:
        """
        The "primaryKey" part of a table definition.

        Raises:
            DataAPIUsageException: if no partition column is defined.
        """

        if not self.partition_columns:
            raise DataAPIUsageException(
                "A table schema needs at least one partition column."
            )
        return {
            "partitionBy": [col.api_name for col in self.partition_columns],
            "partitionSort": {
                col.api_name: col.sort_order for col in self.clustering_columns
            },
        }

    def primary_key_names(self) -> list[str]:
        return [
            col.api_name for col in self.partition_columns + self.clustering_columns
        ]

    def definition(self) -> dict[str, Any]:
        """The table definition, as accepted by the createTable command."""
        return {
            "columns": {col.api_name: col.column_definition() for col in self.columns},
            "primaryKey": self.primary_key(),
        }

    def _read_attribute(self, row: Any, col: ColumnSpec) -> tuple[bool, Any]:
        if isinstance(row, dict):
            if col.name in row:
                return True, row[col.name]
            if col.api_name in row:
                return True, row[col.api_name]
            return False, None
        if hasattr(row, col.name):
            return True, getattr(row, col.name)
        return False, None

    def to_wire_row(self, row: Any) -> dict[str, Any]:
        """
        Convert a row (a dataclass instance, any object with the mapped
        attributes, or a dictionary) into its JSON-ready wire form.
        Attributes absent from the row are omitted; dictionary entries not
        in the schema are passed through unchanged.
        """

        if not isinstance(row, dict) and not dataclasses.is_dataclass(row):
            if not any(hasattr(row, col.name) for col in self.columns):
                raise DataAPIUsageException(
                    f"Cannot map an object of type {type(row).__name__} to a row."
                )
        wire_row: dict[str, Any] = {}
        if isinstance(row, dict):
            known = {col.name for col in self.columns} | set(self._by_api_name)
            wire_row.update({k: v for k, v in row.items() if k not in known})
        for col in self.columns:
            present, value = self._read_attribute(row, col)
            if present:
                wire_row[col.api_name] = col.to_wire(value)
        return wire_row

    def from_wire_row(self, wire_row: dict[str, Any]) -> Any:
        """
        Convert a row read from the API back into a Python row, built with the
        `row_factory` if one is set (unmapped columns are then discarded),
        or as a dictionary keyed by attribute name otherwise.
        """

        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in wire_row.items():
            col = self._by_api_name.get(key)
            if col is None:
                extra[key] = value
            else:
                values[col.name] = col.from_wire(value)
        if self.row_factory is not None:
            return self.row_factory(**values)
        return {**extra, **values}

    def primary_key_of(self, wire_row: dict[str, Any]) -> dict[str, Any]:
        """Extract the primary-key part of a wire row."""
        return {name: wire_row.get(name) for name in self.primary_key_names()}

    def decode_value(self, api_name: str, value: Any) -> Any:
        """Decode a single wire value of a column; unmapped columns pass through."""
        col = self._by_api_name.get(api_name)
        return col.from_wire(value) if col is not None else value


def alter_add_columns(columns: Sequence[ColumnSpec]) -> dict[str, Any]:
    """The alterTable operation adding (regular or vector) columns to a table."""
    return {
        "add": {"columns": {col.api_name: col.column_definition() for col in columns}}
    }


def alter_drop_columns(column_names: Sequence[str]) -> dict[str, Any]:
    return {"drop": {"columns": list(column_names)}}


def alter_add_vectorize(services: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """
    The alterTable operation enabling server-side embeddings on existing vector
    columns, given a map from column name to vectorize service definition.
    """

    return {"addVectorize": {"columns": dict(services)}}


def alter_drop_vectorize(column_names: Sequence[str]) -> dict[str, Any]:
    return {"dropVectorize": {"columns": list(column_names)}}


@dataclass(frozen=True)
class UserDefinedTypeSpec:
    """
    The definition of a user-defined type, as a map from field name to
    field type (e.g. `{"street": "text", "number": "int"}`). Once created, the
    type can be used for table columns with
    `ColumnSpec(name, "userDefined", udt_name=...)`; values of such columns
    are dictionaries (or dataclass instances, when writing).
    """

    fields: dict[str, str]

    def definition(self) -> dict[str, Any]:
        """The type definition in a createType payload."""
        if not self.fields:
            raise DataAPIUsageException("A user-defined type needs at least a field.")
        return {
            "fields": {
                field_name: {"type": field_type}
                for field_name, field_type in self.fields.items()
            }
        }


def alter_type_add_fields(fields: dict[str, str]) -> dict[str, Any]:
    """The alterType operation adding fields to a user-defined type."""
    return {"add": UserDefinedTypeSpec(fields).definition()}


def alter_type_rename_fields(renames: dict[str, str]) -> dict[str, Any]:
    return {"rename": {"fields": dict(renames)}}


def analyzer_definition(
    tokenizer: str,
    *,
    tokenizer_args: dict[str, Any] | None = None,
    filters: Sequence[str] = (),
    char_filters: Sequence[str] = (),
) -> dict[str, Any]:
    """
    A custom text analyzer, for text indexes: a tokenizer followed by
    token filters and character filters, all given by name.

    Example:
        >>> my_table.create_text_index(
        ...     "body_idx",
        ...     "body",
        ...     analyzer=analyzer_definition("standard", filters=["lowercase"]),
        ... )
    """

    return {
        "tokenizer": {"name": tokenizer, "args": dict(tokenizer_args or {})},
        "filters": [{"name": filter_name} for filter_name in filters],
        "charFilters": [{"name": char_filter} for char_filter in char_filters],
    }
