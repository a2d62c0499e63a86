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

from dataclasses import dataclass, field
from typing import Any

from astradb_dataapi.utils.endpoints import build_api_endpoint


@dataclass
class CollectionDescriptor:
    """
    A collection as described by the API in response to `findCollections`.

    Attributes:
        name: the collection name.
        definition: the collection options (vector, indexing, defaultId...)
            in the form accepted by `createCollection`.
        raw_descriptor: the item as returned by the API.
    """

    name: str
    definition: dict[str, Any] = field(default_factory=dict)
    raw_descriptor: dict[str, Any] | None = None

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> CollectionDescriptor:
        return cls(
            name=raw_dict["name"],
            definition=raw_dict.get("options") or {},
            raw_descriptor=raw_dict,
        )

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "options": self.definition}


@dataclass
class TableDescriptor:
    """
    A table as described by the API in response to `listTables`.

    Attributes:
        name: the table name.
        definition: the table definition ("columns" and "primaryKey"),
            as accepted by `createTable`.
        raw_descriptor: the item as returned by the API.
    """

    name: str
    definition: dict[str, Any] = field(default_factory=dict)
    raw_descriptor: dict[str, Any] | None = None

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> TableDescriptor:
        return cls(
            name=raw_dict["name"],
            definition=raw_dict.get("definition") or {},
            raw_descriptor=raw_dict,
        )

    @property
    def column_names(self) -> list[str]:
        return list((self.definition.get("columns") or {}).keys())

    @property
    def primary_key(self) -> dict[str, Any]:
        return self.definition.get("primaryKey") or {}


@dataclass
class UserDefinedTypeDescriptor:
    """
    A user-defined type as described by the API in response to `listTypes`.

    Attributes:
        name: the type name.
        fields: a map from field name to field type (e.g. "text"). Fields
            with a complex type are mapped to their full definition.
        api_support: what the API reports about its support of the type,
            as returned by the API.
        raw_descriptor: the item as returned by the API.
    """

    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    api_support: dict[str, Any] | None = None
    raw_descriptor: dict[str, Any] | None = None

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> UserDefinedTypeDescriptor:
        raw_fields = (raw_dict.get("definition") or {}).get("fields") or {}
        return cls(
            name=raw_dict.get("udtName") or raw_dict.get("name") or "",
            fields={
                field_name: (
                    field_def["type"]
                    if isinstance(field_def, dict) and set(field_def) == {"type"}
                    else field_def
                )
                for field_name, field_def in raw_fields.items()
            },
            api_support=raw_dict.get("apiSupport"),
            raw_descriptor=raw_dict,
        )


@dataclass
class TableIndexDescriptor:
    """
    An index on a table, as described by the API in response to `listIndexes`.

    Attributes:
        name: the index name.
        definition: the index definition (the "column" and possibly "options").
        index_type: the kind of index (e.g. "regular", "vector"), if reported.
    """

    name: str
    definition: dict[str, Any]
    index_type: str | None = None

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> TableIndexDescriptor:
        return cls(
            name=raw_dict["name"],
            definition=raw_dict.get("definition") or {},
            index_type=raw_dict.get("indexType"),
        )


@dataclass
class AstraDBDatabaseInfo:
    """
    The information about an Astra DB database, as returned by the DevOps API.

    Attributes:
        id: the database ID, a UUID string.
        name: the database name (not necessarily unique within an org).
        keyspaces: the keyspaces in the database.
        status: the status of the database, e.g. "ACTIVE" or "PENDING".
        environment: the Astra environment the database lives in.
        cloud_provider: e.g. "GCP".
        region: the (primary) region of the database.
        api_endpoint: the API endpoint for the primary region.
        raw: the full response from the DevOps API.
    """

    id: str
    name: str
    keyspaces: list[str]
    status: str
    environment: str
    cloud_provider: str
    region: str
    api_endpoint: str
    raw: dict[str, Any]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self.id}, name={self.name}, "
            f"status={self.status}, region={self.region}, "
            f"keyspaces={self.keyspaces})"
        )

    @classmethod
    def _from_dict(
        cls, raw_dict: dict[str, Any], environment: str
    ) -> AstraDBDatabaseInfo:
        raw_info = raw_dict.get("info") or {}
        region = raw_info.get("region", "")
        return cls(
            id=raw_dict["id"],
            name=raw_info.get("name", ""),
            keyspaces=list(raw_info.get("keyspaces") or []),
            status=raw_dict.get("status", ""),
            environment=environment,
            cloud_provider=raw_info.get("cloudProvider", ""),
            region=region,
            api_endpoint=build_api_endpoint(environment, raw_dict["id"], region),
            raw=raw_dict,
        )


@dataclass
class EmbeddingProvidersResult:
    """
    The outcome of a `findEmbeddingProviders` command.

    Attributes:
        embedding_providers: a map from provider name to its description
            (models, authentication methods, parameters).
        raw_info: the "status" of the API response.
    """

    embedding_providers: dict[str, Any]
    raw_info: dict[str, Any] | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"embedding_providers={', '.join(sorted(self.embedding_providers))})"
        )

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> EmbeddingProvidersResult:
        return cls(
            embedding_providers=raw_dict.get("embeddingProviders") or {},
            raw_info=raw_dict,
        )
