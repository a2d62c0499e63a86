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

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from astradb_dataapi.collection import AsyncCollection, Collection
from astradb_dataapi.constants import DataAPIDestination
from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    UnexpectedDataAPIResponseException,
)
from astradb_dataapi.info import (
    CollectionDescriptor,
    TableDescriptor,
    UserDefinedTypeDescriptor,
)
from astradb_dataapi.schema import TableSchema, UserDefinedTypeSpec
from astradb_dataapi.table import AsyncTable, Table
from astradb_dataapi.utils.api_commander import (
    APICommander,
    APIResponse,
    Command,
    ResponseShape,
    TimeoutKind,
)
from astradb_dataapi.utils.command_options import CommandOptions, FullCommandOptions
from astradb_dataapi.utils.unset import _UNSET, UnsetType
from astradb_dataapi.utils.url_builders import DataAPIUrlBuilder

if TYPE_CHECKING:
    from astradb_dataapi.admin import AstraDBDatabaseAdmin, DataAPIDatabaseAdmin

logger = logging.getLogger(__name__)


def _create_table_definition(definition: dict[str, Any] | TableSchema) -> dict[str, Any]:
    if isinstance(definition, TableSchema):
        return definition.definition()
    return definition


class _BaseDatabase:
    def __init__(
        self,
        *,
        api_endpoint: str,
        command_options: FullCommandOptions,
    ) -> None:
        self.api_endpoint = api_endpoint.strip("/")
        self.command_options = command_options
        self._url_builder = DataAPIUrlBuilder(self.api_endpoint)
        self._api_commander = APICommander()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(api_endpoint="{self.api_endpoint}", '
            f'keyspace="{self.keyspace}", command_options={self.command_options})'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, self.__class__):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.command_options == other.command_options,
                ]
            )
        return False

    @property
    def keyspace(self) -> str:
        """The working keyspace of this database object."""
        return self.command_options.keyspace

    def _scoped_options(
        self, keyspace: str | None, command_options: CommandOptions | None
    ) -> FullCommandOptions:
        return self.command_options.with_override(
            CommandOptions(keyspace=keyspace or _UNSET)
        ).with_override(command_options)

    def _command(
        self,
        command_name: str,
        payload: dict[str, Any],
        keyspace: str | None,
        call_options: CommandOptions | None,
        timeout_kind: TimeoutKind,
    ) -> Command:
        return Command(
            url_builder=self._url_builder,
            name=command_name,
            payload=payload,
            option_layers=[
                self.command_options,
                CommandOptions(keyspace=keyspace or _UNSET),
                call_options,
            ],
            timeout_kind=timeout_kind,
        )

    def _raw_command(
        self,
        body: dict[str, Any],
        keyspace: str | None | UnsetType,
        collection_or_table_name: str | None,
        raise_api_errors: bool,
        call_options: CommandOptions | None,
    ) -> Command:
        if keyspace is None:
            keyspace_layer = CommandOptions(include_keyspace_in_url=False)
            if collection_or_table_name:
                raise DataAPIUsageException(
                    "Cannot target a collection or table without a keyspace."
                )
        else:
            keyspace_layer = CommandOptions(keyspace=keyspace)
        return Command(
            url_builder=self._url_builder,
            payload=body,
            option_layers=[self.command_options, keyspace_layer, call_options],
            path_segments=(
                [collection_or_table_name] if collection_or_table_name else []
            ),
            raise_api_errors=raise_api_errors,
        )

    @staticmethod
    def _collection_names(response: APIResponse) -> list[str]:
        if "collections" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from findCollections API command.",
                raw_response=response.raw_response,
            )
        return list(response.status["collections"])

    @staticmethod
    def _collection_descriptors(response: APIResponse) -> list[CollectionDescriptor]:
        if "collections" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from findCollections API command.",
                raw_response=response.raw_response,
            )
        return [
            CollectionDescriptor._from_dict(raw_descriptor)
            for raw_descriptor in response.status["collections"]
        ]

    @staticmethod
    def _table_names(response: APIResponse) -> list[str]:
        if "tables" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listTables API command.",
                raw_response=response.raw_response,
            )
        return list(response.status["tables"])

    @staticmethod
    def _table_descriptors(response: APIResponse) -> list[TableDescriptor]:
        if "tables" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listTables API command.",
                raw_response=response.raw_response,
            )
        return [
            TableDescriptor._from_dict(raw_descriptor)
            for raw_descriptor in response.status["tables"]
        ]

    @staticmethod
    def _create_collection_payload(
        name: str, definition: dict[str, Any] | None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name}
        if definition:
            payload["options"] = definition
        return payload

    @staticmethod
    def _create_table_payload(
        name: str,
        definition: dict[str, Any] | TableSchema,
        if_not_exists: bool | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": name,
            "definition": _create_table_definition(definition),
        }
        if if_not_exists is not None:
            payload["options"] = {"ifNotExists": if_not_exists}
        return payload

    @staticmethod
    def _drop_payload(name: str, if_exists: bool | None) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name}
        if if_exists is not None:
            payload["options"] = {"ifExists": if_exists}
        return payload

    @staticmethod
    def _type_names(response: APIResponse) -> list[str]:
        if "types" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listTypes API command.",
                raw_response=response.raw_response,
            )
        return list(response.status["types"])

    @staticmethod
    def _type_descriptors(response: APIResponse) -> list[UserDefinedTypeDescriptor]:
        if "types" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listTypes API command.",
                raw_response=response.raw_response,
            )
        return [
            UserDefinedTypeDescriptor._from_dict(raw_descriptor)
            for raw_descriptor in response.status["types"]
        ]

    @staticmethod
    def _create_type_payload(
        name: str,
        definition: dict[str, Any] | UserDefinedTypeSpec,
        if_not_exists: bool | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": name,
            "definition": (
                definition.definition()
                if isinstance(definition, UserDefinedTypeSpec)
                else definition
            ),
        }
        if if_not_exists is not None:
            payload["options"] = {"ifNotExists": if_not_exists}
        return payload

    @staticmethod
    def _alter_type_payload(name: str, operation: dict[str, Any]) -> dict[str, Any]:
        if not operation or not set(operation) <= {"add", "rename"}:
            raise DataAPIUsageException(
                "An alterType operation must be an 'add' and/or a 'rename'."
            )
        return {"name": name, **operation}

    def _admin_for(
        self, command_options: CommandOptions | None
    ) -> AstraDBDatabaseAdmin | DataAPIDatabaseAdmin:
        from astradb_dataapi.admin import AstraDBDatabaseAdmin, DataAPIDatabaseAdmin

        admin_options = self.command_options.with_override(command_options)
        if admin_options.destination == DataAPIDestination.ASTRA:
            return AstraDBDatabaseAdmin(
                api_endpoint=self.api_endpoint,
                command_options=admin_options,
            )
        return DataAPIDatabaseAdmin(
            api_endpoint=self.api_endpoint,
            command_options=admin_options,
        )


class Database(_BaseDatabase):
    """
    A Data API database, the entry point to its collections and tables.
    Operations are blocking; see AsyncDatabase for the awaitable equivalent.

    A Database is normally obtained from a DataAPIClient:

        >>> client = DataAPIClient("AstraCS:...")
        >>> database = client.get_database(
        ...     "https://01234567-....apps.astra.datastax.com",
        ...     keyspace="my_keyspace",
        ... )
        >>> database.list_collection_names()
        ['movies', 'reviews']

    Args:
        api_endpoint: the full API endpoint of the database.
        command_options: the resolved options (token, keyspace, timeouts...)
            in force for this database and inherited by its collections and
            tables.
    """

    def __enter__(self) -> Database:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self._api_commander.close()

    def to_async(self) -> AsyncDatabase:
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            command_options=self.command_options,
        )

    def with_options(self, command_options: CommandOptions) -> Database:
        """A clone of this database with some options overridden, e.g. the keyspace."""
        return Database(
            api_endpoint=self.api_endpoint,
            command_options=self.command_options.with_override(command_options),
        )

    def get_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        document_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> Collection[Any]:
        """
        Get a Collection object for a collection, without checking that it
        exists: no request is made.
        """

        return Collection(
            api_endpoint=self.api_endpoint,
            name=name,
            command_options=self._scoped_options(keyspace, command_options),
            document_schema=document_schema,
        )

    def create_collection(
        self,
        name: str,
        *,
        definition: dict[str, Any] | None = None,
        keyspace: str | None = None,
        document_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> Collection[Any]:
        """
        Create a collection and return the Collection object for it.

        Args:
            name: the collection name.
            definition: the collection options, e.g.
                `{"vector": {"dimension": 1024, "metric": "cosine"}}`.
            keyspace: the keyspace, if other than the working keyspace.
            document_schema: an optional schema for document conversion.
            command_options: options overriding those of the database for
                this call and for the returned collection.
        """

        logger.info(f"creating collection '{name}'")
        self._api_commander.run(
            self._command(
                "createCollection",
                self._create_collection_payload(name, definition),
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished creating collection '{name}'")
        return self.get_collection(
            name,
            keyspace=keyspace,
            document_schema=document_schema,
            command_options=command_options,
        )

    def list_collection_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("findCollections")
        response = self._api_commander.run(
            self._command(
                "findCollections",
                {},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info("finished findCollections")
        return self._collection_names(response)

    def list_collections(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[CollectionDescriptor]:
        """The collections in the keyspace, each with its definition."""
        logger.info("findCollections")
        response = self._api_commander.run(
            self._command(
                "findCollections",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info("finished findCollections")
        return self._collection_descriptors(response)

    def collection_exists(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> bool:
        return name in self.list_collection_names(
            keyspace=keyspace, command_options=command_options
        )

    def drop_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"deleting collection '{name}'")
        self._api_commander.run(
            self._command(
                "deleteCollection",
                {"name": name},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished deleting collection '{name}'")

    def get_table(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        row_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> Table[Any]:
        """Get a Table object for a table, without checking that it exists."""
        return Table(
            api_endpoint=self.api_endpoint,
            name=name,
            command_options=self._scoped_options(keyspace, command_options),
            row_schema=row_schema,
        )

    def create_table(
        self,
        name: str,
        *,
        definition: dict[str, Any] | TableSchema,
        if_not_exists: bool | None = None,
        keyspace: str | None = None,
        row_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> Table[Any]:
        """
        Create a table and return the Table object for it.

        Args:
            name: the table name.
            definition: either the definition in its API form (a dictionary
                with "columns" and "primaryKey") or a TableSchema. In the
                latter case, the schema also becomes the row schema of the
                returned Table, unless `row_schema` is given.
            if_not_exists: if True, an existing table with the same name is
                not an error.
            keyspace: the keyspace, if other than the working keyspace.
            row_schema: an optional schema for row conversion.
            command_options: options overriding those of the database.
        """

        logger.info(f"creating table '{name}'")
        self._api_commander.run(
            self._command(
                "createTable",
                self._create_table_payload(name, definition, if_not_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating table '{name}'")
        if row_schema is None and isinstance(definition, TableSchema):
            row_schema = definition
        return self.get_table(
            name,
            keyspace=keyspace,
            row_schema=row_schema,
            command_options=command_options,
        )

    def list_table_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("listTables")
        response = self._api_commander.run(
            self._command(
                "listTables", {}, keyspace, command_options, TimeoutKind.TABLE_ADMIN
            )
        )
        logger.info("finished listTables")
        return self._table_names(response)

    def list_tables(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[TableDescriptor]:
        logger.info("listTables")
        response = self._api_commander.run(
            self._command(
                "listTables",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info("finished listTables")
        return self._table_descriptors(response)

    def drop_table(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping table '{name}'")
        self._api_commander.run(
            self._command(
                "dropTable",
                self._drop_payload(name, if_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping table '{name}'")

    def create_type(
        self,
        name: str,
        *,
        definition: dict[str, Any] | UserDefinedTypeSpec,
        if_not_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create a user-defined type, usable then for the columns of tables in
        the same keyspace.

        Args:
            name: the type name.
            definition: a UserDefinedTypeSpec or the definition in its API form,
                e.g. `{"fields": {"street": {"type": "text"}}}`.
            if_not_exists: if True, an existing type with the same name is
                not an error.
            keyspace: the keyspace, if other than the working keyspace.
            command_options: options overriding those of the database.
        """

        logger.info(f"creating type '{name}'")
        self._api_commander.run(
            self._command(
                "createType",
                self._create_type_payload(name, definition, if_not_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating type '{name}'")

    def list_type_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("listTypes")
        response = self._api_commander.run(
            self._command(
                "listTypes", {}, keyspace, command_options, TimeoutKind.TABLE_ADMIN
            )
        )
        logger.info("finished listTypes")
        return self._type_names(response)

    def list_types(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[UserDefinedTypeDescriptor]:
        logger.info("listTypes")
        response = self._api_commander.run(
            self._command(
                "listTypes",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info("finished listTypes")
        return self._type_descriptors(response)

    def alter_type(
        self,
        name: str,
        operation: dict[str, Any],
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Alter a user-defined type, adding or renaming fields.

        Args:
            name: the type name.
            operation: the change, as built by `alter_type_add_fields` or
                `alter_type_rename_fields` (or both, merged in one dictionary).
            keyspace: the keyspace, if other than the working keyspace.
            command_options: options overriding those of the database.
        """

        logger.info(f"altering type '{name}'")
        self._api_commander.run(
            self._command(
                "alterType",
                self._alter_type_payload(name, operation),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished altering type '{name}'")

    def drop_type(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping type '{name}'")
        self._api_commander.run(
            self._command(
                "dropType",
                self._drop_payload(name, if_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping type '{name}'")

    def command(
        self,
        body: dict[str, Any],
        *,
        keyspace: str | None | UnsetType = _UNSET,
        collection_or_table_name: str | None = None,
        raise_api_errors: bool = True,
        command_options: CommandOptions | None = None,
    ) -> dict[str, Any]:
        """
        Send a raw Data API command and return the raw response.

        Args:
            body: the whole request body, e.g. `{"findCollections": {}}`.
            keyspace: the keyspace to target. If omitted, the working keyspace
                is used. Pass None explicitly for a database-level command
                (the URL then has no keyspace segment).
            collection_or_table_name: to target a collection or a table.
            raise_api_errors: if False, an "errors" list in the response is
                returned rather than raised.
            command_options: options overriding those of the database.

        Returns:
            the decoded response body.
        """

        logger.info("raw command, sync")
        response = self._api_commander.run(
            self._raw_command(
                body,
                keyspace,
                collection_or_table_name,
                raise_api_errors,
                command_options,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info("finished raw command, sync")
        return response.raw_response  # type: ignore[no-any-return]

    def get_admin(
        self, *, command_options: CommandOptions | None = None
    ) -> AstraDBDatabaseAdmin | DataAPIDatabaseAdmin:
        """
        The database admin for this database: an AstraDBDatabaseAdmin on
        Astra DB, a DataAPIDatabaseAdmin on other destinations.
        """

        return self._admin_for(command_options)


class AsyncDatabase(_BaseDatabase):
    """
    A Data API database with an awaitable interface. Its methods mirror those
    of `Database`; the objects it returns are AsyncCollection and AsyncTable.

    Example:
        >>> async_database = client.get_async_database(api_endpoint)
        >>> await async_database.list_table_names()
        ['games']
    """

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.aclose()

    def to_sync(self) -> Database:
        return Database(
            api_endpoint=self.api_endpoint,
            command_options=self.command_options,
        )

    def with_options(self, command_options: CommandOptions) -> AsyncDatabase:
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            command_options=self.command_options.with_override(command_options),
        )

    def get_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        document_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncCollection[Any]:
        return AsyncCollection(
            api_endpoint=self.api_endpoint,
            name=name,
            command_options=self._scoped_options(keyspace, command_options),
            document_schema=document_schema,
        )

    async def create_collection(
        self,
        name: str,
        *,
        definition: dict[str, Any] | None = None,
        keyspace: str | None = None,
        document_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncCollection[Any]:
        logger.info(f"creating collection '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "createCollection",
                self._create_collection_payload(name, definition),
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished creating collection '{name}', async")
        return self.get_collection(
            name,
            keyspace=keyspace,
            document_schema=document_schema,
            command_options=command_options,
        )

    async def list_collection_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("findCollections, async")
        response = await self._api_commander.async_run(
            self._command(
                "findCollections",
                {},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info("finished findCollections, async")
        return self._collection_names(response)

    async def list_collections(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[CollectionDescriptor]:
        logger.info("findCollections, async")
        response = await self._api_commander.async_run(
            self._command(
                "findCollections",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info("finished findCollections, async")
        return self._collection_descriptors(response)

    async def collection_exists(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> bool:
        return name in await self.list_collection_names(
            keyspace=keyspace, command_options=command_options
        )

    async def drop_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"deleting collection '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "deleteCollection",
                {"name": name},
                keyspace,
                command_options,
                TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished deleting collection '{name}', async")

    def get_table(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        row_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncTable[Any]:
        return AsyncTable(
            api_endpoint=self.api_endpoint,
            name=name,
            command_options=self._scoped_options(keyspace, command_options),
            row_schema=row_schema,
        )

    async def create_table(
        self,
        name: str,
        *,
        definition: dict[str, Any] | TableSchema,
        if_not_exists: bool | None = None,
        keyspace: str | None = None,
        row_schema: TableSchema | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncTable[Any]:
        logger.info(f"creating table '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "createTable",
                self._create_table_payload(name, definition, if_not_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating table '{name}', async")
        if row_schema is None and isinstance(definition, TableSchema):
            row_schema = definition
        return self.get_table(
            name,
            keyspace=keyspace,
            row_schema=row_schema,
            command_options=command_options,
        )

    async def list_table_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("listTables, async")
        response = await self._api_commander.async_run(
            self._command(
                "listTables", {}, keyspace, command_options, TimeoutKind.TABLE_ADMIN
            )
        )
        logger.info("finished listTables, async")
        return self._table_names(response)

    async def list_tables(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[TableDescriptor]:
        logger.info("listTables, async")
        response = await self._api_commander.async_run(
            self._command(
                "listTables",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info("finished listTables, async")
        return self._table_descriptors(response)

    async def drop_table(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping table '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "dropTable",
                self._drop_payload(name, if_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping table '{name}', async")

    async def create_type(
        self,
        name: str,
        *,
        definition: dict[str, Any] | UserDefinedTypeSpec,
        if_not_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"creating type '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "createType",
                self._create_type_payload(name, definition, if_not_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating type '{name}', async")

    async def list_type_names(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[str]:
        logger.info("listTypes, async")
        response = await self._api_commander.async_run(
            self._command(
                "listTypes", {}, keyspace, command_options, TimeoutKind.TABLE_ADMIN
            )
        )
        logger.info("finished listTypes, async")
        return self._type_names(response)

    async def list_types(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[UserDefinedTypeDescriptor]:
        logger.info("listTypes, async")
        response = await self._api_commander.async_run(
            self._command(
                "listTypes",
                {"options": {"explain": True}},
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info("finished listTypes, async")
        return self._type_descriptors(response)

    async def alter_type(
        self,
        name: str,
        operation: dict[str, Any],
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"altering type '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "alterType",
                self._alter_type_payload(name, operation),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished altering type '{name}', async")

    async def drop_type(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping type '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "dropType",
                self._drop_payload(name, if_exists),
                keyspace,
                command_options,
                TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping type '{name}', async")

    async def command(
        self,
        body: dict[str, Any],
        *,
        keyspace: str | None | UnsetType = _UNSET,
        collection_or_table_name: str | None = None,
        raise_api_errors: bool = True,
        command_options: CommandOptions | None = None,
    ) -> dict[str, Any]:
        logger.info("raw command, async")
        response = await self._api_commander.async_run(
            self._raw_command(
                body,
                keyspace,
                collection_or_table_name,
                raise_api_errors,
                command_options,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info("finished raw command, async")
        return response.raw_response  # type: ignore[no-any-return]

    def get_admin(
        self, *, command_options: CommandOptions | None = None
    ) -> AstraDBDatabaseAdmin | DataAPIDatabaseAdmin:
        return self._admin_for(command_options)
