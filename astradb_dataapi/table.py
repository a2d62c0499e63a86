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
from typing import Any, Generic, Iterable

from astradb_dataapi.collection import _count_from_status, _without_nones
from astradb_dataapi.constants import (
    ROW,
    DefaultRowType,
    FilterType,
    ProjectionType,
    SortType,
    UpdateType,
    VectorMetric,
    normalize_optional_projection,
)
from astradb_dataapi.cursors import AsyncCursor, Cursor, FindPage
from astradb_dataapi.exceptions import (
    DataAPIResponseException,
    DataAPIUsageException,
    MultiCallTimeoutManager,
    TableInsertManyException,
    UnexpectedDataAPIResponseException,
    _TimeoutContext,
)
from astradb_dataapi.info import TableDescriptor, TableIndexDescriptor
from astradb_dataapi.results import TableInsertManyResult, TableInsertOneResult
from astradb_dataapi.schema import TableSchema
from astradb_dataapi.settings.defaults import (
    DEFAULT_INSERT_MANY_CHUNK_SIZE,
    DEFAULT_INSERT_MANY_CONCURRENCY,
)
from astradb_dataapi.utils.api_commander import (
    APICommander,
    APIResponse,
    Command,
    ResponseShape,
    TimeoutKind,
)
from astradb_dataapi.utils.batching import (
    BatchPlan,
    BatchResult,
    async_run_batches,
    run_batches,
)
from astradb_dataapi.utils.command_options import (
    CommandOptions,
    FullCommandOptions,
    merge_command_options,
)
from astradb_dataapi.utils.url_builders import DataAPIUrlBuilder

logger = logging.getLogger(__name__)


def _index_definition(
    column: str, options: dict[str, Any] | None
) -> dict[str, Any]:
    return _without_nones(column=column, options=options or None)


class _BaseTable(Generic[ROW]):
    """
    The part of Table and AsyncTable independent of the I/O model:
    identity, row conversion and composition of the commands.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        name: str,
        command_options: FullCommandOptions,
        row_schema: TableSchema | None = None,
    ) -> None:
        if not command_options.keyspace:
            raise DataAPIUsageException(
                "No keyspace specified. A table requires a keyspace."
            )
        self._api_endpoint = api_endpoint
        self._name = name
        self.command_options = command_options
        self.row_schema = row_schema
        self._url_builder = DataAPIUrlBuilder(api_endpoint)
        self._api_commander = APICommander()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'keyspace="{self.keyspace}", api_endpoint="{self.api_endpoint}", '
            f"command_options={self.command_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, self.__class__):
            return all(
                [
                    self._name == other._name,
                    self._api_endpoint == other._api_endpoint,
                    self.command_options == other.command_options,
                    self.row_schema is other.row_schema,
                ]
            )
        return False

    @property
    def name(self) -> str:
        return self._name

    @property
    def keyspace(self) -> str:
        return self.command_options.keyspace

    @property
    def full_name(self) -> str:
        return f"{self.keyspace}.{self.name}"

    @property
    def api_endpoint(self) -> str:
        return self._api_endpoint

    def _command(
        self,
        command_name: str,
        payload: dict[str, Any],
        call_options: CommandOptions | None,
        *,
        table_scoped: bool = True,
        timeout_kind: TimeoutKind = TimeoutKind.REQUEST,
        timeout_context: _TimeoutContext | None = None,
        raise_api_errors: bool = True,
    ) -> Command:
        return Command(
            url_builder=self._url_builder,
            name=command_name,
            payload=payload,
            option_layers=[self.command_options, call_options],
            path_segments=[self._name] if table_scoped else [],
            timeout_kind=timeout_kind,
            timeout_context=timeout_context,
            raise_api_errors=raise_api_errors,
        )

    def _encode_row(self, row: Any) -> dict[str, Any]:
        if self.row_schema is not None:
            return self.row_schema.to_wire_row(row)
        return dict(row)

    def _decode_row(self, raw_row: dict[str, Any]) -> ROW:
        if self.row_schema is not None:
            return self.row_schema.from_wire_row(raw_row)  # type: ignore[no-any-return]
        return raw_row  # type: ignore[return-value]

    def _decode_optional(self, raw_row: dict[str, Any] | None) -> ROW | None:
        return self._decode_row(raw_row) if raw_row is not None else None

    def _keys_from_id_lists(
        self,
        raw_ids: list[list[Any]],
        primary_key_schema: dict[str, Any],
    ) -> tuple[list[dict[str, Any]], list[tuple[Any, ...]]]:
        """
        Turn the positional primary keys returned by the API into
        dictionaries (and tuples), in the order of the primary key schema.
        """

        key_names = list(primary_key_schema.keys())
        ids: list[dict[str, Any]] = []
        id_tuples: list[tuple[Any, ...]] = []
        for raw_id in raw_ids:
            if len(raw_id) != len(key_names):
                raise UnexpectedDataAPIResponseException(
                    text=(
                        f"Inserted primary key {raw_id} does not match "
                        f"the primary key schema {key_names}."
                    ),
                    raw_response=None,
                )
            values = [
                self.row_schema.decode_value(name, value)
                if self.row_schema is not None
                else value
                for name, value in zip(key_names, raw_id)
            ]
            ids.append(dict(zip(key_names, values)))
            id_tuples.append(tuple(values))
        return ids, id_tuples

    def _keys_from_status(
        self, status: dict[str, Any] | None
    ) -> tuple[list[dict[str, Any]], list[tuple[Any, ...]]]:
        if not status:
            return [], []
        if "documentResponses" in status:
            raw_ids = [
                row_resp["_id"]
                for row_resp in status["documentResponses"]
                if row_resp.get("status") == "OK"
            ]
        else:
            raw_ids = list(status.get("insertedIds") or [])
        if not raw_ids:
            return [], []
        if "primaryKeySchema" not in status:
            raise UnexpectedDataAPIResponseException(
                text=(
                    "received a 'status' without 'primaryKeySchema' "
                    f"in API response (received: {status})"
                ),
                raw_response=None,
            )
        return self._keys_from_id_lists(raw_ids, status["primaryKeySchema"])

    def _insert_one_result(self, response: APIResponse) -> TableInsertOneResult:
        status = response.status or {}
        if not status.get("insertedIds"):
            raise UnexpectedDataAPIResponseException(
                text="Response from insertOne API command has no 'insertedIds'.",
                raw_response=response.raw_response,
            )
        ids, id_tuples = self._keys_from_status(status)
        return TableInsertOneResult(
            raw_results=[response.raw_response],
            inserted_id=ids[0],
            inserted_id_tuple=id_tuples[0],
        )

    def _insert_many_plan(
        self,
        rows: Iterable[Any],
        ordered: bool,
        chunk_size: int | None,
        concurrency: int | None,
    ) -> BatchPlan[dict[str, Any]]:
        if concurrency is None:
            _concurrency = 1 if ordered else DEFAULT_INSERT_MANY_CONCURRENCY
        else:
            _concurrency = concurrency
        return BatchPlan(
            items=[self._encode_row(row) for row in rows],
            chunk_size=chunk_size or DEFAULT_INSERT_MANY_CHUNK_SIZE,
            concurrency=_concurrency,
            ordered=ordered,
        )

    @staticmethod
    def _insert_many_payload(chunk: list[dict[str, Any]], ordered: bool) -> dict[str, Any]:
        return {
            "documents": chunk,
            "options": {"ordered": ordered, "returnDocumentResponses": True},
        }

    def _insert_many_chunk_ids(self, response: APIResponse) -> list[Any]:
        ids, _ = self._keys_from_status(response.status)
        return ids

    @staticmethod
    def _insert_many_chunk_error(response: APIResponse) -> Exception | None:
        if not response.errors:
            return None
        return DataAPIResponseException.from_response(
            command=None,
            raw_response=response.raw_response or {},
        )

    @staticmethod
    def _bulk_timeout_manager(options: FullCommandOptions) -> MultiCallTimeoutManager:
        return MultiCallTimeoutManager(
            overall_timeout_ms=options.timeout_options.bulk_operation_timeout_ms,
            timeout_label=TimeoutKind.BULK_OPERATION.setting_name,
            connect_ms=options.timeout_options.connection_timeout_ms,
        )

    def _insert_many_outcome(
        self, plan: BatchPlan[dict[str, Any]], result: BatchResult[APIResponse]
    ) -> TableInsertManyResult:
        if result.exceptions:
            raise TableInsertManyException(
                inserted_ids=result.inserted_ids,
                exceptions=result.exceptions,
                succeeded_chunks=result.succeeded_chunks,
                failed_chunks=result.failed_chunks,
            )
        logger.info(f"finished inserting {len(plan.items)} rows in '{self.name}'")
        return TableInsertManyResult(
            raw_results=[
                result.chunk_results[index].raw_response
                for index in sorted(result.chunk_results)
            ],
            inserted_ids=result.inserted_ids,
            inserted_id_tuples=[tuple(pk.values()) for pk in result.inserted_ids],
        )

    @staticmethod
    def _find_payload(
        filter: FilterType | None,
        projection: ProjectionType | None,
        sort: SortType | None,
        skip: int | None,
        limit: int | None,
        include_similarity: bool | None,
        include_sort_vector: bool | None,
        page_state: str | None,
    ) -> dict[str, Any]:
        if skip is not None and not sort:
            raise DataAPIUsageException("Cannot use skip without a sort clause.")
        options = _without_nones(
            skip=skip,
            limit=limit or None,
            includeSimilarity=include_similarity,
            includeSortVector=include_sort_vector,
            pageState=page_state,
        )
        return _without_nones(
            filter=filter or {},
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=options or None,
        )

    @staticmethod
    def _find_one_payload(
        filter: FilterType | None,
        projection: ProjectionType | None,
        sort: SortType | None,
        include_similarity: bool | None,
    ) -> dict[str, Any]:
        return _without_nones(
            filter=filter or {},
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=(
                {"includeSimilarity": include_similarity}
                if include_similarity is not None
                else None
            ),
        )

    def _create_index_payload(
        self,
        name: str,
        column: str,
        options: dict[str, Any] | None,
        if_not_exists: bool | None,
    ) -> dict[str, Any]:
        return _without_nones(
            name=name,
            definition=_index_definition(column, options),
            options=(
                {"ifNotExists": if_not_exists} if if_not_exists is not None else None
            ),
        )

    @staticmethod
    def _vector_index_options(
        metric: str | None, source_model: str | None
    ) -> dict[str, Any] | None:
        if metric is not None and metric not in {
            VectorMetric.COSINE,
            VectorMetric.DOT_PRODUCT,
            VectorMetric.EUCLIDEAN,
        }:
            raise DataAPIUsageException(f"Unknown vector metric: '{metric}'.")
        return _without_nones(metric=metric, sourceModel=source_model) or None

    @staticmethod
    def _text_index_options(
        analyzer: str | dict[str, Any] | None,
    ) -> dict[str, Any] | None:
        if analyzer is None:
            return None
        if not analyzer:
            raise DataAPIUsageException("An empty text analyzer is not admitted.")
        return {"analyzer": analyzer}

    @staticmethod
    def _drop_payload(name: str, if_exists: bool | None) -> dict[str, Any]:
        return _without_nones(
            name=name,
            options={"ifExists": if_exists} if if_exists is not None else None,
        )

    @staticmethod
    def _index_names(response: APIResponse) -> list[str]:
        if "indexes" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listIndexes API command.",
                raw_response=response.raw_response,
            )
        return list(response.status["indexes"])

    @staticmethod
    def _index_descriptors(response: APIResponse) -> list[TableIndexDescriptor]:
        if "indexes" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from listIndexes API command.",
                raw_response=response.raw_response,
            )
        return [
            TableIndexDescriptor._from_dict(raw_index)
            for raw_index in response.status["indexes"]
        ]

    def _definition_from_list(self, response: APIResponse) -> TableDescriptor:
        for raw_descriptor in (response.status or {}).get("tables") or []:
            if raw_descriptor.get("name") == self.name:
                return TableDescriptor._from_dict(raw_descriptor)
        raise DataAPIUsageException(
            f"Table {self.full_name} not found on {self.api_endpoint}."
        )


class Table(_BaseTable[ROW]):
    """
    A Data API table: rows with a fixed set of typed columns and a primary
    key. Operations are blocking; see AsyncTable for the awaitable equivalent.

    Rows are plain dictionaries unless a `row_schema` is given, in which case
    they are converted to and from Python objects (e.g. dataclass instances)
    according to the schema.

    Example:
        >>> my_table = database.get_table("games")
        >>> my_table.insert_one({"match_id": "m1", "round": 1, "winner": "Ada"})
        TableInsertOneResult(inserted_id={'match_id': 'm1', 'round': 1}, ...)
        >>> my_table.find_one({"match_id": "m1", "round": 1})
        {'match_id': 'm1', 'round': 1, 'winner': 'Ada'}
    """

    def __enter__(self) -> Table[ROW]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self._api_commander.close()

    def to_async(self) -> AsyncTable[ROW]:
        return AsyncTable(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options,
            row_schema=self.row_schema,
        )

    def with_options(self, command_options: CommandOptions) -> Table[ROW]:
        return Table(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options.with_override(command_options),
            row_schema=self.row_schema,
        )

    def insert_one(
        self,
        row: ROW | DefaultRowType,
        *,
        command_options: CommandOptions | None = None,
    ) -> TableInsertOneResult:
        """
        Insert a row. A row with the same primary key as an existing one
        overwrites its columns.

        Returns:
            a TableInsertOneResult, with the primary key of the row both as
            a dictionary and as a tuple.
        """

        logger.info(f"insertOne on '{self.name}'")
        response = self._api_commander.run(
            self._command("insertOne", {"document": self._encode_row(row)}, command_options)
        )
        logger.info(f"finished insertOne on '{self.name}'")
        return self._insert_one_result(response)

    def insert_many(
        self,
        rows: Iterable[ROW | DefaultRowType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> TableInsertManyResult:
        """
        Insert rows in chunks, as for `Collection.insert_many`.

        Raises:
            DataAPIUsageException: for an ordered insertion with concurrency
                other than 1.
            TableInsertManyException: if some rows could not be written. Its
                `inserted_ids` are the primary keys of the rows that were.
        """

        plan = self._insert_many_plan(rows, ordered, chunk_size, concurrency)
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        logger.info(f"inserting {len(plan.items)} rows in '{self.name}'")

        def _send_chunk(index: int, chunk: list[dict[str, Any]]) -> APIResponse:
            return self._api_commander.run(
                self._command(
                    "insertMany",
                    self._insert_many_payload(chunk, ordered),
                    command_options,
                    timeout_context=timeout_manager.remaining_timeout(
                        cap_time_ms=options.timeout_options.request_timeout_ms,
                        cap_timeout_label=TimeoutKind.REQUEST.setting_name,
                    ),
                    raise_api_errors=False,
                )
            )

        result = run_batches(
            plan,
            send_chunk=_send_chunk,
            extract_ids=self._insert_many_chunk_ids,
            extract_error=self._insert_many_chunk_error,
            cancellation_token=options.cancellation_token,
        )
        return self._insert_many_outcome(plan, result)

    def find(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        skip: int | None = None,
        limit: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> Cursor[dict[str, Any], ROW]:
        """
        Find rows matching a filter, through a lazily-paginating Cursor.
        For a vector search, sort on a vector column:
        `sort={"embedding": [0.1, 0.2, 0.3]}`.
        """

        self._find_payload(
            filter,
            projection,
            sort,
            skip,
            limit,
            include_similarity,
            include_sort_vector,
            None,
        )

        def _fetch_page(page_state: str | None) -> FindPage[dict[str, Any]]:
            response = self._api_commander.run(
                self._command(
                    "find",
                    self._find_payload(
                        filter,
                        projection,
                        sort,
                        skip,
                        limit,
                        include_similarity,
                        include_sort_vector,
                        page_state,
                    ),
                    command_options,
                ),
                shape=ResponseShape.DATA_AND_STATUS,
            )
            return FindPage.from_response(response.data, response.status, "documents")

        return Cursor(fetch_page=_fetch_page, mapper=self._decode_row)

    def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> ROW | None:
        logger.info(f"findOne on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "findOne",
                self._find_one_payload(filter, projection, sort, include_similarity),
                command_options,
            ),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOne on '{self.name}'")
        return self._decode_optional((response.data or {}).get("document"))

    def update_one(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Update the row with the primary key given in the filter (which must
        specify it fully). With "$set", a missing row is created.
        """

        logger.info(f"updateOne on '{self.name}'")
        self._api_commander.run(
            self._command(
                "updateOne", {"filter": filter, "update": update}, command_options
            )
        )
        logger.info(f"finished updateOne on '{self.name}'")

    def delete_one(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"deleteOne on '{self.name}'")
        self._api_commander.run(
            self._command("deleteOne", {"filter": filter}, command_options)
        )
        logger.info(f"finished deleteOne on '{self.name}'")

    def delete_many(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Delete the rows matching a filter, which can select a whole partition
        or a range within it. An empty filter deletes all rows.
        """

        logger.info(f"deleteMany on '{self.name}'")
        self._api_commander.run(
            self._command(
                "deleteMany",
                {"filter": filter},
                command_options,
                timeout_kind=TimeoutKind.BULK_OPERATION,
            )
        )
        logger.info(f"finished deleteMany on '{self.name}'")

    def count_documents(
        self,
        filter: FilterType,
        *,
        upper_bound: int,
        command_options: CommandOptions | None = None,
    ) -> int:
        """Count the rows matching a filter, up to `upper_bound`."""
        logger.info(f"countDocuments on '{self.name}'")
        response = self._api_commander.run(
            self._command("countDocuments", {"filter": filter}, command_options)
        )
        logger.info(f"finished countDocuments on '{self.name}'")
        return _count_from_status(response, upper_bound, "countDocuments")

    def estimated_document_count(
        self, *, command_options: CommandOptions | None = None
    ) -> int:
        logger.info(f"estimatedDocumentCount on '{self.name}'")
        response = self._api_commander.run(
            self._command("estimatedDocumentCount", {}, command_options)
        )
        logger.info(f"finished estimatedDocumentCount on '{self.name}'")
        count = (response.status or {}).get("count")
        if count is None:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from estimatedDocumentCount API command.",
                raw_response=response.raw_response,
            )
        return int(count)

    def create_index(
        self,
        name: str,
        column: str,
        *,
        options: dict[str, Any] | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create an index on a (non-vector) column.

        Args:
            name: the index name, unique within the keyspace.
            column: the column to index.
            options: index options, e.g. `{"caseSensitive": False}` for text.
            if_not_exists: if True, an existing index with the same name is
                not an error.
            command_options: options overriding those of the table.
        """

        logger.info(f"creating index '{name}' on '{self.name}'")
        self._api_commander.run(
            self._command(
                "createIndex",
                self._create_index_payload(name, column, options, if_not_exists),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating index '{name}' on '{self.name}'")

    def create_vector_index(
        self,
        name: str,
        column: str,
        *,
        metric: str | None = None,
        source_model: str | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create a vector index, enabling ANN searches on a vector column.
        `metric` is one of the VectorMetric values.
        """

        logger.info(f"creating vector index '{name}' on '{self.name}'")
        self._api_commander.run(
            self._command(
                "createVectorIndex",
                self._create_index_payload(
                    name,
                    column,
                    self._vector_index_options(metric, source_model),
                    if_not_exists,
                ),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating vector index '{name}' on '{self.name}'")

    def create_text_index(
        self,
        name: str,
        column: str,
        *,
        analyzer: str | dict[str, Any] | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create a text index on a text column, enabling lexical matches
        (the "$match" filter operator) and lexical sorts on it.

        Args:
            name: the index name, unique within the keyspace.
            column: the column to index.
            analyzer: the analyzer to use: the name of a built-in analyzer
                (see TextAnalyzer, or a language such as "english"), or a
                custom analyzer as built by `analyzer_definition`. If omitted,
                the API applies its default analyzer.
            if_not_exists: if True, an existing index with the same name is
                not an error.
            command_options: options overriding those of the table.
        """

        logger.info(f"creating text index '{name}' on '{self.name}'")
        self._api_commander.run(
            self._command(
                "createTextIndex",
                self._create_index_payload(
                    name, column, self._text_index_options(analyzer), if_not_exists
                ),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating text index '{name}' on '{self.name}'")

    def list_index_names(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        logger.info(f"listIndexes on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "listIndexes",
                {"options": {}},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished listIndexes on '{self.name}'")
        return self._index_names(response)

    def list_indexes(
        self, *, command_options: CommandOptions | None = None
    ) -> list[TableIndexDescriptor]:
        logger.info(f"listIndexes on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "listIndexes",
                {"options": {"explain": True}},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished listIndexes on '{self.name}'")
        return self._index_descriptors(response)

    def drop_index(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """Drop an index. Indexes live in the keyspace, not in the table."""
        logger.info(f"dropping index '{name}'")
        self._api_commander.run(
            self._command(
                "dropIndex",
                self._drop_payload(name, if_exists),
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping index '{name}'")

    def alter(
        self,
        operation: dict[str, Any],
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Alter the table schema with one operation, such as those built by
        `alter_add_columns`, `alter_drop_columns`, `alter_add_vectorize` and
        `alter_drop_vectorize` from the schema module.
        """

        logger.info(f"alterTable on '{self.name}'")
        self._api_commander.run(
            self._command(
                "alterTable",
                {"operation": operation},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished alterTable on '{self.name}'")

    def definition(
        self, *, command_options: CommandOptions | None = None
    ) -> TableDescriptor:
        logger.info(f"getting definition of '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "listTables",
                {"options": {"explain": True}},
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        return self._definition_from_list(response)

    def drop(
        self,
        *,
        if_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """Drop the table, with all its rows and indexes."""
        logger.info(f"dropping table '{self.name}'")
        self._api_commander.run(
            self._command(
                "dropTable",
                self._drop_payload(self.name, if_exists),
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping table '{self.name}'")


class AsyncTable(_BaseTable[ROW]):
    """
    A Data API table with an awaitable interface, mirroring `Table`.

    Example:
        >>> my_async_table = async_database.get_table("games")
        >>> await my_async_table.insert_one({"match_id": "m1", "round": 1})
        TableInsertOneResult(inserted_id={'match_id': 'm1', 'round': 1}, ...)
    """

    async def __aenter__(self) -> AsyncTable[ROW]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.aclose()

    def to_sync(self) -> Table[ROW]:
        return Table(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options,
            row_schema=self.row_schema,
        )

    def with_options(self, command_options: CommandOptions) -> AsyncTable[ROW]:
        return AsyncTable(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options.with_override(command_options),
            row_schema=self.row_schema,
        )

    async def insert_one(
        self,
        row: ROW | DefaultRowType,
        *,
        command_options: CommandOptions | None = None,
    ) -> TableInsertOneResult:
        logger.info(f"insertOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("insertOne", {"document": self._encode_row(row)}, command_options)
        )
        logger.info(f"finished insertOne on '{self.name}', async")
        return self._insert_one_result(response)

    async def insert_many(
        self,
        rows: Iterable[ROW | DefaultRowType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> TableInsertManyResult:
        plan = self._insert_many_plan(rows, ordered, chunk_size, concurrency)
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        logger.info(f"inserting {len(plan.items)} rows in '{self.name}', async")

        async def _send_chunk(index: int, chunk: list[dict[str, Any]]) -> APIResponse:
            return await self._api_commander.async_run(
                self._command(
                    "insertMany",
                    self._insert_many_payload(chunk, ordered),
                    command_options,
                    timeout_context=timeout_manager.remaining_timeout(
                        cap_time_ms=options.timeout_options.request_timeout_ms,
                        cap_timeout_label=TimeoutKind.REQUEST.setting_name,
                    ),
                    raise_api_errors=False,
                )
            )

        result = await async_run_batches(
            plan,
            send_chunk=_send_chunk,
            extract_ids=self._insert_many_chunk_ids,
            extract_error=self._insert_many_chunk_error,
            cancellation_token=options.cancellation_token,
        )
        return self._insert_many_outcome(plan, result)

    def find(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        skip: int | None = None,
        limit: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncCursor[dict[str, Any], ROW]:
        self._find_payload(
            filter,
            projection,
            sort,
            skip,
            limit,
            include_similarity,
            include_sort_vector,
            None,
        )

        async def _fetch_page(page_state: str | None) -> FindPage[dict[str, Any]]:
            response = await self._api_commander.async_run(
                self._command(
                    "find",
                    self._find_payload(
                        filter,
                        projection,
                        sort,
                        skip,
                        limit,
                        include_similarity,
                        include_sort_vector,
                        page_state,
                    ),
                    command_options,
                ),
                shape=ResponseShape.DATA_AND_STATUS,
            )
            return FindPage.from_response(response.data, response.status, "documents")

        return AsyncCursor(fetch_page=_fetch_page, mapper=self._decode_row)

    async def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> ROW | None:
        logger.info(f"findOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "findOne",
                self._find_one_payload(filter, projection, sort, include_similarity),
                command_options,
            ),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOne on '{self.name}', async")
        return self._decode_optional((response.data or {}).get("document"))

    async def update_one(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"updateOne on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "updateOne", {"filter": filter, "update": update}, command_options
            )
        )
        logger.info(f"finished updateOne on '{self.name}', async")

    async def delete_one(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"deleteOne on '{self.name}', async")
        await self._api_commander.async_run(
            self._command("deleteOne", {"filter": filter}, command_options)
        )
        logger.info(f"finished deleteOne on '{self.name}', async")

    async def delete_many(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"deleteMany on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "deleteMany",
                {"filter": filter},
                command_options,
                timeout_kind=TimeoutKind.BULK_OPERATION,
            )
        )
        logger.info(f"finished deleteMany on '{self.name}', async")

    async def count_documents(
        self,
        filter: FilterType,
        *,
        upper_bound: int,
        command_options: CommandOptions | None = None,
    ) -> int:
        logger.info(f"countDocuments on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("countDocuments", {"filter": filter}, command_options)
        )
        logger.info(f"finished countDocuments on '{self.name}', async")
        return _count_from_status(response, upper_bound, "countDocuments")

    async def estimated_document_count(
        self, *, command_options: CommandOptions | None = None
    ) -> int:
        logger.info(f"estimatedDocumentCount on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("estimatedDocumentCount", {}, command_options)
        )
        logger.info(f"finished estimatedDocumentCount on '{self.name}', async")
        count = (response.status or {}).get("count")
        if count is None:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from estimatedDocumentCount API command.",
                raw_response=response.raw_response,
            )
        return int(count)

    async def create_index(
        self,
        name: str,
        column: str,
        *,
        options: dict[str, Any] | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"creating index '{name}' on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "createIndex",
                self._create_index_payload(name, column, options, if_not_exists),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating index '{name}' on '{self.name}', async")

    async def create_vector_index(
        self,
        name: str,
        column: str,
        *,
        metric: str | None = None,
        source_model: str | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"creating vector index '{name}' on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "createVectorIndex",
                self._create_index_payload(
                    name,
                    column,
                    self._vector_index_options(metric, source_model),
                    if_not_exists,
                ),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating vector index '{name}' on '{self.name}', async")

    async def create_text_index(
        self,
        name: str,
        column: str,
        *,
        analyzer: str | dict[str, Any] | None = None,
        if_not_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"creating text index '{name}' on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "createTextIndex",
                self._create_index_payload(
                    name, column, self._text_index_options(analyzer), if_not_exists
                ),
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished creating text index '{name}' on '{self.name}', async")

    async def list_index_names(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        logger.info(f"listIndexes on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "listIndexes",
                {"options": {}},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished listIndexes on '{self.name}', async")
        return self._index_names(response)

    async def list_indexes(
        self, *, command_options: CommandOptions | None = None
    ) -> list[TableIndexDescriptor]:
        logger.info(f"listIndexes on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "listIndexes",
                {"options": {"explain": True}},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished listIndexes on '{self.name}', async")
        return self._index_descriptors(response)

    async def drop_index(
        self,
        name: str,
        *,
        if_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping index '{name}', async")
        await self._api_commander.async_run(
            self._command(
                "dropIndex",
                self._drop_payload(name, if_exists),
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping index '{name}', async")

    async def alter(
        self,
        operation: dict[str, Any],
        *,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"alterTable on '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "alterTable",
                {"operation": operation},
                command_options,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished alterTable on '{self.name}', async")

    async def definition(
        self, *, command_options: CommandOptions | None = None
    ) -> TableDescriptor:
        logger.info(f"getting definition of '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "listTables",
                {"options": {"explain": True}},
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        return self._definition_from_list(response)

    async def drop(
        self,
        *,
        if_exists: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"dropping table '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "dropTable",
                self._drop_payload(self.name, if_exists),
                command_options,
                table_scoped=False,
                timeout_kind=TimeoutKind.TABLE_ADMIN,
            )
        )
        logger.info(f"finished dropping table '{self.name}', async")
