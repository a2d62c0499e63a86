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

from astradb_dataapi.constants import (
    DOC,
    DefaultDocumentType,
    FilterType,
    HybridSortType,
    ProjectionType,
    ReturnDocument,
    SortType,
    UpdateType,
    normalize_optional_projection,
)
from astradb_dataapi.cursors import AsyncCursor, Cursor, FindPage, RerankedResult
from astradb_dataapi.exceptions import (
    CollectionInsertManyException,
    DataAPIResponseException,
    DataAPIUsageException,
    MultiCallTimeoutManager,
    TooManyDocumentsToCountException,
    UnexpectedDataAPIResponseException,
    _TimeoutContext,
)
from astradb_dataapi.info import CollectionDescriptor
from astradb_dataapi.results import (
    CollectionDeleteResult,
    CollectionInsertManyResult,
    CollectionInsertOneResult,
    CollectionUpdateResult,
)
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


def _prepare_update_info(statuses: list[dict[str, Any]]) -> dict[str, Any]:
    matched = sum(status.get("matchedCount", 0) for status in statuses)
    modified = sum(status.get("modifiedCount", 0) for status in statuses)
    upserted_ids = [status["upsertedId"] for status in statuses if "upsertedId" in status]
    update_info: dict[str, Any] = {
        "n": matched + len(upserted_ids),
        "updatedExisting": modified > 0,
        "ok": 1.0,
        "nModified": modified,
    }
    if len(upserted_ids) == 1:
        update_info["upserted"] = upserted_ids[0]
    elif upserted_ids:
        update_info["upserteds"] = upserted_ids
    return update_info


def _insert_many_chunk_ids(response: APIResponse) -> list[Any]:
    status = response.status or {}
    if "documentResponses" in status:
        return [
            doc_resp["_id"]
            for doc_resp in status["documentResponses"]
            if doc_resp.get("status") == "OK"
        ]
    return list(status.get("insertedIds") or [])


def _insert_many_chunk_error(response: APIResponse) -> Exception | None:
    if not response.errors:
        return None
    return DataAPIResponseException.from_response(
        command=None,
        raw_response=response.raw_response or {},
    )


def _count_from_status(
    response: APIResponse, upper_bound: int, command_name: str
) -> int:
    status = response.status or {}
    if "count" not in status:
        raise UnexpectedDataAPIResponseException(
            text=f"Faulty response from {command_name} API command.",
            raw_response=response.raw_response,
        )
    count: int = status["count"]
    if status.get("moreData", False):
        raise TooManyDocumentsToCountException(
            text=f"Count exceeds {count}, the maximum allowed by the server",
            server_max_count_exceeded=True,
        )
    if count > upper_bound:
        raise TooManyDocumentsToCountException(
            text="Count exceeds required upper bound",
            server_max_count_exceeded=False,
        )
    return count


def _without_nones(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


class _BaseCollection(Generic[DOC]):
    """
    What the sync and async collections share: identity, options snapshot,
    conversion of documents and composition of the commands.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        name: str,
        command_options: FullCommandOptions,
        document_schema: TableSchema | None = None,
    ) -> None:
        if not command_options.keyspace:
            raise DataAPIUsageException(
                "No keyspace specified. A collection requires a keyspace."
            )
        self._api_endpoint = api_endpoint
        self._name = name
        self.command_options = command_options
        self.document_schema = document_schema
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
                    self.document_schema is other.document_schema,
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
        """The fully-qualified collection name, "keyspace.name"."""
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
        collection_scoped: bool = True,
        timeout_kind: TimeoutKind = TimeoutKind.REQUEST,
        timeout_context: _TimeoutContext | None = None,
        raise_api_errors: bool = True,
    ) -> Command:
        return Command(
            url_builder=self._url_builder,
            name=command_name,
            payload=payload,
            option_layers=[self.command_options, call_options],
            path_segments=[self._name] if collection_scoped else [],
            timeout_kind=timeout_kind,
            timeout_context=timeout_context,
            raise_api_errors=raise_api_errors,
        )

    def _encode_document(self, document: Any) -> dict[str, Any]:
        if self.document_schema is not None:
            return self.document_schema.to_wire_row(document)
        return dict(document)

    def _decode_document(self, raw_document: dict[str, Any]) -> DOC:
        if self.document_schema is not None:
            return self.document_schema.from_wire_row(raw_document)  # type: ignore[no-any-return]
        return raw_document  # type: ignore[return-value]

    def _decode_optional(self, raw_document: dict[str, Any] | None) -> DOC | None:
        return self._decode_document(raw_document) if raw_document is not None else None

    def _insert_many_plan(
        self,
        documents: Iterable[Any],
        ordered: bool,
        chunk_size: int | None,
        concurrency: int | None,
    ) -> BatchPlan[dict[str, Any]]:
        if concurrency is None:
            _concurrency = 1 if ordered else DEFAULT_INSERT_MANY_CONCURRENCY
        else:
            _concurrency = concurrency
        return BatchPlan(
            items=[self._encode_document(document) for document in documents],
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

    @staticmethod
    def _bulk_timeout_manager(options: FullCommandOptions) -> MultiCallTimeoutManager:
        return MultiCallTimeoutManager(
            overall_timeout_ms=options.timeout_options.bulk_operation_timeout_ms,
            timeout_label=TimeoutKind.BULK_OPERATION.setting_name,
            connect_ms=options.timeout_options.connection_timeout_ms,
        )

    @staticmethod
    def _request_cap(
        timeout_manager: MultiCallTimeoutManager, options: FullCommandOptions
    ) -> _TimeoutContext:
        return timeout_manager.remaining_timeout(
            cap_time_ms=options.timeout_options.request_timeout_ms,
            cap_timeout_label=TimeoutKind.REQUEST.setting_name,
        )

    def _insert_many_outcome(
        self, plan: BatchPlan[dict[str, Any]], result: BatchResult[APIResponse]
    ) -> CollectionInsertManyResult:
        if result.exceptions:
            raise CollectionInsertManyException(
                inserted_ids=result.inserted_ids,
                exceptions=result.exceptions,
                succeeded_chunks=result.succeeded_chunks,
                failed_chunks=result.failed_chunks,
            )
        logger.info(f"finished inserting {len(plan.items)} documents in '{self.name}'")
        return CollectionInsertManyResult(
            raw_results=[
                result.chunk_results[index].raw_response
                for index in sorted(result.chunk_results)
            ],
            inserted_ids=result.inserted_ids,
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
    def _find_and_rerank_payload(
        filter: FilterType | None,
        sort: HybridSortType,
        projection: ProjectionType | None,
        limit: int | None,
        hybrid_limits: int | dict[str, int] | None,
        include_scores: bool | None,
        include_sort_vector: bool | None,
        rerank_on: str | None,
        rerank_query: str | None,
        page_state: str | None,
    ) -> dict[str, Any]:
        if not sort:
            raise DataAPIUsageException("find_and_rerank requires a '$hybrid' sort.")
        options = _without_nones(
            limit=limit or None,
            hybridLimits=hybrid_limits or None,
            includeScores=include_scores,
            includeSortVector=include_sort_vector,
            rerankOn=rerank_on,
            rerankQuery=rerank_query,
            pageState=page_state,
        )
        return _without_nones(
            filter=filter or None,
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=options or None,
        )

    def _decode_reranked(
        self, result: RerankedResult[dict[str, Any]]
    ) -> RerankedResult[DOC]:
        return RerankedResult(
            document=self._decode_document(result.document), scores=result.scores
        )

    @staticmethod
    def _find_one_and_modify_payload(
        filter: FilterType,
        *,
        projection: ProjectionType | None,
        sort: SortType | None,
        return_document: str | None = None,
        upsert: bool | None = None,
        update: UpdateType | None = None,
        replacement: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if return_document not in {None, ReturnDocument.BEFORE, ReturnDocument.AFTER}:
            raise DataAPIUsageException(
                f"Invalid return_document: '{return_document}'."
            )
        options = _without_nones(returnDocument=return_document, upsert=upsert)
        return _without_nones(
            filter=filter,
            update=update,
            replacement=replacement,
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=options or None,
        )

    def _definition_from_list(self, response: APIResponse) -> CollectionDescriptor:
        for raw_descriptor in (response.status or {}).get("collections") or []:
            if raw_descriptor.get("name") == self.name:
                return CollectionDescriptor._from_dict(raw_descriptor)
        raise DataAPIUsageException(
            f"Collection {self.full_name} not found on {self.api_endpoint}."
        )


class Collection(_BaseCollection[DOC]):
    """
    A Data API collection, the object to interact with for reading and writing
    documents. Operations are blocking; see AsyncCollection for the
    awaitable equivalent.

    This class is not meant to be instantiated directly, rather obtained from
    a Database through `get_collection` or `create_collection`.

    Args:
        api_endpoint: the API endpoint of the database.
        name: the collection name.
        command_options: the resolved options for this collection. The
            keyspace of the collection is part of these.
        document_schema: an optional TableSchema used to convert documents
            to and from Python objects.

    Example:
        >>> my_coll = database.get_collection("my_collection")
        >>> my_coll.insert_one({"_id": "a", "x": 1})
        CollectionInsertOneResult(inserted_id='a', raw_results=...)
        >>> my_coll.find_one({"_id": "a"})
        {'_id': 'a', 'x': 1}
    """

    def __enter__(self) -> Collection[DOC]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self._api_commander.close()

    def to_async(self) -> AsyncCollection[DOC]:
        """Create an AsyncCollection for the same collection and options."""
        return AsyncCollection(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options,
            document_schema=self.document_schema,
        )

    def with_options(self, command_options: CommandOptions) -> Collection[DOC]:
        """Create a clone of this collection with some options overridden."""
        return Collection(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options.with_override(command_options),
            document_schema=self.document_schema,
        )

    def insert_one(
        self,
        document: DOC | DefaultDocumentType,
        *,
        command_options: CommandOptions | None = None,
    ) -> CollectionInsertOneResult:
        """
        Insert a single document in the collection.

        Args:
            document: the document to insert. If it has no `_id`, the API
                generates one.
            command_options: options overriding those of the collection
                for this call.

        Returns:
            a CollectionInsertOneResult, carrying the `_id` of the document.
        """

        logger.info(f"insertOne on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "insertOne",
                {"document": self._encode_document(document)},
                command_options,
            )
        )
        logger.info(f"finished insertOne on '{self.name}'")
        inserted_ids = (response.status or {}).get("insertedIds") or []
        if not inserted_ids:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from insert_one API command.",
                raw_response=response.raw_response,
            )
        return CollectionInsertOneResult(
            raw_results=[response.raw_response],
            inserted_id=inserted_ids[0],
        )

    def insert_many(
        self,
        documents: Iterable[DOC | DefaultDocumentType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> CollectionInsertManyResult:
        """
        Insert a list of documents, in chunks written with one request each.

        Args:
            documents: the documents to insert.
            ordered: if True, the chunks are written one after the other, in
                order, stopping at the first failure. If False (the default),
                chunks are written concurrently and all are attempted.
            chunk_size: how many documents go in each request.
            concurrency: how many requests can be in flight at once.
                Defaults to 1 for ordered insertions, 20 otherwise. An ordered
                insertion with a concurrency other than 1 is rejected.
            command_options: options overriding those of the collection
                for this call. The whole method is subject to the bulk
                operation timeout, each request to the request timeout.

        Returns:
            a CollectionInsertManyResult with the `_id` of all documents.

        Raises:
            DataAPIUsageException: for an ordered insertion with concurrency
                other than 1 (before any request is made).
            CollectionInsertManyException: if some documents could not be
                written. The exception tells which ones were.
        """

        plan = self._insert_many_plan(documents, ordered, chunk_size, concurrency)
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        logger.info(f"inserting {len(plan.items)} documents in '{self.name}'")

        def _send_chunk(index: int, chunk: list[dict[str, Any]]) -> APIResponse:
            return self._api_commander.run(
                self._command(
                    "insertMany",
                    self._insert_many_payload(chunk, ordered),
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                    raise_api_errors=False,
                )
            )

        result = run_batches(
            plan,
            send_chunk=_send_chunk,
            extract_ids=_insert_many_chunk_ids,
            extract_error=_insert_many_chunk_error,
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
    ) -> Cursor[dict[str, Any], DOC]:
        """
        Find the documents matching a filter, returning a cursor that fetches
        pages of results as they are needed. No request is issued until the
        cursor is advanced or iterated over.

        Args:
            filter: a filter on documents, e.g. `{"genre": "fantasy"}`.
            projection: which fields to return, e.g. `["title", "year"]`
                or `{"$vector": True}`.
            sort: a sort clause, e.g. `{"year": SortMode.DESCENDING}` or
                `{"$vector": [0.1, 0.2, 0.3]}` for a vector search.
            skip: how many documents to skip (requires a sort).
            limit: the maximum number of documents to return.
            include_similarity: whether to return "$similarity" in documents,
                in a vector search.
            include_sort_vector: whether the API should echo the sort vector,
                available then as the cursor's `sort_vector`.
            command_options: options overriding those of the collection for
                the requests of this cursor.

        Returns:
            a Cursor over the documents.
        """

        # validate upfront, before any page is requested
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

        return Cursor(fetch_page=_fetch_page, mapper=self._decode_document)

    def find_and_rerank(
        self,
        filter: FilterType | None = None,
        *,
        sort: HybridSortType,
        projection: ProjectionType | None = None,
        limit: int | None = None,
        hybrid_limits: int | dict[str, int] | None = None,
        include_scores: bool | None = None,
        include_sort_vector: bool | None = None,
        rerank_on: str | None = None,
        rerank_query: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> Cursor[RerankedResult[dict[str, Any]], RerankedResult[DOC]]:
        """
        Find relevant documents by a hybrid search, combining a vector and
        a lexical retrieval whose results are then reranked. The collection
        must be configured for lexical search and reranking.

        Args:
            filter: a filter on documents, e.g. `{"genre": "fantasy"}`.
            sort: the hybrid sort clause, such as `{"$hybrid": "query text"}`
                or `{"$hybrid": {"$vector": [...], "$lexical": "text"}}`.
            projection: which fields to return.
            limit: the maximum number of documents returned after reranking.
            hybrid_limits: how many documents each retrieval fetches before
                reranking: a number, or a per-retrieval dictionary such as
                `{"$vector": 20, "$lexical": 10}`.
            include_scores: whether to return the scores of each document,
                found then in the `scores` of each RerankedResult.
            include_sort_vector: whether the API should echo the query vector,
                available then as the cursor's `sort_vector`.
            rerank_on: the field to rerank on, for collections without
                server-side embeddings.
            rerank_query: the query text for the reranker, for collections
                without server-side embeddings.
            command_options: options overriding those of the collection for
                the requests of this cursor.

        Returns:
            a Cursor over RerankedResult objects, each wrapping a document
            and its scores.
        """

        self._find_and_rerank_payload(
            filter,
            sort,
            projection,
            limit,
            hybrid_limits,
            include_scores,
            include_sort_vector,
            rerank_on,
            rerank_query,
            None,
        )

        def _fetch_page(
            page_state: str | None,
        ) -> FindPage[RerankedResult[dict[str, Any]]]:
            response = self._api_commander.run(
                self._command(
                    "findAndRerank",
                    self._find_and_rerank_payload(
                        filter,
                        sort,
                        projection,
                        limit,
                        hybrid_limits,
                        include_scores,
                        include_sort_vector,
                        rerank_on,
                        rerank_query,
                        page_state,
                    ),
                    command_options,
                ),
                shape=ResponseShape.DATA_AND_STATUS,
            )
            return FindPage.from_rerank_response(response.data, response.status)

        return Cursor(fetch_page=_fetch_page, mapper=self._decode_reranked)

    def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        """
        Find one document matching a filter, or None if there is none.
        See `find` for the meaning of the parameters.
        """

        payload = _without_nones(
            filter=filter or {},
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=(
                {"includeSimilarity": include_similarity}
                if include_similarity is not None
                else None
            ),
        )
        logger.info(f"findOne on '{self.name}'")
        response = self._api_commander.run(
            self._command("findOne", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOne on '{self.name}'")
        return self._decode_optional((response.data or {}).get("document"))

    def count_documents(
        self,
        filter: FilterType,
        *,
        upper_bound: int,
        command_options: CommandOptions | None = None,
    ) -> int:
        """
        Count the documents matching a filter, exactly.

        Args:
            filter: a filter on documents (`{}` for all documents).
            upper_bound: the maximum count one is willing to accept: beyond it,
                an exception is raised rather than the count returned.
            command_options: options overriding those of the collection.

        Raises:
            TooManyDocumentsToCountException: if the count exceeds the upper
                bound or the limit of the API.
        """

        logger.info(f"countDocuments on '{self.name}'")
        response = self._api_commander.run(
            self._command("countDocuments", {"filter": filter}, command_options)
        )
        logger.info(f"finished countDocuments on '{self.name}'")
        return _count_from_status(response, upper_bound, "countDocuments")

    def estimated_document_count(
        self, *, command_options: CommandOptions | None = None
    ) -> int:
        """A server-side estimate of the number of documents in the collection."""
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

    def update_one(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        """
        Update a single document matching a filter.

        Args:
            filter: the filter selecting the document.
            update: the update clause, e.g. `{"$set": {"status": "active"}}`.
            sort: if several documents match, the sort decides which one.
            upsert: if True and no document matches, a new one is inserted.
            command_options: options overriding those of the collection.
        """

        payload = _without_nones(
            filter=filter, update=update, sort=sort, options={"upsert": upsert}
        )
        logger.info(f"updateOne on '{self.name}'")
        response = self._api_commander.run(
            self._command("updateOne", payload, command_options)
        )
        logger.info(f"finished updateOne on '{self.name}'")
        return CollectionUpdateResult(
            raw_results=[response.raw_response],
            update_info=_prepare_update_info([response.status or {}]),
        )

    def update_many(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        """
        Update all documents matching a filter. The API may process the update
        in several rounds: the method keeps issuing requests, following the
        page state, until all matches are updated, within the bulk timeout.
        """

        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        statuses: list[dict[str, Any]] = []
        raw_results: list[dict[str, Any]] = []
        page_state: str | None = None
        logger.info(f"starting update_many on '{self.name}'")
        while True:
            payload = {
                "filter": filter,
                "update": update,
                "options": _without_nones(upsert=upsert, pageState=page_state),
            }
            logger.info(f"updateMany on '{self.name}'")
            response = self._api_commander.run(
                self._command(
                    "updateMany",
                    payload,
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                )
            )
            logger.info(f"finished updateMany on '{self.name}'")
            statuses.append(response.status or {})
            raw_results.append(response.raw_response)
            page_state = (response.status or {}).get("nextPageState")
            if not page_state:
                break
        logger.info(f"finished update_many on '{self.name}'")
        return CollectionUpdateResult(
            raw_results=raw_results,
            update_info=_prepare_update_info(statuses),
        )

    def replace_one(
        self,
        filter: FilterType,
        replacement: DOC | DefaultDocumentType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        """Replace a single document matching a filter with a new one."""
        payload = self._find_one_and_modify_payload(
            filter,
            projection={"_id": True},
            sort=sort,
            return_document=ReturnDocument.BEFORE,
            upsert=upsert,
            replacement=self._encode_document(replacement),
        )
        logger.info(f"findOneAndReplace on '{self.name}'")
        response = self._api_commander.run(
            self._command("findOneAndReplace", payload, command_options)
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return CollectionUpdateResult(
            raw_results=[response.raw_response],
            update_info=_prepare_update_info([response.status or {}]),
        )

    def find_one_and_update(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        """
        Update a document matching a filter and return it, either as it was
        before the update (the default) or after it, depending on
        `return_document`. Return None if nothing matched (and no upsert).
        """

        payload = self._find_one_and_modify_payload(
            filter,
            projection=projection,
            sort=sort,
            return_document=return_document,
            upsert=upsert,
            update=update,
        )
        logger.info(f"findOneAndUpdate on '{self.name}'")
        response = self._api_commander.run(
            self._command("findOneAndUpdate", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndUpdate on '{self.name}'")
        return self._decode_optional((response.data or {}).get("document"))

    def find_one_and_replace(
        self,
        filter: FilterType,
        replacement: DOC | DefaultDocumentType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        """Like `find_one_and_update`, but replacing the whole document."""
        payload = self._find_one_and_modify_payload(
            filter,
            projection=projection,
            sort=sort,
            return_document=return_document,
            upsert=upsert,
            replacement=self._encode_document(replacement),
        )
        logger.info(f"findOneAndReplace on '{self.name}'")
        response = self._api_commander.run(
            self._command("findOneAndReplace", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return self._decode_optional((response.data or {}).get("document"))

    def find_one_and_delete(
        self,
        filter: FilterType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        """Delete a document matching a filter and return it (None if no match)."""
        payload = self._find_one_and_modify_payload(
            filter, projection=projection, sort=sort
        )
        logger.info(f"findOneAndDelete on '{self.name}'")
        response = self._api_commander.run(
            self._command("findOneAndDelete", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndDelete on '{self.name}'")
        return self._decode_optional((response.data or {}).get("document"))

    def delete_one(
        self,
        filter: FilterType,
        *,
        sort: SortType | None = None,
        command_options: CommandOptions | None = None,
    ) -> CollectionDeleteResult:
        """Delete at most one document matching a filter."""
        logger.info(f"deleteOne on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "deleteOne", _without_nones(filter=filter, sort=sort), command_options
            )
        )
        logger.info(f"finished deleteOne on '{self.name}'")
        deleted_count = (response.status or {}).get("deletedCount")
        if deleted_count is None:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from deleteOne API command.",
                raw_response=response.raw_response,
            )
        return CollectionDeleteResult(
            raw_results=[response.raw_response],
            deleted_count=deleted_count,
        )

    def delete_many(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> CollectionDeleteResult:
        """
        Delete all documents matching a filter. The API deletes a limited
        number of documents per request: the method repeats the request as
        long as the API reports more matches, within the bulk timeout.
        """

        if not filter:
            raise DataAPIUsageException(
                "An empty filter is not accepted by delete_many: "
                "use delete_all to empty the collection."
            )
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        raw_results: list[dict[str, Any]] = []
        deleted_count = 0
        logger.info(f"starting delete_many on '{self.name}'")
        while True:
            logger.info(f"deleteMany on '{self.name}'")
            response = self._api_commander.run(
                self._command(
                    "deleteMany",
                    {"filter": filter},
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                )
            )
            logger.info(f"finished deleteMany on '{self.name}'")
            status = response.status or {}
            if "deletedCount" not in status:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from deleteMany API command.",
                    raw_response=response.raw_response,
                )
            raw_results.append(response.raw_response)
            deleted_count += status["deletedCount"]
            if not status.get("moreData", False):
                break
        logger.info(f"finished delete_many on '{self.name}'")
        return CollectionDeleteResult(
            raw_results=raw_results,
            deleted_count=deleted_count,
        )

    def delete_all(
        self, *, command_options: CommandOptions | None = None
    ) -> CollectionDeleteResult:
        """
        Delete all documents in the collection. The API does not report
        how many were deleted: the result has a `deleted_count` of -1.
        """

        logger.info(f"deleteMany(all) on '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "deleteMany",
                {},
                command_options,
                timeout_kind=TimeoutKind.BULK_OPERATION,
            )
        )
        logger.info(f"finished deleteMany(all) on '{self.name}'")
        return CollectionDeleteResult(
            raw_results=[response.raw_response],
            deleted_count=(response.status or {}).get("deletedCount", -1),
        )

    def definition(
        self, *, command_options: CommandOptions | None = None
    ) -> CollectionDescriptor:
        """Query the API for the definition (options) of this collection."""
        logger.info(f"getting definition of '{self.name}'")
        response = self._api_commander.run(
            self._command(
                "findCollections",
                {"options": {"explain": True}},
                command_options,
                collection_scoped=False,
                timeout_kind=TimeoutKind.COLLECTION_ADMIN,
            )
        )
        return self._definition_from_list(response)

    def drop(self, *, command_options: CommandOptions | None = None) -> None:
        """Drop the collection, deleting all its documents."""
        logger.info(f"dropping collection '{self.name}'")
        self._api_commander.run(
            self._command(
                "deleteCollection",
                {"name": self.name},
                command_options,
                collection_scoped=False,
                timeout_kind=TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished dropping collection '{self.name}'")


class AsyncCollection(_BaseCollection[DOC]):
    """
    A Data API collection, with an awaitable interface. Its methods mirror
    those of `Collection`, except that they are coroutines (and `find`
    returns an AsyncCursor).

    Example:
        >>> my_async_coll = async_database.get_collection("my_collection")
        >>> await my_async_coll.insert_one({"_id": "a", "x": 1})
        CollectionInsertOneResult(inserted_id='a', raw_results=...)
        >>> async for doc in my_async_coll.find({}):
        ...     print(doc)
    """

    async def __aenter__(self) -> AsyncCollection[DOC]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.aclose()

    def to_sync(self) -> Collection[DOC]:
        """Create a (sync) Collection for the same collection and options."""
        return Collection(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options,
            document_schema=self.document_schema,
        )

    def with_options(self, command_options: CommandOptions) -> AsyncCollection[DOC]:
        return AsyncCollection(
            api_endpoint=self._api_endpoint,
            name=self._name,
            command_options=self.command_options.with_override(command_options),
            document_schema=self.document_schema,
        )

    async def insert_one(
        self,
        document: DOC | DefaultDocumentType,
        *,
        command_options: CommandOptions | None = None,
    ) -> CollectionInsertOneResult:
        logger.info(f"insertOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "insertOne",
                {"document": self._encode_document(document)},
                command_options,
            )
        )
        logger.info(f"finished insertOne on '{self.name}', async")
        inserted_ids = (response.status or {}).get("insertedIds") or []
        if not inserted_ids:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from insert_one API command.",
                raw_response=response.raw_response,
            )
        return CollectionInsertOneResult(
            raw_results=[response.raw_response],
            inserted_id=inserted_ids[0],
        )

    async def insert_many(
        self,
        documents: Iterable[DOC | DefaultDocumentType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> CollectionInsertManyResult:
        """
        Insert a list of documents in chunks; see `Collection.insert_many`.
        Concurrent chunks are written as tasks on the running event loop.
        """

        plan = self._insert_many_plan(documents, ordered, chunk_size, concurrency)
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        logger.info(f"inserting {len(plan.items)} documents in '{self.name}', async")

        async def _send_chunk(index: int, chunk: list[dict[str, Any]]) -> APIResponse:
            return await self._api_commander.async_run(
                self._command(
                    "insertMany",
                    self._insert_many_payload(chunk, ordered),
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                    raise_api_errors=False,
                )
            )

        result = await async_run_batches(
            plan,
            send_chunk=_send_chunk,
            extract_ids=_insert_many_chunk_ids,
            extract_error=_insert_many_chunk_error,
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
    ) -> AsyncCursor[dict[str, Any], DOC]:
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

        return AsyncCursor(fetch_page=_fetch_page, mapper=self._decode_document)

    def find_and_rerank(
        self,
        filter: FilterType | None = None,
        *,
        sort: HybridSortType,
        projection: ProjectionType | None = None,
        limit: int | None = None,
        hybrid_limits: int | dict[str, int] | None = None,
        include_scores: bool | None = None,
        include_sort_vector: bool | None = None,
        rerank_on: str | None = None,
        rerank_query: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncCursor[RerankedResult[dict[str, Any]], RerankedResult[DOC]]:
        """
        Find relevant documents by a hybrid search, reranking the results;
        see `Collection.find_and_rerank`.
        """

        self._find_and_rerank_payload(
            filter,
            sort,
            projection,
            limit,
            hybrid_limits,
            include_scores,
            include_sort_vector,
            rerank_on,
            rerank_query,
            None,
        )

        async def _fetch_page(
            page_state: str | None,
        ) -> FindPage[RerankedResult[dict[str, Any]]]:
            response = await self._api_commander.async_run(
                self._command(
                    "findAndRerank",
                    self._find_and_rerank_payload(
                        filter,
                        sort,
                        projection,
                        limit,
                        hybrid_limits,
                        include_scores,
                        include_sort_vector,
                        rerank_on,
                        rerank_query,
                        page_state,
                    ),
                    command_options,
                ),
                shape=ResponseShape.DATA_AND_STATUS,
            )
            return FindPage.from_rerank_response(response.data, response.status)

        return AsyncCursor(fetch_page=_fetch_page, mapper=self._decode_reranked)

    async def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        payload = _without_nones(
            filter=filter or {},
            projection=normalize_optional_projection(projection),
            sort=sort,
            options=(
                {"includeSimilarity": include_similarity}
                if include_similarity is not None
                else None
            ),
        )
        logger.info(f"findOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("findOne", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOne on '{self.name}', async")
        return self._decode_optional((response.data or {}).get("document"))

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

    async def update_one(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        payload = _without_nones(
            filter=filter, update=update, sort=sort, options={"upsert": upsert}
        )
        logger.info(f"updateOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("updateOne", payload, command_options)
        )
        logger.info(f"finished updateOne on '{self.name}', async")
        return CollectionUpdateResult(
            raw_results=[response.raw_response],
            update_info=_prepare_update_info([response.status or {}]),
        )

    async def update_many(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        statuses: list[dict[str, Any]] = []
        raw_results: list[dict[str, Any]] = []
        page_state: str | None = None
        logger.info(f"starting update_many on '{self.name}', async")
        while True:
            payload = {
                "filter": filter,
                "update": update,
                "options": _without_nones(upsert=upsert, pageState=page_state),
            }
            logger.info(f"updateMany on '{self.name}', async")
            response = await self._api_commander.async_run(
                self._command(
                    "updateMany",
                    payload,
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                )
            )
            logger.info(f"finished updateMany on '{self.name}', async")
            statuses.append(response.status or {})
            raw_results.append(response.raw_response)
            page_state = (response.status or {}).get("nextPageState")
            if not page_state:
                break
        logger.info(f"finished update_many on '{self.name}', async")
        return CollectionUpdateResult(
            raw_results=raw_results,
            update_info=_prepare_update_info(statuses),
        )

    async def replace_one(
        self,
        filter: FilterType,
        replacement: DOC | DefaultDocumentType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        command_options: CommandOptions | None = None,
    ) -> CollectionUpdateResult:
        payload = self._find_one_and_modify_payload(
            filter,
            projection={"_id": True},
            sort=sort,
            return_document=ReturnDocument.BEFORE,
            upsert=upsert,
            replacement=self._encode_document(replacement),
        )
        logger.info(f"findOneAndReplace on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("findOneAndReplace", payload, command_options)
        )
        logger.info(f"finished findOneAndReplace on '{self.name}', async")
        return CollectionUpdateResult(
            raw_results=[response.raw_response],
            update_info=_prepare_update_info([response.status or {}]),
        )

    async def find_one_and_update(
        self,
        filter: FilterType,
        update: UpdateType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        payload = self._find_one_and_modify_payload(
            filter,
            projection=projection,
            sort=sort,
            return_document=return_document,
            upsert=upsert,
            update=update,
        )
        logger.info(f"findOneAndUpdate on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("findOneAndUpdate", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndUpdate on '{self.name}', async")
        return self._decode_optional((response.data or {}).get("document"))

    async def find_one_and_replace(
        self,
        filter: FilterType,
        replacement: DOC | DefaultDocumentType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        payload = self._find_one_and_modify_payload(
            filter,
            projection=projection,
            sort=sort,
            return_document=return_document,
            upsert=upsert,
            replacement=self._encode_document(replacement),
        )
        logger.info(f"findOneAndReplace on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("findOneAndReplace", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndReplace on '{self.name}', async")
        return self._decode_optional((response.data or {}).get("document"))

    async def find_one_and_delete(
        self,
        filter: FilterType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        command_options: CommandOptions | None = None,
    ) -> DOC | None:
        payload = self._find_one_and_modify_payload(
            filter, projection=projection, sort=sort
        )
        logger.info(f"findOneAndDelete on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command("findOneAndDelete", payload, command_options),
            shape=ResponseShape.DATA_AND_STATUS,
        )
        logger.info(f"finished findOneAndDelete on '{self.name}', async")
        return self._decode_optional((response.data or {}).get("document"))

    async def delete_one(
        self,
        filter: FilterType,
        *,
        sort: SortType | None = None,
        command_options: CommandOptions | None = None,
    ) -> CollectionDeleteResult:
        logger.info(f"deleteOne on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "deleteOne", _without_nones(filter=filter, sort=sort), command_options
            )
        )
        logger.info(f"finished deleteOne on '{self.name}', async")
        deleted_count = (response.status or {}).get("deletedCount")
        if deleted_count is None:
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from deleteOne API command.",
                raw_response=response.raw_response,
            )
        return CollectionDeleteResult(
            raw_results=[response.raw_response],
            deleted_count=deleted_count,
        )

    async def delete_many(
        self,
        filter: FilterType,
        *,
        command_options: CommandOptions | None = None,
    ) -> CollectionDeleteResult:
        if not filter:
            raise DataAPIUsageException(
                "An empty filter is not accepted by delete_many: "
                "use delete_all to empty the collection."
            )
        options = merge_command_options(self.command_options, command_options)
        timeout_manager = self._bulk_timeout_manager(options)
        raw_results: list[dict[str, Any]] = []
        deleted_count = 0
        logger.info(f"starting delete_many on '{self.name}', async")
        while True:
            logger.info(f"deleteMany on '{self.name}', async")
            response = await self._api_commander.async_run(
                self._command(
                    "deleteMany",
                    {"filter": filter},
                    command_options,
                    timeout_context=self._request_cap(timeout_manager, options),
                )
            )
            logger.info(f"finished deleteMany on '{self.name}', async")
            status = response.status or {}
            if "deletedCount" not in status:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from deleteMany API command.",
                    raw_response=response.raw_response,
                )
            raw_results.append(response.raw_response)
            deleted_count += status["deletedCount"]
            if not status.get("moreData", False):
                break
        logger.info(f"finished delete_many on '{self.name}', async")
        return CollectionDeleteResult(
            raw_results=raw_results,
            deleted_count=deleted_count,
        )

    async def delete_all(
        self, *, command_options: CommandOptions | None = None
    ) -> CollectionDeleteResult:
        logger.info(f"deleteMany(all) on '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "deleteMany",
                {},
                command_options,
                timeout_kind=TimeoutKind.BULK_OPERATION,
            )
        )
        logger.info(f"finished deleteMany(all) on '{self.name}', async")
        return CollectionDeleteResult(
            raw_results=[response.raw_response],
            deleted_count=(response.status or {}).get("deletedCount", -1),
        )

    async def definition(
        self, *, command_options: CommandOptions | None = None
    ) -> CollectionDescriptor:
        logger.info(f"getting definition of '{self.name}', async")
        response = await self._api_commander.async_run(
            self._command(
                "findCollections",
                {"options": {"explain": True}},
                command_options,
                collection_scoped=False,
                timeout_kind=TimeoutKind.COLLECTION_ADMIN,
            )
        )
        return self._definition_from_list(response)

    async def drop(self, *, command_options: CommandOptions | None = None) -> None:
        logger.info(f"dropping collection '{self.name}', async")
        await self._api_commander.async_run(
            self._command(
                "deleteCollection",
                {"name": self.name},
                command_options,
                collection_scoped=False,
                timeout_kind=TimeoutKind.COLLECTION_ADMIN,
            )
        )
        logger.info(f"finished dropping collection '{self.name}', async")
