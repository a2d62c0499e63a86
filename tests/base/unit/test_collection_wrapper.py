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
Unit tests for the collection methods, against a mock Data API.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import pytest
import werkzeug
from pytest_httpserver import HTTPServer

from astradb_dataapi import AsyncCollection, Collection, CommandOptions
from astradb_dataapi.constants import ReturnDocument
from astradb_dataapi.cursors import CursorState
from astradb_dataapi.exceptions import (
    CollectionInsertManyException,
    DataAPIResponseException,
    DataAPIUsageException,
    TooManyDocumentsToCountException,
)
from astradb_dataapi.utils.cancellation import CancellationToken

COLLECTION_PATH = "/v1/keyspace/collection"
KEYSPACE_PATH = "/v1/keyspace"


def json_response(payload: Any) -> werkzeug.Response:
    return werkzeug.Response(json.dumps(payload), content_type="application/json")


def insert_many_handler(
    failing_ids: set[Any],
) -> Callable[[werkzeug.Request], werkzeug.Response]:
    """Accept all documents in insertMany, except those with an _id in failing_ids."""

    def _handler(request: werkzeug.Request) -> werkzeug.Response:
        documents = request.get_json()["insertMany"]["documents"]
        doc_responses = [
            {"_id": doc["_id"], "status": "ERROR" if doc["_id"] in failing_ids else "OK"}
            for doc in documents
        ]
        response: dict[str, Any] = {"status": {"documentResponses": doc_responses}}
        if any(doc["_id"] in failing_ids for doc in documents):
            response["errors"] = [{"errorCode": "DOCUMENT_ALREADY_EXISTS"}]
        return json_response(response)

    return _handler


def paged_find_handler(
    pages: list[list[dict[str, Any]]],
) -> Callable[[werkzeug.Request], werkzeug.Response]:
    """Serve the pages of a find, chained by a numeric page state."""

    def _handler(request: werkzeug.Request) -> werkzeug.Response:
        find_payload = request.get_json()["find"]
        page_state = (find_payload.get("options") or {}).get("pageState")
        index = int(page_state) if page_state else 0
        data: dict[str, Any] = {"documents": pages[index]}
        if index + 1 < len(pages):
            data["nextPageState"] = str(index + 1)
        return json_response({"data": data, "status": {"sortVector": [0.5, 0.5]}})

    return _handler


def sent_commands(httpserver: HTTPServer) -> list[dict[str, Any]]:
    return [json.loads(req.get_data()) for req, _ in httpserver.log]


class TestCollectionWrapper:
    @pytest.mark.describe("test of collection identity and options")
    def test_collection_identity(self, mock_collection: Collection[Any]) -> None:
        assert mock_collection.full_name == "keyspace.collection"
        assert mock_collection == mock_collection.to_async().to_sync()
        tweaked = mock_collection.with_options(CommandOptions(token="another"))
        assert tweaked != mock_collection
        assert tweaked.command_options.token == "another"
        assert tweaked.with_options(
            CommandOptions(token=mock_collection.command_options.token)
        ) == mock_collection
        assert "token=***" in repr(mock_collection)

    @pytest.mark.describe("test of insert_one, sync")
    def test_collection_insert_one_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            method="POST",
            json={"insertOne": {"document": {"_id": "a", "x": 1}}},
        ).respond_with_json({"status": {"insertedIds": ["a"]}})
        result = mock_collection.insert_one({"_id": "a", "x": 1})
        assert result.inserted_id == "a"
        assert result.raw_results == [{"status": {"insertedIds": ["a"]}}]

    @pytest.mark.describe("test of insert_many in concurrent chunks, sync")
    def test_collection_insert_many_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            insert_many_handler(set())
        )
        documents = [{"_id": i} for i in range(7)]
        result = mock_collection.insert_many(documents, chunk_size=3, concurrency=2)
        assert sorted(result.inserted_ids) == list(range(7))
        assert len(result.raw_results) == 3
        commands = sent_commands(httpserver)
        assert sorted(len(cmd["insertMany"]["documents"]) for cmd in commands) == [1, 3, 3]
        assert all(
            cmd["insertMany"]["options"]
            == {"ordered": False, "returnDocumentResponses": True}
            for cmd in commands
        )

    @pytest.mark.describe("test of insert_many with partial failures, sync")
    def test_collection_insert_many_failures_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            insert_many_handler({4})
        )
        documents = [{"_id": i} for i in range(8)]
        with pytest.raises(CollectionInsertManyException) as exc:
            mock_collection.insert_many(documents, chunk_size=2)
        assert sorted(exc.value.inserted_ids) == [0, 1, 2, 3, 5, 6, 7]
        assert exc.value.failed_chunks == [2]
        assert exc.value.succeeded_chunks == [0, 1, 3]
        assert isinstance(exc.value.exceptions[0], DataAPIResponseException)

    @pytest.mark.describe("test of ordered insert_many stopping at a failure, sync")
    def test_collection_insert_many_ordered_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            insert_many_handler({3})
        )
        documents = [{"_id": i} for i in range(8)]
        with pytest.raises(CollectionInsertManyException) as exc:
            mock_collection.insert_many(documents, chunk_size=2, ordered=True)
        assert exc.value.inserted_ids == [0, 1, 2]
        assert len(httpserver.log) == 2
        assert sent_commands(httpserver)[0]["insertMany"]["options"]["ordered"] is True

    @pytest.mark.describe("test of ordered concurrent insert_many being rejected")
    def test_collection_insert_many_ordered_concurrent(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        with pytest.raises(DataAPIUsageException):
            mock_collection.insert_many([{"_id": 1}], ordered=True, concurrency=3)
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of ordered concurrent insert_many being rejected, async")
    async def test_collection_insert_many_ordered_concurrent_async(
        self, httpserver: HTTPServer, mock_async_collection: AsyncCollection[Any]
    ) -> None:
        documents = [{"_id": i} for i in range(10)]
        with pytest.raises(DataAPIUsageException):
            await mock_async_collection.insert_many(
                documents, ordered=True, concurrency=4
            )
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of insert_many after cancellation, sync")
    def test_collection_insert_many_cancelled_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(CollectionInsertManyException) as exc:
            mock_collection.insert_many(
                [{"_id": i} for i in range(4)],
                chunk_size=2,
                command_options=CommandOptions(cancellation_token=token),
            )
        assert exc.value.inserted_ids == []
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of find with pagination, sync")
    def test_collection_find_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            paged_find_handler([[{"_id": 0}, {"_id": 1}], [{"_id": 2}]])
        )
        cursor = mock_collection.find(
            {"tag": "x"},
            projection=["_id"],
            sort={"$vector": [0.5, 0.5]},
            include_sort_vector=True,
        )
        # no request before the cursor is used
        assert len(httpserver.log) == 0
        assert [doc["_id"] for doc in cursor] == [0, 1, 2]
        assert cursor.state == CursorState.EXHAUSTED
        assert cursor.sort_vector == [0.5, 0.5]
        commands = sent_commands(httpserver)
        assert commands[0] == {
            "find": {
                "filter": {"tag": "x"},
                "projection": {"_id": True},
                "sort": {"$vector": [0.5, 0.5]},
                "options": {"includeSortVector": True},
            }
        }
        assert commands[1]["find"]["options"]["pageState"] == "1"

    @pytest.mark.describe("test of find_and_rerank with scores, sync")
    def test_collection_find_and_rerank_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {
                "data": {"documents": [{"_id": "C"}, {"_id": "A"}]},
                "status": {
                    "documentResponses": [
                        {"scores": {"$rerank": -9.1, "$vector": 0.8}},
                        {"scores": {"$rerank": -10.2, "$lexical": 0.4}},
                    ],
                    "sortVector": [0.1, 0.2],
                },
            }
        )
        cursor = mock_collection.find_and_rerank(
            {"wkd": {"$ne": "Tue"}},
            sort={"$hybrid": "Weekdays?"},
            limit=2,
            hybrid_limits={"$vector": 20, "$lexical": 10},
            include_scores=True,
            include_sort_vector=True,
        )
        assert len(httpserver.log) == 0
        results = cursor.to_list()
        assert [result.document["_id"] for result in results] == ["C", "A"]
        assert results[0].scores == {"$rerank": -9.1, "$vector": 0.8}
        assert results[1].scores["$lexical"] == 0.4
        assert cursor.sort_vector == [0.1, 0.2]
        assert cursor.state == CursorState.EXHAUSTED
        assert sent_commands(httpserver) == [
            {
                "findAndRerank": {
                    "filter": {"wkd": {"$ne": "Tue"}},
                    "sort": {"$hybrid": "Weekdays?"},
                    "options": {
                        "limit": 2,
                        "hybridLimits": {"$vector": 20, "$lexical": 10},
                        "includeScores": True,
                        "includeSortVector": True,
                    },
                }
            }
        ]

    @pytest.mark.describe("test of find_and_rerank without scores and its validation")
    def test_collection_find_and_rerank_no_scores(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        with pytest.raises(DataAPIUsageException):
            mock_collection.find_and_rerank({}, sort={})
        assert len(httpserver.log) == 0

        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"data": {"documents": [{"_id": "B", "wkd": "Tue"}]}, "status": {}}
        )
        results = list(
            mock_collection.find_and_rerank(
                sort={"$hybrid": {"$vector": [0.9, 0.8], "$lexical": "days"}},
                projection=["wkd"],
                rerank_on="wkd",
                rerank_query="week days",
            )
        )
        assert len(results) == 1
        assert results[0].document == {"_id": "B", "wkd": "Tue"}
        assert results[0].scores == {}
        assert sent_commands(httpserver)[0] == {
            "findAndRerank": {
                "projection": {"wkd": True},
                "sort": {"$hybrid": {"$vector": [0.9, 0.8], "$lexical": "days"}},
                "options": {"rerankOn": "wkd", "rerankQuery": "week days"},
            }
        }

    @pytest.mark.describe("test of find parameter validation")
    def test_collection_find_validation(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        with pytest.raises(DataAPIUsageException):
            mock_collection.find({}, skip=10)
        with pytest.raises(DataAPIUsageException):
            mock_collection.find_one_and_update(
                {}, {"$set": {"a": 1}}, return_document="sideways"
            )
        with pytest.raises(DataAPIUsageException):
            mock_collection.delete_many({})
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of find_one and find_one_and_update, sync")
    def test_collection_find_one_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            json={"findOne": {"filter": {"_id": "z"}}},
        ).respond_with_json({"data": {"document": None}})
        assert mock_collection.find_one({"_id": "z"}) is None

        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            json={
                "findOneAndUpdate": {
                    "filter": {"_id": "a"},
                    "update": {"$inc": {"n": 1}},
                    "options": {"returnDocument": "after", "upsert": False},
                }
            },
        ).respond_with_json({"data": {"document": {"_id": "a", "n": 2}}, "status": {}})
        updated = mock_collection.find_one_and_update(
            {"_id": "a"},
            {"$inc": {"n": 1}},
            return_document=ReturnDocument.AFTER,
        )
        assert updated == {"_id": "a", "n": 2}

    @pytest.mark.describe("test of count_documents and its limits, sync")
    def test_collection_count_documents_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"status": {"count": 12}}
        )
        assert mock_collection.count_documents({}, upper_bound=100) == 12

        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"status": {"count": 12}}
        )
        with pytest.raises(TooManyDocumentsToCountException) as exc:
            mock_collection.count_documents({}, upper_bound=10)
        assert exc.value.server_max_count_exceeded is False

        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"status": {"count": 1000, "moreData": True}}
        )
        with pytest.raises(TooManyDocumentsToCountException) as exc2:
            mock_collection.count_documents({}, upper_bound=5000)
        assert exc2.value.server_max_count_exceeded is True

        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"status": {"count": 5555}}
        )
        assert mock_collection.estimated_document_count() == 5555

    @pytest.mark.describe("test of update_many following the page state, sync")
    def test_collection_update_many_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"matchedCount": 20, "modifiedCount": 20, "nextPageState": "p1"}}
        )
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"matchedCount": 5, "modifiedCount": 4}}
        )
        result = mock_collection.update_many({"a": 1}, {"$set": {"b": 2}})
        assert result.update_info == {
            "n": 25,
            "updatedExisting": True,
            "ok": 1.0,
            "nModified": 24,
        }
        assert len(result.raw_results) == 2
        commands = sent_commands(httpserver)
        assert "pageState" not in commands[0]["updateMany"]["options"]
        assert commands[1]["updateMany"]["options"]["pageState"] == "p1"

    @pytest.mark.describe("test of update_one with upsert, sync")
    def test_collection_update_one_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            json={
                "updateOne": {
                    "filter": {"a": 1},
                    "update": {"$set": {"b": 2}},
                    "options": {"upsert": True},
                }
            },
        ).respond_with_json(
            {"status": {"matchedCount": 0, "modifiedCount": 0, "upsertedId": "new"}}
        )
        result = mock_collection.update_one({"a": 1}, {"$set": {"b": 2}}, upsert=True)
        assert result.update_info["upserted"] == "new"
        assert result.update_info["n"] == 1
        assert result.update_info["updatedExisting"] is False

    @pytest.mark.describe("test of delete_many repeating while more data, sync")
    def test_collection_delete_many_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"deletedCount": 20, "moreData": True}}
        )
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"deletedCount": 3}}
        )
        result = mock_collection.delete_many({"a": 1})
        assert result.deleted_count == 23
        assert len(httpserver.log) == 2

        httpserver.expect_oneshot_request(
            COLLECTION_PATH, json={"deleteMany": {}}
        ).respond_with_json({"status": {}})
        assert mock_collection.delete_all().deleted_count == -1

        httpserver.expect_oneshot_request(
            COLLECTION_PATH, json={"deleteOne": {"filter": {"a": 1}}}
        ).respond_with_json({"status": {"deletedCount": 1}})
        assert mock_collection.delete_one({"a": 1}).deleted_count == 1

    @pytest.mark.describe("test of collection definition and drop, sync")
    def test_collection_definition_drop_sync(
        self, httpserver: HTTPServer, mock_collection: Collection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(
            KEYSPACE_PATH,
            json={"findCollections": {"options": {"explain": True}}},
        ).respond_with_json(
            {
                "status": {
                    "collections": [
                        {"name": "other"},
                        {"name": "collection", "options": {"vector": {"dimension": 2}}},
                    ]
                }
            }
        )
        descriptor = mock_collection.definition()
        assert descriptor.definition == {"vector": {"dimension": 2}}

        httpserver.expect_oneshot_request(
            KEYSPACE_PATH,
            json={"deleteCollection": {"name": "collection"}},
        ).respond_with_json({"status": {"ok": 1}})
        mock_collection.drop()

    @pytest.mark.describe("test of insert_many in concurrent chunks, async")
    async def test_collection_insert_many_async(
        self, httpserver: HTTPServer, mock_async_collection: AsyncCollection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            insert_many_handler({9})
        )
        documents = [{"_id": i} for i in range(10)]
        async with mock_async_collection as acol:
            with pytest.raises(CollectionInsertManyException) as exc:
                await acol.insert_many(documents, chunk_size=4)
        assert sorted(exc.value.inserted_ids) == list(range(9))
        assert exc.value.failed_chunks == [2]

    @pytest.mark.describe("test of find with pagination, async")
    async def test_collection_find_async(
        self, httpserver: HTTPServer, mock_async_collection: AsyncCollection[Any]
    ) -> None:
        httpserver.expect_request(COLLECTION_PATH).respond_with_handler(
            paged_find_handler([[{"_id": 0}], [{"_id": 1}], []])
        )
        async with mock_async_collection as acol:
            cursor = acol.find({}, limit=10)
            assert await cursor.to_list() == [{"_id": 0}, {"_id": 1}]
        assert len(httpserver.log) == 3

    @pytest.mark.describe("test of find_and_rerank with scores, async")
    async def test_collection_find_and_rerank_async(
        self, httpserver: HTTPServer, mock_async_collection: AsyncCollection[Any]
    ) -> None:
        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {
                "data": {"documents": [{"_id": "D"}]},
                "status": {"documentResponses": [{"scores": {"$rerank": 1.5}}]},
            }
        )
        async with mock_async_collection as acol:
            cursor = acol.find_and_rerank(
                sort={"$hybrid": "reds"}, include_scores=True
            )
            results = [result async for result in cursor]
        assert [(res.document["_id"], res.scores["$rerank"]) for res in results] == [
            ("D", 1.5)
        ]
        assert sent_commands(httpserver)[0]["findAndRerank"]["options"] == {
            "includeScores": True
        }

    @pytest.mark.describe("test of delete_many and count, async")
    async def test_collection_delete_count_async(
        self, httpserver: HTTPServer, mock_async_collection: AsyncCollection[Any]
    ) -> None:
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"deletedCount": 2, "moreData": True}}
        )
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"deletedCount": 1}}
        )
        httpserver.expect_ordered_request(COLLECTION_PATH).respond_with_json(
            {"status": {"count": 0}}
        )
        async with mock_async_collection as acol:
            assert (await acol.delete_many({"a": 1})).deleted_count == 3
            assert await acol.count_documents({}, upper_bound=10) == 0
