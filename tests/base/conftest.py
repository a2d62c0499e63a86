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
Fixtures for the unit tests: database, collection and table objects pointing
to a local `pytest_httpserver` instance, as a self-deployed Data API would be
(i.e. URLs of the form "{endpoint}/v1/{keyspace}/{collection}").
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from pytest_httpserver import HTTPServer

from astradb_dataapi import (
    AsyncCollection,
    AsyncDatabase,
    AsyncTable,
    Collection,
    CommandOptions,
    DataAPIClient,
    Database,
    Table,
    TimeoutOptions,
)

MOCK_KEYSPACE = "keyspace"
MOCK_COLLECTION_NAME = "collection"
MOCK_TABLE_NAME = "table"
MOCK_TOKEN = "AstraCS:mock_token"


@pytest.fixture
def mock_client() -> DataAPIClient:
    return DataAPIClient(
        MOCK_TOKEN,
        destination="hcd",
        callers=[("test_suite", "1.0")],
        command_options=CommandOptions(
            timeout_options=TimeoutOptions(request_timeout_ms=5000),
        ),
    )


@pytest.fixture
def mock_database(
    httpserver: HTTPServer, mock_client: DataAPIClient
) -> Iterator[Database]:
    database = mock_client.get_database(
        httpserver.url_for("/"),
        keyspace=MOCK_KEYSPACE,
    )
    with database:
        yield database


@pytest.fixture
def mock_async_database(
    httpserver: HTTPServer, mock_client: DataAPIClient
) -> AsyncDatabase:
    return mock_client.get_async_database(
        httpserver.url_for("/"),
        keyspace=MOCK_KEYSPACE,
    )


@pytest.fixture
def mock_collection(mock_database: Database) -> Iterator[Collection[dict[str, Any]]]:
    with mock_database.get_collection(MOCK_COLLECTION_NAME) as collection:
        yield collection


@pytest.fixture
def mock_async_collection(
    mock_collection: Collection[dict[str, Any]],
) -> AsyncCollection[dict[str, Any]]:
    return mock_collection.to_async()


@pytest.fixture
def mock_table(mock_database: Database) -> Iterator[Table[dict[str, Any]]]:
    with mock_database.get_table(MOCK_TABLE_NAME) as table:
        yield table


@pytest.fixture
def mock_async_table(mock_table: Table[dict[str, Any]]) -> AsyncTable[dict[str, Any]]:
    return mock_table.to_async()
