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
Unit tests for the DataAPIClient and the spawning of databases from it.
"""

from __future__ import annotations

import pytest
from pytest_httpserver import HTTPServer

from astradb_dataapi import (
    AsyncDatabase,
    CommandOptions,
    DataAPIClient,
    Database,
    TimeoutOptions,
)
from astradb_dataapi.constants import DataAPIDestination, Environment
from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    InvalidEnvironmentException,
)

DB_ID = "01234567-89ab-cdef-0123-456789abcdef"
PROD_ENDPOINT = f"https://{DB_ID}-us-east1.apps.astra.datastax.com"
DEV_ENDPOINT = f"https://{DB_ID}-us-east1.apps.astra-dev.datastax.com"


class TestDataAPIClient:
    @pytest.mark.describe("test of client construction and defaults")
    def test_client_construction(self) -> None:
        client = DataAPIClient("AstraCS:tkn")
        assert client.command_options.token == "AstraCS:tkn"
        assert client.command_options.environment == Environment.PROD
        assert client.command_options.destination == DataAPIDestination.ASTRA
        assert "AstraCS:tkn" not in repr(client)
        assert client == DataAPIClient("AstraCS:tkn")
        assert client != DataAPIClient("AstraCS:another")
        assert DataAPIClient(environment="DEV").command_options.environment == "dev"
        with pytest.raises(InvalidEnvironmentException):
            DataAPIClient(environment="staging")

    @pytest.mark.describe("test of named parameters taking precedence over options")
    def test_client_parameter_precedence(self) -> None:
        client = DataAPIClient(
            "t_named",
            destination="hcd",
            command_options=CommandOptions(
                token="t_layer",
                destination="dse",
                timeout_options=TimeoutOptions(request_timeout_ms=1234),
            ),
        )
        assert client.command_options.token == "t_named"
        assert client.command_options.destination == "hcd"
        assert client.command_options.timeout_options.request_timeout_ms == 1234

        tweaked = client.with_options(token="t_other")
        assert tweaked.command_options.token == "t_other"
        assert tweaked.command_options.destination == "hcd"
        assert client.command_options.token == "t_named"

    @pytest.mark.describe("test of spawning databases from the client")
    def test_client_get_database(self) -> None:
        client = DataAPIClient("t_client")
        database = client.get_database(PROD_ENDPOINT)
        assert isinstance(database, Database)
        assert database.keyspace == "default_keyspace"
        assert database.command_options.token == "t_client"
        assert client[PROD_ENDPOINT] == database

        database_2 = client.get_database(
            PROD_ENDPOINT + "/", token="t_db", keyspace="ks"
        )
        assert database_2.api_endpoint == PROD_ENDPOINT
        assert database_2.command_options.token == "t_db"
        assert database_2.keyspace == "ks"
        assert database_2 != database

        adatabase = client.get_async_database(PROD_ENDPOINT, keyspace="ks")
        assert isinstance(adatabase, AsyncDatabase)
        assert adatabase.to_sync() == client.get_database(PROD_ENDPOINT, keyspace="ks")

    @pytest.mark.describe("test of endpoint validation when spawning databases")
    def test_client_endpoint_validation(self, httpserver: HTTPServer) -> None:
        with pytest.raises(DataAPIUsageException):
            DataAPIClient("t").get_database("https://not.an.astra.endpoint")
        with pytest.raises(InvalidEnvironmentException):
            DataAPIClient("t").get_database(DEV_ENDPOINT)
        dev_database = DataAPIClient("t", environment="dev").get_database(DEV_ENDPOINT)
        assert dev_database.command_options.environment == Environment.DEV
        # self-deployed APIs accept any endpoint
        local_database = DataAPIClient("t", destination="hcd").get_database(
            httpserver.url_for("/")
        )
        assert local_database.command_options.destination == "hcd"

    @pytest.mark.describe("test of the client reaching a self-deployed API")
    def test_client_to_local_api(self, httpserver: HTTPServer) -> None:
        client = DataAPIClient(
            "Cassandra:dXNlcg==:cGFzcw==",
            destination=DataAPIDestination.HCD,
            callers=[("my_app", "2.0")],
        )
        database = client.get_database(httpserver.url_for("/"), keyspace="ks")
        httpserver.expect_oneshot_request(
            "/v1/ks",
            method="POST",
            json={"findCollections": {}},
            headers={"Token": "Cassandra:dXNlcg==:cGFzcw=="},
        ).respond_with_json({"status": {"collections": ["c"]}})
        with database:
            assert database.list_collection_names() == ["c"]
        (request,) = [req for req, _ in httpserver.log if req.path == "/v1/ks"]
        assert request.headers["User-Agent"].startswith("my_app/2.0 astradb_dataapi/")
