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
Unit tests for the admin objects: the DevOps API is impersonated by a local
`pytest_httpserver` by redirecting the "prod" environment to it.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import pytest
import werkzeug
from pytest_httpserver import HTTPServer

from astradb_dataapi import DataAPIClient, Database
from astradb_dataapi.admin import (
    AstraDBAdmin,
    AstraDBDatabaseAdmin,
    DataAPIDatabaseAdmin,
)
from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    DevOpsAPIHttpException,
    InvalidEnvironmentException,
    UnexpectedDataAPIResponseException,
)
from astradb_dataapi.settings import defaults

DB_ID = "01234567-89ab-cdef-0123-456789abcdef"
DB_REGION = "us-east1"
DB_ENDPOINT = f"https://{DB_ID}-{DB_REGION}.apps.astra.datastax.com"
ADMIN_TOKEN = "AstraCS:org_admin"


def db_dict(
    db_id: str = DB_ID,
    name: str = "my_db",
    status: str = "ACTIVE",
    keyspaces: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "id": db_id,
        "status": status,
        "info": {
            "name": name,
            "region": DB_REGION,
            "cloudProvider": "GCP",
            "keyspaces": keyspaces or ["default_keyspace"],
        },
    }


@pytest.fixture
def mock_dev_ops(
    httpserver: HTTPServer, monkeypatch: pytest.MonkeyPatch
) -> Iterator[HTTPServer]:
    monkeypatch.setitem(defaults.DEV_OPS_URL_ENV_MAP, "prod", httpserver.url_for("/"))
    monkeypatch.setattr("astradb_dataapi.admin.DEV_OPS_DATABASE_POLL_INTERVAL_MS", 10)
    monkeypatch.setattr("astradb_dataapi.admin.DEV_OPS_KEYSPACE_POLL_INTERVAL_MS", 10)
    yield httpserver


@pytest.fixture
def astra_admin(mock_dev_ops: HTTPServer) -> Iterator[AstraDBAdmin]:
    admin = DataAPIClient(ADMIN_TOKEN).get_admin()
    yield admin
    admin.close()


class TestAstraDBAdmin:
    @pytest.mark.describe("test of the admin only existing for Astra DB")
    def test_admin_destination(self) -> None:
        assert isinstance(DataAPIClient("t").get_admin(), AstraDBAdmin)
        with pytest.raises(InvalidEnvironmentException):
            DataAPIClient("t", destination="hcd").get_admin()

    @pytest.mark.describe("test of listing databases across pages, sync")
    def test_admin_list_databases_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        db_ids = [f"0123456{i}-89ab-cdef-0123-456789abcdef" for i in range(3)]
        mock_dev_ops.expect_oneshot_request(
            "/v2/databases",
            method="GET",
            query_string={"limit": "2", "include": "all"},
            headers={"Authorization": f"Bearer {ADMIN_TOKEN}"},
        ).respond_with_json([db_dict(db_ids[0], "a"), db_dict(db_ids[1], "b")])
        mock_dev_ops.expect_oneshot_request(
            "/v2/databases",
            method="GET",
            query_string={"limit": "2", "include": "all", "starting_after": db_ids[1]},
        ).respond_with_json([db_dict(db_ids[2], "c", status="TERMINATED")])
        db_infos = astra_admin.list_databases(include="all", page_size=2)
        assert [db_info.name for db_info in db_infos] == ["a", "b", "c"]
        assert db_infos[2].status == "TERMINATED"
        assert db_infos[0].api_endpoint == (
            f"https://{db_ids[0]}-{DB_REGION}.apps.astra.datastax.com"
        )
        assert db_infos[0].keyspaces == ["default_keyspace"]
        assert mock_dev_ops.check_assertions() is None

    @pytest.mark.describe("test of a faulty database listing, sync")
    def test_admin_list_databases_faulty_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json(
            {"unexpected": "object"}
        )
        with pytest.raises(UnexpectedDataAPIResponseException):
            astra_admin.list_database_names()
        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json(
            {"errors": [{"ID": 2000, "message": "Bad token"}]}, status=401
        )
        with pytest.raises(DevOpsAPIHttpException):
            astra_admin.list_database_names()

    @pytest.mark.describe("test of database info and existence, sync")
    def test_admin_database_info_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(keyspaces=["ks1", "ks2"])
        )
        db_info = astra_admin.database_info(DB_ID)
        assert db_info.id == DB_ID
        assert db_info.region == DB_REGION
        assert db_info.cloud_provider == "GCP"
        assert db_info.keyspaces == ["ks1", "ks2"]
        assert db_info.environment == "prod"
        assert db_info.api_endpoint == DB_ENDPOINT

        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json(
            [db_dict(name="my_db")]
        )
        assert astra_admin.database_exists("my_db")

        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict()
        )
        db_admin = astra_admin.get_database_admin(DB_ID)
        assert isinstance(db_admin, AstraDBDatabaseAdmin)
        assert db_admin.api_endpoint == DB_ENDPOINT
        assert db_admin.id == DB_ID

    @pytest.mark.describe("test of database creation and wait, sync")
    def test_admin_create_database_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request(
            "/v2/databases",
            method="POST",
            json={
                "name": "new_db",
                "tier": "serverless",
                "cloudProvider": "AWS",
                "region": DB_REGION,
                "capacityUnits": 1,
                "dbType": "vector",
                "keyspace": "ks0",
            },
        ).respond_with_response(
            werkzeug.Response(status=201, headers={"Location": f"/v2/databases/{DB_ID}"})
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="PENDING")
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="INITIALIZING")
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="ACTIVE")
        )
        db_admin = astra_admin.create_database(
            "new_db", cloud_provider="AWS", region=DB_REGION, keyspace="ks0"
        )
        assert db_admin.id == DB_ID
        assert db_admin.api_endpoint == DB_ENDPOINT
        assert len(mock_dev_ops.log) == 4
        assert mock_dev_ops.check_assertions() is None

    @pytest.mark.describe("test of database creation failures, sync")
    def test_admin_create_database_failures_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request(
            "/v2/databases", method="POST"
        ).respond_with_response(werkzeug.Response(status=202))
        with pytest.raises(UnexpectedDataAPIResponseException):
            astra_admin.create_database("new_db")

        mock_dev_ops.expect_oneshot_request(
            "/v2/databases", method="POST"
        ).respond_with_response(
            werkzeug.Response(status=201, headers={"Location": DB_ID})
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="ERROR")
        )
        with pytest.raises(UnexpectedDataAPIResponseException):
            astra_admin.create_database("new_db")

    @pytest.mark.describe("test of database termination and wait, sync")
    def test_admin_drop_database_sync(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request(
            f"/v2/databases/{DB_ID}/terminate", method="POST"
        ).respond_with_response(werkzeug.Response(status=202))
        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json(
            [db_dict(status="TERMINATING")]
        )
        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json([])
        astra_admin.drop_database(DB_ID)
        assert len(mock_dev_ops.log) == 3
        assert mock_dev_ops.check_assertions() is None

    @pytest.mark.describe("test of database creation and termination, async")
    async def test_admin_create_drop_database_async(
        self, mock_dev_ops: HTTPServer, astra_admin: AstraDBAdmin
    ) -> None:
        mock_dev_ops.expect_oneshot_request(
            "/v2/databases", method="POST"
        ).respond_with_response(
            werkzeug.Response(
                status=201,
                headers={"Location": f"https://example.com/v2/databases/{DB_ID}"},
            )
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="PENDING")
        )
        mock_dev_ops.expect_oneshot_request(f"/v2/databases/{DB_ID}").respond_with_json(
            db_dict(status="ACTIVE")
        )
        db_admin = await astra_admin.async_create_database("new_db")
        assert db_admin.id == DB_ID

        mock_dev_ops.expect_oneshot_request(
            f"/v2/databases/{DB_ID}/terminate", method="POST"
        ).respond_with_response(werkzeug.Response(status=202))
        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json([])
        await astra_admin.async_drop_database(DB_ID)

        mock_dev_ops.expect_oneshot_request("/v2/databases").respond_with_json(
            [db_dict(name="x")]
        )
        assert await astra_admin.async_list_database_names() == ["x"]
        await astra_admin.aclose()
        assert mock_dev_ops.check_assertions() is None


class TestAstraDBDatabaseAdmin:
    @pytest.mark.describe("test of the database admin from its endpoint")
    def test_database_admin_identity(self) -> None:
        client = DataAPIClient(ADMIN_TOKEN)
        db_admin = client.get_database(DB_ENDPOINT).get_admin()
        assert isinstance(db_admin, AstraDBDatabaseAdmin)
        assert db_admin.id == DB_ID
        assert db_admin.region == DB_REGION
        database = db_admin.get_database(keyspace="ks9")
        assert isinstance(database, Database)
        assert database.keyspace == "ks9"
        assert database.api_endpoint == DB_ENDPOINT
        assert db_admin.get_async_database(keyspace="ks9").to_sync() == database
        with pytest.raises(DataAPIUsageException):
            AstraDBDatabaseAdmin(
                api_endpoint="http://localhost:8181",
                command_options=client.command_options,
            )

    @pytest.mark.describe("test of keyspace creation and wait, sync")
    def test_database_admin_create_keyspace_sync(self, mock_dev_ops: HTTPServer) -> None:
        db_admin = DataAPIClient(ADMIN_TOKEN).get_database(DB_ENDPOINT).get_admin()
        assert isinstance(db_admin, AstraDBDatabaseAdmin)
        info_path = f"/v2/databases/{DB_ID}"
        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(db_dict())
        mock_dev_ops.expect_oneshot_request(
            f"{info_path}/keyspaces/ks2", method="POST"
        ).respond_with_response(werkzeug.Response(status=201))
        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(
            db_dict(status="MAINTENANCE", keyspaces=["default_keyspace", "ks2"])
        )
        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(
            db_dict(keyspaces=["default_keyspace", "ks2"])
        )
        db_admin.create_keyspace("ks2")
        assert len(mock_dev_ops.log) == 4

        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(
            db_dict(keyspaces=["default_keyspace", "ks2"])
        )
        with pytest.raises(DataAPIUsageException):
            db_admin.create_keyspace("ks2")

        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(
            db_dict(keyspaces=["default_keyspace", "ks2"])
        )
        assert db_admin.list_keyspaces() == ["default_keyspace", "ks2"]
        db_admin.close()
        assert mock_dev_ops.check_assertions() is None

    @pytest.mark.describe("test of keyspace deletion and wait, async")
    async def test_database_admin_drop_keyspace_async(
        self, mock_dev_ops: HTTPServer
    ) -> None:
        db_admin = DataAPIClient(ADMIN_TOKEN).get_database(DB_ENDPOINT).get_admin()
        assert isinstance(db_admin, AstraDBDatabaseAdmin)
        info_path = f"/v2/databases/{DB_ID}"
        mock_dev_ops.expect_oneshot_request(
            f"{info_path}/keyspaces/ks2", method="DELETE"
        ).respond_with_response(werkzeug.Response(status=202))
        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(
            db_dict(keyspaces=["default_keyspace", "ks2"])
        )
        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(db_dict())
        await db_admin.async_drop_keyspace("ks2")
        assert len(mock_dev_ops.log) == 3

        mock_dev_ops.expect_oneshot_request(info_path).respond_with_json(db_dict())
        assert not await db_admin.async_keyspace_exists("ks2")
        await db_admin.aclose()
        assert mock_dev_ops.check_assertions() is None


class TestDataAPIDatabaseAdmin:
    @pytest.mark.describe("test of keyspace management on a self-deployed API, sync")
    def test_dataapi_database_admin_sync(
        self, httpserver: HTTPServer, mock_database: Database
    ) -> None:
        db_admin = mock_database.get_admin()
        assert isinstance(db_admin, DataAPIDatabaseAdmin)

        httpserver.expect_oneshot_request(
            "/v1", method="POST", json={"findKeyspaces": {}}
        ).respond_with_json({"status": {"keyspaces": ["keyspace", "ks2"]}})
        assert db_admin.list_keyspaces() == ["keyspace", "ks2"]

        httpserver.expect_oneshot_request(
            "/v1",
            json={
                "createKeyspace": {
                    "name": "ks3",
                    "options": {
                        "replication": {
                            "class": "SimpleStrategy",
                            "replication_factor": 1,
                        }
                    },
                }
            },
        ).respond_with_json({"status": {"ok": 1}})
        db_admin.create_keyspace(
            "ks3",
            replication_options={"class": "SimpleStrategy", "replication_factor": 1},
        )

        httpserver.expect_oneshot_request(
            "/v1", json={"dropKeyspace": {"name": "ks3"}}
        ).respond_with_json({"status": {"ok": 1}})
        db_admin.drop_keyspace("ks3")

        httpserver.expect_oneshot_request(
            "/v1", json={"findEmbeddingProviders": {}}
        ).respond_with_json(
            {"status": {"embeddingProviders": {"openai": {"models": []}}}}
        )
        providers = db_admin.find_embedding_providers()
        assert list(providers.embedding_providers) == ["openai"]

        httpserver.expect_oneshot_request("/v1").respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            db_admin.list_keyspaces()

        database = db_admin.get_database(keyspace="ks2")
        assert database.keyspace == "ks2"
        assert database.api_endpoint == mock_database.api_endpoint
        db_admin.close()
        assert httpserver.check_assertions() is None

    @pytest.mark.describe("test of keyspace management on a self-deployed API, async")
    async def test_dataapi_database_admin_async(
        self, httpserver: HTTPServer, mock_database: Database
    ) -> None:
        db_admin = mock_database.to_async().get_admin()
        assert isinstance(db_admin, DataAPIDatabaseAdmin)

        def _keyspaces_handler(request: werkzeug.Request) -> werkzeug.Response:
            assert request.headers["Token"] == "AstraCS:mock_token"
            return werkzeug.Response(
                json.dumps({"status": {"keyspaces": ["keyspace"]}}),
                content_type="application/json",
            )

        httpserver.expect_oneshot_request(
            "/v1", json={"findKeyspaces": {}}
        ).respond_with_handler(_keyspaces_handler)
        assert await db_admin.async_keyspace_exists("keyspace")

        httpserver.expect_oneshot_request(
            "/v1", json={"createKeyspace": {"name": "ks4"}}
        ).respond_with_json({"status": {"ok": 1}})
        await db_admin.async_create_keyspace("ks4")

        httpserver.expect_oneshot_request(
            "/v1", json={"dropKeyspace": {"name": "ks4"}}
        ).respond_with_json({"status": {"ok": 1}})
        await db_admin.async_drop_keyspace("ks4")
        await db_admin.aclose()
        assert httpserver.check_assertions() is None
