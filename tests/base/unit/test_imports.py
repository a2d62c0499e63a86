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

# ruff: noqa: F401

from __future__ import annotations

import pytest


@pytest.mark.describe("test namespace")
def test_namespace() -> None:
    import astradb_dataapi

    assert str(astradb_dataapi.admin) != ""
    assert str(astradb_dataapi.builders) != ""
    assert str(astradb_dataapi.client) != ""
    assert str(astradb_dataapi.collection) != ""
    assert str(astradb_dataapi.constants) != ""
    assert str(astradb_dataapi.cursors) != ""
    assert str(astradb_dataapi.database) != ""
    assert str(astradb_dataapi.exceptions) != ""
    assert str(astradb_dataapi.info) != ""
    assert str(astradb_dataapi.results) != ""
    assert str(astradb_dataapi.schema) != ""
    assert str(astradb_dataapi.settings) != ""
    assert str(astradb_dataapi.table) != ""
    assert str(astradb_dataapi.utils) != ""

    assert str(astradb_dataapi.admin.AstraDBAdmin) != ""
    assert str(astradb_dataapi.client.DataAPIClient) != ""
    assert str(astradb_dataapi.collection.Collection) != ""
    assert str(astradb_dataapi.constants.VectorMetric.DOT_PRODUCT) != ""
    assert str(astradb_dataapi.cursors.CursorState.IDLE) != ""
    assert str(astradb_dataapi.database.Database) != ""
    assert str(astradb_dataapi.exceptions.DataAPIException) != ""
    assert str(astradb_dataapi.info.AstraDBDatabaseInfo) != ""
    assert str(astradb_dataapi.results.CollectionDeleteResult) != ""
    assert str(astradb_dataapi.settings.defaults) != ""
    assert str(astradb_dataapi.table.Table) != ""
    assert str(astradb_dataapi.utils.api_commander) != ""


@pytest.mark.describe("test imports")
def test_imports() -> None:
    from astradb_dataapi import (
        AstraDBAdmin,
        AstraDBDatabaseAdmin,
        AsyncCollection,
        AsyncDatabase,
        AsyncTable,
        CancellationToken,
        Collection,
        ColumnRole,
        ColumnSpec,
        CommandOptions,
        DataAPIClient,
        DataAPIDatabaseAdmin,
        Database,
        FilterBuilder,
        HttpClientOptions,
        ProjectionBuilder,
        SortBuilder,
        Table,
        TableSchema,
        TimeoutOptions,
        UpdateBuilder,
        __version__,
    )
    from astradb_dataapi.constants import (
        CloudProvider,
        DataAPIDestination,
        Environment,
        ReturnDocument,
        SortMode,
        VectorMetric,
    )
    from astradb_dataapi.cursors import (
        AsyncCursor,
        Cursor,
        CursorState,
        FindPage,
    )
    from astradb_dataapi.exceptions import (
        CollectionInsertManyException,
        CursorException,
        DataAPIErrorDescriptor,
        DataAPIException,
        DataAPIHttpException,
        DataAPIResponseException,
        DataAPITimeoutException,
        DataAPITransportException,
        DataAPIUsageException,
        DataAPIWarningDescriptor,
        DevOpsAPIHttpException,
        DevOpsAPIResponseException,
        InsertManyException,
        InvalidEnvironmentException,
        MultiCallTimeoutManager,
        OperationCancelledException,
        TableInsertManyException,
        TooManyDocumentsToCountException,
        UnexpectedDataAPIResponseException,
        WaitTimeoutException,
    )
    from astradb_dataapi.info import (
        AstraDBDatabaseInfo,
        CollectionDescriptor,
        EmbeddingProvidersResult,
        TableDescriptor,
        TableIndexDescriptor,
    )
    from astradb_dataapi.results import (
        CollectionDeleteResult,
        CollectionInsertManyResult,
        CollectionInsertOneResult,
        CollectionUpdateResult,
        TableInsertManyResult,
        TableInsertOneResult,
    )
    from astradb_dataapi.schema import (
        alter_add_columns,
        alter_add_vectorize,
        alter_drop_columns,
        alter_drop_vectorize,
    )
    from astradb_dataapi.utils.endpoints import (
        ParsedAPIEndpoint,
        build_api_endpoint,
        parse_api_endpoint,
    )
