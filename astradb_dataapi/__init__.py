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

# read by setup.py and by the User-Agent composition: keep it first
__version__: str = "0.1.0"


import astradb_dataapi.constants  # noqa: E402, F401
import astradb_dataapi.cursors  # noqa: E402, F401
from astradb_dataapi.admin import (  # noqa: E402
    AstraDBAdmin,
    AstraDBDatabaseAdmin,
    DataAPIDatabaseAdmin,
)
from astradb_dataapi.builders import (  # noqa: E402
    FilterBuilder,
    ProjectionBuilder,
    SortBuilder,
    UpdateBuilder,
)
from astradb_dataapi.client import DataAPIClient  # noqa: E402
from astradb_dataapi.collection import AsyncCollection, Collection  # noqa: E402
from astradb_dataapi.database import AsyncDatabase, Database  # noqa: E402
from astradb_dataapi.schema import ColumnRole, ColumnSpec, TableSchema  # noqa: E402
from astradb_dataapi.table import AsyncTable, Table  # noqa: E402
from astradb_dataapi.utils.cancellation import CancellationToken  # noqa: E402
from astradb_dataapi.utils.command_options import (  # noqa: E402
    CommandOptions,
    HttpClientOptions,
    TimeoutOptions,
)

__all__ = [
    "AstraDBAdmin",
    "AstraDBDatabaseAdmin",
    "AsyncCollection",
    "AsyncDatabase",
    "AsyncTable",
    "CancellationToken",
    "Collection",
    "ColumnRole",
    "ColumnSpec",
    "CommandOptions",
    "Database",
    "DataAPIClient",
    "DataAPIDatabaseAdmin",
    "FilterBuilder",
    "HttpClientOptions",
    "ProjectionBuilder",
    "SortBuilder",
    "Table",
    "TableSchema",
    "TimeoutOptions",
    "UpdateBuilder",
    "__version__",
]
