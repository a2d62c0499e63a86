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

# Astra environments (the control plane and the database domains differ)
DATA_API_ENVIRONMENT_PROD = "prod"
DATA_API_ENVIRONMENT_DEV = "dev"
DATA_API_ENVIRONMENT_TEST = "test"

# Kinds of Data API deployment being targeted
DATA_API_DESTINATION_ASTRA = "astra"
DATA_API_DESTINATION_DSE = "dse"
DATA_API_DESTINATION_HCD = "hcd"
DATA_API_DESTINATION_CASSANDRA = "cassandra"
DATA_API_DESTINATION_OTHERS = "others"

DATA_API_VERSION_V1 = "v1"

# Defaults/settings for Database and keyspace scoping
DEFAULT_ASTRA_DB_KEYSPACE = "default_keyspace"
DEFAULT_INCLUDE_KEYSPACE_IN_URL = True
API_ENDPOINT_TEMPLATE_ENV_MAP = {
    DATA_API_ENVIRONMENT_PROD: "https://{database_id}-{region}.apps.astra.datastax.com",
    DATA_API_ENVIRONMENT_DEV: "https://{database_id}-{region}.apps.astra-dev.datastax.com",
    DATA_API_ENVIRONMENT_TEST: "https://{database_id}-{region}.apps.astra-test.datastax.com",
}
# the Astra data plane lives under this path; self-deployed APIs have none
ASTRA_DATA_API_PATH = "api/json"

# Defaults for timeouts (all in milliseconds; zero means "no timeout")
DEFAULT_CONNECTION_TIMEOUT_MS = 5000
DEFAULT_REQUEST_TIMEOUT_MS = 10000
DEFAULT_BULK_OPERATION_TIMEOUT_MS = 30000
DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS = 60000
DEFAULT_TABLE_ADMIN_TIMEOUT_MS = 30000
DEFAULT_DATABASE_ADMIN_TIMEOUT_MS = 600000
DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS = 60000

# Defaults for the HTTP client
DEFAULT_USE_HTTP2 = False
DEFAULT_FOLLOW_REDIRECTS = True

# Defaults/settings for Data API requests
DEFAULT_INSERT_MANY_CHUNK_SIZE = 50
DEFAULT_INSERT_MANY_CONCURRENCY = 20
DEFAULT_DATA_API_AUTH_HEADER = "Token"
EMBEDDING_HEADER_API_KEY = "x-embedding-api-key"

# Defaults/settings for DevOps API requests and admin operations
DEFAULT_DEV_OPS_AUTH_HEADER = "Authorization"
DEFAULT_DEV_OPS_AUTH_PREFIX = "Bearer "
DEV_OPS_KEYSPACE_POLL_INTERVAL_MS = 2000
DEV_OPS_DATABASE_POLL_INTERVAL_MS = 15000
DEV_OPS_DATABASE_STATUS_MAINTENANCE = "MAINTENANCE"
DEV_OPS_DATABASE_STATUS_ACTIVE = "ACTIVE"
DEV_OPS_DATABASE_STATUS_PENDING = "PENDING"
DEV_OPS_DATABASE_STATUS_INITIALIZING = "INITIALIZING"
DEV_OPS_URL_ENV_MAP = {
    DATA_API_ENVIRONMENT_PROD: "https://api.astra.datastax.com",
    DATA_API_ENVIRONMENT_DEV: "https://api.dev.cloud.datastax.com",
    DATA_API_ENVIRONMENT_TEST: "https://api.test.cloud.datastax.com",
}
DEV_OPS_VERSION_ENV_MAP = {
    DATA_API_ENVIRONMENT_PROD: "v2",
    DATA_API_ENVIRONMENT_DEV: "v2",
    DATA_API_ENVIRONMENT_TEST: "v2",
}
DEV_OPS_RESPONSE_HTTP_CREATED = 201
DEV_OPS_DEFAULT_DATABASES_PAGE_SIZE = 50
DEFAULT_DATABASE_CLOUD_PROVIDER = "GCP"
DEFAULT_DATABASE_REGION = "us-east1"
DEFAULT_DATABASE_TIER = "serverless"
DEFAULT_DATABASE_CAPACITY_UNITS = 1

# Settings for redacting secrets in string representations and logging
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_DATA_API_AUTH_HEADER,
    DEFAULT_DEV_OPS_AUTH_HEADER,
    EMBEDDING_HEADER_API_KEY,
}
