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

import re
from dataclasses import dataclass

from astradb_dataapi.constants import Environment
from astradb_dataapi.exceptions import InvalidEnvironmentException
from astradb_dataapi.settings.defaults import API_ENDPOINT_TEMPLATE_ENV_MAP

_UUID_PATTERN = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

astra_endpoint_parser = re.compile(
    rf"^https://({_UUID_PATTERN})-([a-z0-9\-]+)\.apps\.astra(?:-(dev|test))?\.datastax\.com/?$"
)
astra_endpoint_description = (
    "https://<db uuid, 8-4-4-4-12 hex format>-<db region>.apps.astra.datastax.com"
)


@dataclass
class ParsedAPIEndpoint:
    """
    The parts of an Astra DB API endpoint.

    Attributes:
        database_id: e.g. "01234567-89ab-cdef-0123-456789abcdef".
        region: a region name, such as "us-east1".
        environment: the Astra environment the endpoint belongs to.
    """

    database_id: str
    region: str
    environment: Environment


def parse_api_endpoint(api_endpoint: str) -> ParsedAPIEndpoint | None:
    """Parse an Astra DB API endpoint, returning None if it does not conform."""
    match = astra_endpoint_parser.match(api_endpoint)
    if match is None:
        return None
    database_id, region, env_label = match.groups()
    return ParsedAPIEndpoint(
        database_id=database_id,
        region=region,
        environment=Environment.coerce(env_label or Environment.PROD.value),
    )


def api_endpoint_parsing_error_message(failing_url: str) -> str:
    return (
        f"Cannot parse the supplied API endpoint ({failing_url}). The endpoint "
        f'must be in the following form: "{astra_endpoint_description}".'
    )


def build_api_endpoint(
    environment: Environment | str, database_id: str, region: str
) -> str:
    """
    Compose the API endpoint of an Astra DB database from its ID and region,
    e.g. "https://01234567-...-us-east1.apps.astra.datastax.com".
    """

    env_value = str(environment)
    if env_value not in API_ENDPOINT_TEMPLATE_ENV_MAP:
        raise InvalidEnvironmentException(
            f"Unrecognized environment '{environment}' for Astra DB endpoints."
        )
    return API_ENDPOINT_TEMPLATE_ENV_MAP[env_value].format(
        database_id=database_id,
        region=region,
    )
