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
from typing import TYPE_CHECKING, Any, Sequence

from astradb_dataapi.constants import CallerType, DataAPIDestination, Environment
from astradb_dataapi.database import AsyncDatabase, Database
from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    InvalidEnvironmentException,
)
from astradb_dataapi.utils.command_options import (
    CommandOptions,
    FullCommandOptions,
    merge_command_options,
)
from astradb_dataapi.utils.endpoints import (
    api_endpoint_parsing_error_message,
    parse_api_endpoint,
)
from astradb_dataapi.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from astradb_dataapi.admin import AstraDBAdmin


logger = logging.getLogger(__name__)


class DataAPIClient:
    """
    A client for using the Data API. This is the entry point, sitting
    at the top of the "client -> database -> collection/table" hierarchy
    and of the "client -> admin -> database admin" chain as well.

    The client holds a resolved snapshot of its options: objects spawned from
    it receive a copy (with any further overrides applied), so that changing
    one of them never affects the others.

    Args:
        token: an Access Token, e.g. `"AstraCS:xyz..."`. Database-scoped tokens
            are usually passed later, to `get_database`; an org-wide token is
            needed here for admin work (`get_admin`).
        environment: the Astra DB environment ("prod", "dev" or "test").
            Defaults to "prod".
        destination: the kind of Data API deployment. Defaults to "astra";
            for self-deployed Data API instances use "hcd", "dse",
            "cassandra" or "others".
        callers: caller identities, as `("name", "version")` pairs, that end
            up in the User-Agent of all requests.
        command_options: a (partial) CommandOptions layer for a deeper
            configuration, e.g. of timeouts. The named parameters above take
            precedence over it.

    Raises:
        InvalidEnvironmentException: for an unrecognized environment.

    Example:
        >>> client = DataAPIClient()
        >>> database = client.get_database(
        ...     "https://01234567-....apps.astra.datastax.com",
        ...     token="AstraCS:...",
        ... )
        >>> database.list_collection_names()
        ['movies']
        >>> admin = DataAPIClient("AstraCS:org-wide...").get_admin()
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        environment: str | Environment | None = None,
        destination: str | DataAPIDestination | None = None,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        command_options: CommandOptions | None = None,
    ) -> None:
        if environment is not None and environment not in Environment:
            raise InvalidEnvironmentException(
                f"Unsupported `environment` value: '{environment}'."
            )
        arg_options = CommandOptions(
            token=token if token is not None else _UNSET,
            environment=environment if environment is not None else _UNSET,
            destination=destination if destination is not None else _UNSET,
            callers=callers,
        )
        self.command_options: FullCommandOptions = merge_command_options(
            command_options, arg_options
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.command_options})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, DataAPIClient):
            return self.command_options == other.command_options
        return False

    def __getitem__(self, api_endpoint: str) -> Database:
        return self.get_database(api_endpoint)

    def with_options(
        self,
        *,
        token: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> DataAPIClient:
        """A clone of this client, with some options overridden."""
        return DataAPIClient(
            command_options=self._spawn_options(token, None, command_options)
        )

    def _spawn_options(
        self,
        token: str | None,
        keyspace: str | None,
        command_options: CommandOptions | None,
    ) -> FullCommandOptions:
        return self.command_options.with_override(command_options).with_override(
            CommandOptions(token=token, keyspace=keyspace)
        )

    def _database_options(
        self,
        api_endpoint: str,
        token: str | None,
        keyspace: str | None,
        command_options: CommandOptions | None,
    ) -> FullCommandOptions:
        options = self._spawn_options(token, keyspace, command_options)
        if options.destination == DataAPIDestination.ASTRA:
            parsed_endpoint = parse_api_endpoint(api_endpoint)
            if parsed_endpoint is None:
                raise DataAPIUsageException(
                    api_endpoint_parsing_error_message(api_endpoint)
                )
            if parsed_endpoint.environment != options.environment:
                raise InvalidEnvironmentException(
                    "Environment mismatch between client and provided "
                    "API endpoint. You can try adding "
                    f'`environment="{parsed_endpoint.environment}"` '
                    "to the DataAPIClient creation statement."
                )
        return options

    def get_database(
        self,
        api_endpoint: str,
        *,
        token: str | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> Database:
        """
        Get a Database object for the given API endpoint. No request is made.

        Args:
            api_endpoint: the full API endpoint of the database, such as
                "https://<db_id>-<region>.apps.astra.datastax.com" for Astra DB
                or "http://localhost:8181" for a local Data API.
            token: if supplied, overrides the client token for this database.
            keyspace: the working keyspace. If omitted, "default_keyspace".
            command_options: a further CommandOptions layer for the database.
                Named parameters take precedence over it.

        Raises:
            DataAPIUsageException: for an unparseable Astra DB endpoint.
            InvalidEnvironmentException: if the endpoint belongs to a
                different Astra DB environment than the client.
        """

        return Database(
            api_endpoint=api_endpoint,
            command_options=self._database_options(
                api_endpoint, token, keyspace, command_options
            ),
        )

    def get_async_database(
        self,
        api_endpoint: str,
        *,
        token: str | None = None,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncDatabase:
        """The AsyncDatabase counterpart of `get_database`."""
        return AsyncDatabase(
            api_endpoint=api_endpoint,
            command_options=self._database_options(
                api_endpoint, token, keyspace, command_options
            ),
        )

    def get_admin(
        self,
        *,
        token: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AstraDBAdmin:
        """
        Get an AstraDBAdmin, for managing the databases of the organization.

        Args:
            token: if supplied, overrides the client token. Useful to switch
                to an admin-capable permission set.
            command_options: a further CommandOptions layer for the admin.

        Raises:
            InvalidEnvironmentException: if the client destination is not
                Astra DB.

        Example:
            >>> admin = my_client.get_admin(token="AstraCS:org-wide...")
            >>> db_admin = admin.create_database(
            ...     "the_other_database",
            ...     cloud_provider="AWS",
            ...     region="eu-west-1",
            ... )
        """

        # lazy importing here to avoid circular dependency
        from astradb_dataapi.admin import AstraDBAdmin

        options = self._spawn_options(token, None, command_options)
        if options.destination != DataAPIDestination.ASTRA:
            raise InvalidEnvironmentException(
                "Method not supported outside of Astra DB."
            )
        return AstraDBAdmin(command_options=options)
