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
from typing import Any, Sequence

import httpx

from astradb_dataapi.database import AsyncDatabase, Database
from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    MultiCallTimeoutManager,
    UnexpectedDataAPIResponseException,
    _TimeoutContext,
)
from astradb_dataapi.info import AstraDBDatabaseInfo, EmbeddingProvidersResult
from astradb_dataapi.settings.defaults import (
    DEFAULT_DATABASE_CAPACITY_UNITS,
    DEFAULT_DATABASE_CLOUD_PROVIDER,
    DEFAULT_DATABASE_REGION,
    DEFAULT_DATABASE_TIER,
    DEV_OPS_DATABASE_POLL_INTERVAL_MS,
    DEV_OPS_DATABASE_STATUS_ACTIVE,
    DEV_OPS_DATABASE_STATUS_INITIALIZING,
    DEV_OPS_DATABASE_STATUS_MAINTENANCE,
    DEV_OPS_DATABASE_STATUS_PENDING,
    DEV_OPS_DEFAULT_DATABASES_PAGE_SIZE,
    DEV_OPS_KEYSPACE_POLL_INTERVAL_MS,
    DEV_OPS_RESPONSE_HTTP_CREATED,
)
from astradb_dataapi.utils.api_commander import (
    APICommander,
    APIResponse,
    Command,
    ResponseShape,
    TimeoutKind,
)
from astradb_dataapi.utils.command_options import CommandOptions, FullCommandOptions
from astradb_dataapi.utils.endpoints import (
    api_endpoint_parsing_error_message,
    build_api_endpoint,
    parse_api_endpoint,
)
from astradb_dataapi.utils.polling import async_wait_until, wait_until
from astradb_dataapi.utils.request_tools import HttpMethod
from astradb_dataapi.utils.url_builders import (
    DataAPIUrlBuilder,
    DevOpsUrlBuilder,
    EmbeddingProvidersUrlBuilder,
)

logger = logging.getLogger(__name__)

# DevOps API paths never carry a keyspace segment of their own
_DEV_OPS_LAYER = CommandOptions(include_keyspace_in_url=False)
_PENDING_DATABASE_STATUSES = {
    DEV_OPS_DATABASE_STATUS_PENDING,
    DEV_OPS_DATABASE_STATUS_INITIALIZING,
}


def _timeout_manager(
    options: FullCommandOptions, timeout_kind: TimeoutKind
) -> MultiCallTimeoutManager:
    return MultiCallTimeoutManager(
        overall_timeout_ms=getattr(options.timeout_options, timeout_kind.setting_name),
        timeout_label=timeout_kind.setting_name,
        connect_ms=options.timeout_options.connection_timeout_ms,
    )


def _capped(
    timeout_manager: MultiCallTimeoutManager, options: FullCommandOptions
) -> _TimeoutContext:
    return timeout_manager.remaining_timeout(
        cap_time_ms=options.timeout_options.request_timeout_ms,
        cap_timeout_label=TimeoutKind.REQUEST.setting_name,
    )


def _database_list_page(response: APIResponse) -> list[dict[str, Any]]:
    if not isinstance(response.raw_response, list):
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from get-databases DevOps API command.",
            raw_response=response.raw_response,
        )
    return response.raw_response


def _next_page_params(
    page: list[dict[str, Any]], request_params: dict[str, Any]
) -> dict[str, Any] | None:
    if len(page) < request_params["limit"]:
        return None
    if "id" not in page[-1]:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from get-databases DevOps API command.",
            raw_response=page,
        )
    return {**request_params, "starting_after": page[-1]["id"]}


def _database_id_from_location(status_code: int, headers: httpx.Headers) -> str:
    if status_code != DEV_OPS_RESPONSE_HTTP_CREATED:
        raise UnexpectedDataAPIResponseException(
            text=(
                f"Database creation failed: API returned HTTP {status_code} "
                f"instead of {DEV_OPS_RESPONSE_HTTP_CREATED} - Created."
            ),
            raw_response=None,
        )
    location = headers.get("Location")
    if not location:
        raise UnexpectedDataAPIResponseException(
            text="Database creation response carries no 'Location' header.",
            raw_response=None,
        )
    # either the bare ID or a URL ending with it
    return location.rstrip("/").split("/")[-1]


def _database_became_active(info: AstraDBDatabaseInfo) -> bool:
    if info.status in _PENDING_DATABASE_STATUSES:
        return False
    if info.status == DEV_OPS_DATABASE_STATUS_ACTIVE:
        return True
    raise UnexpectedDataAPIResponseException(
        text=f"Database {info.id} entered unexpected status {info.status}.",
        raw_response=info.raw,
    )


def _keyspace_settled(
    info: AstraDBDatabaseInfo, keyspace: str, should_exist: bool
) -> bool:
    if info.status == DEV_OPS_DATABASE_STATUS_MAINTENANCE:
        return False
    return (keyspace in info.keyspaces) == should_exist


class _DevOpsCaller:
    """Composition of the commands targeting the DevOps API."""

    command_options: FullCommandOptions

    def _dev_ops_command(
        self,
        path_segments: Sequence[str],
        call_options: CommandOptions | None,
        *,
        http_method: str = HttpMethod.GET,
        payload: dict[str, Any] | None = None,
        request_params: dict[str, Any] | None = None,
        timeout_kind: TimeoutKind = TimeoutKind.REQUEST,
        timeout_context: _TimeoutContext | None = None,
        response_handler: Any = None,
    ) -> Command:
        return Command(
            url_builder=DevOpsUrlBuilder(),
            payload=payload,
            option_layers=[self.command_options, _DEV_OPS_LAYER, call_options],
            path_segments=path_segments,
            http_method=http_method,
            timeout_kind=timeout_kind,
            timeout_context=timeout_context,
            request_params=request_params,
            response_handler=response_handler,
            dev_ops_api=True,
        )


class AstraDBAdmin(_DevOpsCaller):
    """
    An administrative object for the databases of an Astra DB organization,
    working through the DevOps API: it lists, inspects, creates and
    terminates databases. Every method has an awaitable `async_` twin.

    Obtain it from a DataAPIClient:

        >>> admin = DataAPIClient("AstraCS:...").get_admin()
        >>> admin.list_database_names()
        ['my_db', 'other_db']

    Args:
        command_options: the resolved options, including the token (which
            needs organization-level permissions) and the environment.
    """

    def __init__(self, *, command_options: FullCommandOptions) -> None:
        self.command_options = command_options
        self._api_commander = APICommander()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(command_options={self.command_options})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AstraDBAdmin):
            return self.command_options == other.command_options
        return False

    def close(self) -> None:
        self._api_commander.close()

    async def aclose(self) -> None:
        await self._api_commander.aclose()

    def _first_page_params(
        self, include: str | None, provider: str | None, page_size: int | None
    ) -> dict[str, Any]:
        return {
            k: v
            for k, v in {
                "include": include,
                "provider": provider,
                "limit": page_size or DEV_OPS_DEFAULT_DATABASES_PAGE_SIZE,
            }.items()
            if v is not None
        }

    def _create_database_payload(
        self, name: str, cloud_provider: str, region: str, keyspace: str | None
    ) -> dict[str, Any]:
        return {
            k: v
            for k, v in {
                "name": name,
                "tier": DEFAULT_DATABASE_TIER,
                "cloudProvider": cloud_provider,
                "region": region,
                "capacityUnits": DEFAULT_DATABASE_CAPACITY_UNITS,
                "dbType": "vector",
                "keyspace": keyspace,
            }.items()
            if v is not None
        }

    def _database_admin_for(
        self, database_id: str, region: str, command_options: CommandOptions | None
    ) -> AstraDBDatabaseAdmin:
        options = self.command_options.with_override(command_options)
        return AstraDBDatabaseAdmin(
            api_endpoint=build_api_endpoint(options.environment, database_id, region),
            command_options=options,
        )

    def list_databases(
        self,
        *,
        include: str | None = None,
        provider: str | None = None,
        page_size: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[AstraDBDatabaseInfo]:
        """
        List the databases in the organization, following the pagination of
        the DevOps API until all are retrieved.

        Args:
            include: a filter on the database status. The DevOps API defaults
                to "nonterminated"; "all" includes terminated databases.
            provider: a filter on the cloud provider, e.g. "gcp".
            page_size: how many databases to request per page.
            command_options: options overriding those of the admin object.
                The database admin timeout applies to the whole listing.
        """

        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        request_params: dict[str, Any] | None = self._first_page_params(
            include, provider, page_size
        )
        db_dicts: list[dict[str, Any]] = []
        logger.info("getting databases (DevOps API)")
        while request_params is not None:
            logger.info(f"request {request_params}, getting databases (DevOps API)")
            response = self._api_commander.run(
                self._dev_ops_command(
                    ["databases"],
                    command_options,
                    request_params=request_params,
                    timeout_context=_capped(timeout_manager, options),
                ),
                shape=ResponseShape.RAW,
            )
            page = _database_list_page(response)
            db_dicts.extend(page)
            request_params = _next_page_params(page, request_params)
        logger.info("finished getting databases (DevOps API)")
        return [
            AstraDBDatabaseInfo._from_dict(db_dict, environment=options.environment)
            for db_dict in db_dicts
        ]

    def list_database_names(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        return [
            db_info.name
            for db_info in self.list_databases(command_options=command_options)
        ]

    def database_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        """Whether a (non-terminated) database with this name exists."""
        return name in self.list_database_names(command_options=command_options)

    def database_info(
        self,
        id: str,
        *,
        command_options: CommandOptions | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> AstraDBDatabaseInfo:
        """Get the information on a database, given its ID."""
        options = self.command_options.with_override(command_options)
        logger.info(f"getting database info for '{id}' (DevOps API)")
        response = self._api_commander.run(
            self._dev_ops_command(
                ["databases", id],
                command_options,
                timeout_context=timeout_context,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info(f"finished getting database info for '{id}' (DevOps API)")
        if not isinstance(response.raw_response, dict):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from get-database DevOps API command.",
                raw_response=response.raw_response,
            )
        return AstraDBDatabaseInfo._from_dict(
            response.raw_response, environment=options.environment
        )

    def create_database(
        self,
        name: str,
        *,
        cloud_provider: str = DEFAULT_DATABASE_CLOUD_PROVIDER,
        region: str = DEFAULT_DATABASE_REGION,
        keyspace: str | None = None,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> AstraDBDatabaseAdmin:
        """
        Create a serverless vector database.

        The DevOps API answers "201 Created" right away, with the new database
        ID in the `Location` header. If `wait_until_active` is True (the
        default), the method then polls the database until it becomes ACTIVE,
        within the database admin timeout (ten minutes by default).

        Args:
            name: the database name. Names need not be unique.
            cloud_provider: "AWS", "GCP" or "AZURE".
            region: a region available to the organization for that provider.
            keyspace: the name of the initial keyspace. If omitted, the
                database gets the default keyspace.
            wait_until_active: whether to wait for the database to be ready.
            command_options: options overriding those of the admin object.

        Returns:
            an AstraDBDatabaseAdmin for the new database.

        Raises:
            UnexpectedDataAPIResponseException: if the API does not return
                the new database ID, or the database ends up in a status
                other than ACTIVE.
            WaitTimeoutException: if the database is not ACTIVE in time.
        """

        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        created: dict[str, str] = {}

        def _read_location(status_code: int, headers: httpx.Headers) -> None:
            created["id"] = _database_id_from_location(status_code, headers)

        logger.info(f"creating database {name}/({cloud_provider}, {region}) (DevOps API)")
        self._api_commander.run(
            self._dev_ops_command(
                ["databases"],
                command_options,
                http_method=HttpMethod.POST,
                payload=self._create_database_payload(
                    name, cloud_provider, region, keyspace
                ),
                timeout_context=_capped(timeout_manager, options),
                response_handler=_read_location,
            ),
            shape=ResponseShape.RAW,
        )
        new_database_id = created["id"]
        logger.info(f"DevOps API returned from creating database '{new_database_id}'")
        if wait_until_active:
            wait_until(
                lambda: _database_became_active(
                    self.database_info(
                        new_database_id,
                        command_options=command_options,
                        timeout_context=_capped(timeout_manager, options),
                    )
                ),
                poll_interval_ms=DEV_OPS_DATABASE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.database_admin_timeout_ms,
                condition=f"database '{new_database_id}' to become active",
                cancellation_token=options.cancellation_token,
            )
        logger.info(f"finished creating database '{new_database_id}' (DevOps API)")
        return self._database_admin_for(new_database_id, region, command_options)

    def drop_database(
        self,
        id: str,
        *,
        wait_until_terminated: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Terminate a database. If `wait_until_terminated` is True (the default),
        poll until the database disappears from the (non-terminated) list.
        """

        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        logger.info(f"dropping database '{id}' (DevOps API)")
        self._api_commander.run(
            self._dev_ops_command(
                ["databases", id, "terminate"],
                command_options,
                http_method=HttpMethod.POST,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        logger.info(f"DevOps API returned from dropping database '{id}'")
        if wait_until_terminated:
            wait_until(
                lambda: id
                not in {
                    db_info.id
                    for db_info in self.list_databases(command_options=command_options)
                },
                poll_interval_ms=DEV_OPS_DATABASE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.database_admin_timeout_ms,
                condition=f"database '{id}' to be terminated",
                cancellation_token=options.cancellation_token,
            )
        logger.info(f"finished dropping database '{id}' (DevOps API)")

    def get_database_admin(
        self,
        id: str,
        *,
        region: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AstraDBDatabaseAdmin:
        """
        An AstraDBDatabaseAdmin for a database. If the region is not given,
        it is looked up with a DevOps API request.
        """

        if region is None:
            region = self.database_info(id, command_options=command_options).region
        return self._database_admin_for(id, region, command_options)

    async def async_list_databases(
        self,
        *,
        include: str | None = None,
        provider: str | None = None,
        page_size: int | None = None,
        command_options: CommandOptions | None = None,
    ) -> list[AstraDBDatabaseInfo]:
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        request_params: dict[str, Any] | None = self._first_page_params(
            include, provider, page_size
        )
        db_dicts: list[dict[str, Any]] = []
        logger.info("getting databases (DevOps API), async")
        while request_params is not None:
            response = await self._api_commander.async_run(
                self._dev_ops_command(
                    ["databases"],
                    command_options,
                    request_params=request_params,
                    timeout_context=_capped(timeout_manager, options),
                ),
                shape=ResponseShape.RAW,
            )
            page = _database_list_page(response)
            db_dicts.extend(page)
            request_params = _next_page_params(page, request_params)
        logger.info("finished getting databases (DevOps API), async")
        return [
            AstraDBDatabaseInfo._from_dict(db_dict, environment=options.environment)
            for db_dict in db_dicts
        ]

    async def async_list_database_names(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        return [
            db_info.name
            for db_info in await self.async_list_databases(
                command_options=command_options
            )
        ]

    async def async_database_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        return name in await self.async_list_database_names(
            command_options=command_options
        )

    async def async_database_info(
        self,
        id: str,
        *,
        command_options: CommandOptions | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> AstraDBDatabaseInfo:
        options = self.command_options.with_override(command_options)
        logger.info(f"getting database info for '{id}' (DevOps API), async")
        response = await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases", id],
                command_options,
                timeout_context=timeout_context,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info(f"finished getting database info for '{id}' (DevOps API), async")
        if not isinstance(response.raw_response, dict):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from get-database DevOps API command.",
                raw_response=response.raw_response,
            )
        return AstraDBDatabaseInfo._from_dict(
            response.raw_response, environment=options.environment
        )

    async def async_create_database(
        self,
        name: str,
        *,
        cloud_provider: str = DEFAULT_DATABASE_CLOUD_PROVIDER,
        region: str = DEFAULT_DATABASE_REGION,
        keyspace: str | None = None,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> AstraDBDatabaseAdmin:
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        created: dict[str, str] = {}

        def _read_location(status_code: int, headers: httpx.Headers) -> None:
            created["id"] = _database_id_from_location(status_code, headers)

        logger.info(
            f"creating database {name}/({cloud_provider}, {region}) (DevOps API), async"
        )
        await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases"],
                command_options,
                http_method=HttpMethod.POST,
                payload=self._create_database_payload(
                    name, cloud_provider, region, keyspace
                ),
                timeout_context=_capped(timeout_manager, options),
                response_handler=_read_location,
            ),
            shape=ResponseShape.RAW,
        )
        new_database_id = created["id"]
        if wait_until_active:

            async def _is_active() -> bool:
                return _database_became_active(
                    await self.async_database_info(
                        new_database_id,
                        command_options=command_options,
                        timeout_context=_capped(timeout_manager, options),
                    )
                )

            await async_wait_until(
                _is_active,
                poll_interval_ms=DEV_OPS_DATABASE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.database_admin_timeout_ms,
                condition=f"database '{new_database_id}' to become active",
                cancellation_token=options.cancellation_token,
            )
        logger.info(
            f"finished creating database '{new_database_id}' (DevOps API), async"
        )
        return self._database_admin_for(new_database_id, region, command_options)

    async def async_drop_database(
        self,
        id: str,
        *,
        wait_until_terminated: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.DATABASE_ADMIN)
        logger.info(f"dropping database '{id}' (DevOps API), async")
        await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases", id, "terminate"],
                command_options,
                http_method=HttpMethod.POST,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        if wait_until_terminated:

            async def _is_gone() -> bool:
                db_infos = await self.async_list_databases(
                    command_options=command_options
                )
                return id not in {db_info.id for db_info in db_infos}

            await async_wait_until(
                _is_gone,
                poll_interval_ms=DEV_OPS_DATABASE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.database_admin_timeout_ms,
                condition=f"database '{id}' to be terminated",
                cancellation_token=options.cancellation_token,
            )
        logger.info(f"finished dropping database '{id}' (DevOps API), async")

    async def async_get_database_admin(
        self,
        id: str,
        *,
        region: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AstraDBDatabaseAdmin:
        if region is None:
            db_info = await self.async_database_info(id, command_options=command_options)
            region = db_info.region
        return self._database_admin_for(id, region, command_options)


class AstraDBDatabaseAdmin(_DevOpsCaller):
    """
    An administrative object for one Astra DB database: it manages its
    keyspaces (through the DevOps API) and lists the embedding providers
    available for vectorize (through the Data API).

    Args:
        api_endpoint: the API endpoint of the database, from which the
            database ID, region and environment are read.
        command_options: the resolved options. The environment is taken
            from the endpoint.

    Raises:
        DataAPIUsageException: if the endpoint is not an Astra DB endpoint.
    """

    def __init__(self, *, api_endpoint: str, command_options: FullCommandOptions) -> None:
        parsed_endpoint = parse_api_endpoint(api_endpoint)
        if parsed_endpoint is None:
            raise DataAPIUsageException(api_endpoint_parsing_error_message(api_endpoint))
        self.api_endpoint = api_endpoint.strip("/")
        self.id = parsed_endpoint.database_id
        self.region = parsed_endpoint.region
        self.command_options = command_options.with_override(
            CommandOptions(environment=parsed_endpoint.environment)
        )
        self._api_commander = APICommander()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(api_endpoint="{self.api_endpoint}", '
            f"command_options={self.command_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AstraDBDatabaseAdmin):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.command_options == other.command_options,
                ]
            )
        return False

    def close(self) -> None:
        self._api_commander.close()

    async def aclose(self) -> None:
        await self._api_commander.aclose()

    def _embedding_providers_command(
        self, command_options: CommandOptions | None
    ) -> Command:
        return Command(
            url_builder=EmbeddingProvidersUrlBuilder(self.api_endpoint),
            name="findEmbeddingProviders",
            payload={},
            option_layers=[self.command_options, command_options],
            timeout_kind=TimeoutKind.DATABASE_ADMIN,
        )

    def _database_options(
        self, keyspace: str | None, command_options: CommandOptions | None
    ) -> FullCommandOptions:
        return self.command_options.with_override(
            CommandOptions(keyspace=keyspace)
        ).with_override(command_options)

    def info(
        self,
        *,
        command_options: CommandOptions | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> AstraDBDatabaseInfo:
        """Get the information on this database from the DevOps API."""
        logger.info(f"getting info ('{self.id}')")
        response = self._api_commander.run(
            self._dev_ops_command(
                ["databases", self.id],
                command_options,
                timeout_context=timeout_context,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info(f"finished getting info ('{self.id}')")
        return AstraDBDatabaseInfo._from_dict(
            response.raw_response, environment=self.command_options.environment
        )

    def list_keyspaces(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        return self.info(command_options=command_options).keyspaces

    def keyspace_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        return name in self.list_keyspaces(command_options=command_options)

    def create_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create a keyspace in the database. If `wait_until_active` is True (the
        default), poll until the database is back to ACTIVE with the new
        keyspace, within the keyspace admin timeout.

        Raises:
            DataAPIUsageException: if the keyspace exists already.
        """

        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.KEYSPACE_ADMIN)
        if name in self.info(
            command_options=command_options,
            timeout_context=_capped(timeout_manager, options),
        ).keyspaces:
            raise DataAPIUsageException(f"Keyspace '{name}' exists already.")
        logger.info(f"creating keyspace '{name}' on '{self.id}' (DevOps API)")
        self._api_commander.run(
            self._dev_ops_command(
                ["databases", self.id, "keyspaces", name],
                command_options,
                http_method=HttpMethod.POST,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        if wait_until_active:
            wait_until(
                lambda: _keyspace_settled(
                    self.info(
                        command_options=command_options,
                        timeout_context=_capped(timeout_manager, options),
                    ),
                    name,
                    should_exist=True,
                ),
                poll_interval_ms=DEV_OPS_KEYSPACE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.keyspace_admin_timeout_ms,
                condition=f"keyspace '{name}' to be created",
                cancellation_token=options.cancellation_token,
            )
        logger.info(f"finished creating keyspace '{name}' on '{self.id}' (DevOps API)")

    def drop_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        """Drop a keyspace, optionally waiting until it has disappeared."""
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.KEYSPACE_ADMIN)
        logger.info(f"dropping keyspace '{name}' on '{self.id}' (DevOps API)")
        self._api_commander.run(
            self._dev_ops_command(
                ["databases", self.id, "keyspaces", name],
                command_options,
                http_method=HttpMethod.DELETE,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        if wait_until_active:
            wait_until(
                lambda: _keyspace_settled(
                    self.info(
                        command_options=command_options,
                        timeout_context=_capped(timeout_manager, options),
                    ),
                    name,
                    should_exist=False,
                ),
                poll_interval_ms=DEV_OPS_KEYSPACE_POLL_INTERVAL_MS,
                max_wait_ms=options.timeout_options.keyspace_admin_timeout_ms,
                condition=f"keyspace '{name}' to be dropped",
                cancellation_token=options.cancellation_token,
            )
        logger.info(f"finished dropping keyspace '{name}' on '{self.id}' (DevOps API)")

    def find_embedding_providers(
        self, *, command_options: CommandOptions | None = None
    ) -> EmbeddingProvidersResult:
        """The embedding providers (and their models) available for vectorize."""
        logger.info("findEmbeddingProviders")
        response = self._api_commander.run(
            self._embedding_providers_command(command_options)
        )
        logger.info("finished findEmbeddingProviders")
        return EmbeddingProvidersResult._from_dict(response.status or {})

    def get_database(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> Database:
        return Database(
            api_endpoint=self.api_endpoint,
            command_options=self._database_options(keyspace, command_options),
        )

    def get_async_database(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncDatabase:
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            command_options=self._database_options(keyspace, command_options),
        )

    async def async_info(
        self,
        *,
        command_options: CommandOptions | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> AstraDBDatabaseInfo:
        logger.info(f"getting info ('{self.id}'), async")
        response = await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases", self.id],
                command_options,
                timeout_context=timeout_context,
            ),
            shape=ResponseShape.RAW,
        )
        logger.info(f"finished getting info ('{self.id}'), async")
        return AstraDBDatabaseInfo._from_dict(
            response.raw_response, environment=self.command_options.environment
        )

    async def async_list_keyspaces(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        return (await self.async_info(command_options=command_options)).keyspaces

    async def async_keyspace_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        return name in await self.async_list_keyspaces(command_options=command_options)

    async def _async_wait_keyspace(
        self,
        name: str,
        should_exist: bool,
        options: FullCommandOptions,
        timeout_manager: MultiCallTimeoutManager,
        command_options: CommandOptions | None,
    ) -> None:
        async def _settled() -> bool:
            db_info = await self.async_info(
                command_options=command_options,
                timeout_context=_capped(timeout_manager, options),
            )
            return _keyspace_settled(db_info, name, should_exist=should_exist)

        await async_wait_until(
            _settled,
            poll_interval_ms=DEV_OPS_KEYSPACE_POLL_INTERVAL_MS,
            max_wait_ms=options.timeout_options.keyspace_admin_timeout_ms,
            condition=(
                f"keyspace '{name}' to be {'created' if should_exist else 'dropped'}"
            ),
            cancellation_token=options.cancellation_token,
        )

    async def async_create_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.KEYSPACE_ADMIN)
        db_info = await self.async_info(
            command_options=command_options,
            timeout_context=_capped(timeout_manager, options),
        )
        if name in db_info.keyspaces:
            raise DataAPIUsageException(f"Keyspace '{name}' exists already.")
        logger.info(f"creating keyspace '{name}' on '{self.id}' (DevOps API), async")
        await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases", self.id, "keyspaces", name],
                command_options,
                http_method=HttpMethod.POST,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        if wait_until_active:
            await self._async_wait_keyspace(
                name, True, options, timeout_manager, command_options
            )
        logger.info(
            f"finished creating keyspace '{name}' on '{self.id}' (DevOps API), async"
        )

    async def async_drop_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        command_options: CommandOptions | None = None,
    ) -> None:
        options = self.command_options.with_override(command_options)
        timeout_manager = _timeout_manager(options, TimeoutKind.KEYSPACE_ADMIN)
        logger.info(f"dropping keyspace '{name}' on '{self.id}' (DevOps API), async")
        await self._api_commander.async_run(
            self._dev_ops_command(
                ["databases", self.id, "keyspaces", name],
                command_options,
                http_method=HttpMethod.DELETE,
                timeout_context=_capped(timeout_manager, options),
            ),
            shape=ResponseShape.RAW,
        )
        if wait_until_active:
            await self._async_wait_keyspace(
                name, False, options, timeout_manager, command_options
            )
        logger.info(
            f"finished dropping keyspace '{name}' on '{self.id}' (DevOps API), async"
        )

    async def async_find_embedding_providers(
        self, *, command_options: CommandOptions | None = None
    ) -> EmbeddingProvidersResult:
        logger.info("findEmbeddingProviders, async")
        response = await self._api_commander.async_run(
            self._embedding_providers_command(command_options)
        )
        logger.info("finished findEmbeddingProviders, async")
        return EmbeddingProvidersResult._from_dict(response.status or {})


class DataAPIDatabaseAdmin:
    """
    An administrative object for a self-deployed Data API (e.g. on HCD or
    DSE). Keyspaces are managed with Data API commands addressed to the
    database itself (the URL has no keyspace segment).

    Example:
        >>> db_admin = database.get_admin()
        >>> db_admin.create_keyspace(
        ...     "ks2",
        ...     replication_options={"class": "SimpleStrategy", "replication_factor": 1},
        ... )
        >>> db_admin.list_keyspaces()
        ['default_keyspace', 'ks2']
    """

    def __init__(self, *, api_endpoint: str, command_options: FullCommandOptions) -> None:
        self.api_endpoint = api_endpoint.strip("/")
        self.command_options = command_options
        self._url_builder = DataAPIUrlBuilder(self.api_endpoint)
        self._api_commander = APICommander()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(api_endpoint="{self.api_endpoint}", '
            f"command_options={self.command_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, DataAPIDatabaseAdmin):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.command_options == other.command_options,
                ]
            )
        return False

    def close(self) -> None:
        self._api_commander.close()

    async def aclose(self) -> None:
        await self._api_commander.aclose()

    def _keyspace_command(
        self,
        command_name: str,
        payload: dict[str, Any],
        call_options: CommandOptions | None,
    ) -> Command:
        return Command(
            url_builder=self._url_builder,
            name=command_name,
            payload=payload,
            option_layers=[
                self.command_options,
                CommandOptions(include_keyspace_in_url=False),
                call_options,
            ],
            timeout_kind=TimeoutKind.KEYSPACE_ADMIN,
        )

    @staticmethod
    def _create_keyspace_payload(
        name: str, replication_options: dict[str, Any] | None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name}
        if replication_options:
            payload["options"] = {"replication": replication_options}
        return payload

    @staticmethod
    def _keyspaces_from(response: APIResponse) -> list[str]:
        if "keyspaces" not in (response.status or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from findKeyspaces API command.",
                raw_response=response.raw_response,
            )
        return list(response.status["keyspaces"])

    def _embedding_providers_command(
        self, command_options: CommandOptions | None
    ) -> Command:
        return Command(
            url_builder=EmbeddingProvidersUrlBuilder(self.api_endpoint),
            name="findEmbeddingProviders",
            payload={},
            option_layers=[self.command_options, command_options],
            timeout_kind=TimeoutKind.DATABASE_ADMIN,
        )

    def list_keyspaces(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        logger.info("findKeyspaces")
        response = self._api_commander.run(
            self._keyspace_command("findKeyspaces", {}, command_options)
        )
        logger.info("finished findKeyspaces")
        return self._keyspaces_from(response)

    def keyspace_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        return name in self.list_keyspaces(command_options=command_options)

    def create_keyspace(
        self,
        name: str,
        *,
        replication_options: dict[str, Any] | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        """
        Create a keyspace. `replication_options` has the form
        `{"class": "SimpleStrategy", "replication_factor": 1}`.
        """

        logger.info(f"createKeyspace '{name}'")
        self._api_commander.run(
            self._keyspace_command(
                "createKeyspace",
                self._create_keyspace_payload(name, replication_options),
                command_options,
            )
        )
        logger.info(f"finished createKeyspace '{name}'")

    def drop_keyspace(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> None:
        logger.info(f"dropKeyspace '{name}'")
        self._api_commander.run(
            self._keyspace_command("dropKeyspace", {"name": name}, command_options)
        )
        logger.info(f"finished dropKeyspace '{name}'")

    def find_embedding_providers(
        self, *, command_options: CommandOptions | None = None
    ) -> EmbeddingProvidersResult:
        logger.info("findEmbeddingProviders")
        response = self._api_commander.run(
            self._embedding_providers_command(command_options)
        )
        logger.info("finished findEmbeddingProviders")
        return EmbeddingProvidersResult._from_dict(response.status or {})

    def get_database(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> Database:
        return Database(
            api_endpoint=self.api_endpoint,
            command_options=self.command_options.with_override(
                CommandOptions(keyspace=keyspace)
            ).with_override(command_options),
        )

    def get_async_database(
        self,
        *,
        keyspace: str | None = None,
        command_options: CommandOptions | None = None,
    ) -> AsyncDatabase:
        return self.get_database(
            keyspace=keyspace, command_options=command_options
        ).to_async()

    async def async_list_keyspaces(
        self, *, command_options: CommandOptions | None = None
    ) -> list[str]:
        logger.info("findKeyspaces, async")
        response = await self._api_commander.async_run(
            self._keyspace_command("findKeyspaces", {}, command_options)
        )
        logger.info("finished findKeyspaces, async")
        return self._keyspaces_from(response)

    async def async_keyspace_exists(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> bool:
        return name in await self.async_list_keyspaces(command_options=command_options)

    async def async_create_keyspace(
        self,
        name: str,
        *,
        replication_options: dict[str, Any] | None = None,
        command_options: CommandOptions | None = None,
    ) -> None:
        logger.info(f"createKeyspace '{name}', async")
        await self._api_commander.async_run(
            self._keyspace_command(
                "createKeyspace",
                self._create_keyspace_payload(name, replication_options),
                command_options,
            )
        )
        logger.info(f"finished createKeyspace '{name}', async")

    async def async_drop_keyspace(
        self, name: str, *, command_options: CommandOptions | None = None
    ) -> None:
        logger.info(f"dropKeyspace '{name}', async")
        await self._api_commander.async_run(
            self._keyspace_command("dropKeyspace", {"name": name}, command_options)
        )
        logger.info(f"finished dropKeyspace '{name}', async")

    async def async_find_embedding_providers(
        self, *, command_options: CommandOptions | None = None
    ) -> EmbeddingProvidersResult:
        logger.info("findEmbeddingProviders, async")
        response = await self._api_commander.async_run(
            self._embedding_providers_command(command_options)
        )
        logger.info("finished findEmbeddingProviders, async")
        return EmbeddingProvidersResult._from_dict(response.status or {})
