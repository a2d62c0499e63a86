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

from abc import ABC, abstractmethod
from typing import Any, Iterable

from typing_extensions import override

from astradb_dataapi.constants import DataAPIDestination, Environment
from astradb_dataapi.exceptions import InvalidEnvironmentException
from astradb_dataapi.settings.defaults import (
    ASTRA_DATA_API_PATH,
    DEV_OPS_URL_ENV_MAP,
    DEV_OPS_VERSION_ENV_MAP,
)
from astradb_dataapi.utils.command_options import FullCommandOptions


def join_url(base: str, *segments: str | None) -> str:
    """
    Join a base URL and any number of path segments with exactly one slash
    between consecutive parts. Empty (or None) segments are skipped.
    """

    parts = [base.rstrip("/")] + [
        stripped
        for stripped in (str(segment).strip("/") for segment in segments if segment)
        if stripped
    ]
    return "/".join(parts)


def dev_ops_base_url(environment: Environment | str) -> str:
    """
    Return the DevOps API base URL (version included) for an environment.

    Raises:
        InvalidEnvironmentException: if the environment is not recognized.
    """

    env_value = str(environment)
    if env_value not in DEV_OPS_URL_ENV_MAP:
        raise InvalidEnvironmentException(
            f"Unrecognized environment '{environment}' for the DevOps API. "
            f"Allowed values are: {Environment.values()}"
        )
    return join_url(DEV_OPS_URL_ENV_MAP[env_value], DEV_OPS_VERSION_ENV_MAP[env_value])


class UrlBuilder(ABC):
    """
    A strategy producing the absolute URL of a request from a set of resolved
    command options and optional additional path segments.
    """

    @abstractmethod
    def build(
        self, options: FullCommandOptions, path_segments: Iterable[str] = ()
    ) -> str: ...


class DataAPIUrlBuilder(UrlBuilder):
    """
    URLs on the data plane of a database:
    `{api_endpoint}/api/json/{version}/{keyspace}/{segments...}`.

    The `api/json` part is only present for Astra DB; the keyspace segment is
    omitted when the options have `include_keyspace_in_url` set to False.
    """

    def __init__(self, api_endpoint: str) -> None:
        self.api_endpoint = api_endpoint

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}("{self.api_endpoint}")'

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, DataAPIUrlBuilder):
            return self.api_endpoint == other.api_endpoint
        return False

    @override
    def build(
        self, options: FullCommandOptions, path_segments: Iterable[str] = ()
    ) -> str:
        api_path = (
            ASTRA_DATA_API_PATH
            if options.destination == DataAPIDestination.ASTRA
            else None
        )
        keyspace = options.keyspace if options.include_keyspace_in_url else None
        return join_url(
            self.api_endpoint,
            api_path,
            str(options.api_version),
            keyspace,
            *path_segments,
        )


class DevOpsUrlBuilder(UrlBuilder):
    """
    URLs on the DevOps API (the Astra control plane). The base depends on the
    environment; a keyspace segment is appended only when the options require
    the keyspace in the URL and the keyspace is not empty.
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, DevOpsUrlBuilder)

    @override
    def build(
        self, options: FullCommandOptions, path_segments: Iterable[str] = ()
    ) -> str:
        keyspace = (
            options.keyspace
            if options.include_keyspace_in_url and options.keyspace
            else None
        )
        return join_url(
            dev_ops_base_url(options.environment),
            keyspace,
            *path_segments,
        )


class EmbeddingProvidersUrlBuilder(UrlBuilder):
    """
    URLs for database-wide metadata such as the embedding providers:
    `{api_endpoint}/api/json/{version}`, never scoped to a keyspace.
    """

    def __init__(self, api_endpoint: str) -> None:
        self.api_endpoint = api_endpoint

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}("{self.api_endpoint}")'

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, EmbeddingProvidersUrlBuilder):
            return self.api_endpoint == other.api_endpoint
        return False

    @override
    def build(
        self, options: FullCommandOptions, path_segments: Iterable[str] = ()
    ) -> str:
        api_path = (
            ASTRA_DATA_API_PATH
            if options.destination == DataAPIDestination.ASTRA
            else None
        )
        return join_url(
            self.api_endpoint,
            api_path,
            str(options.api_version),
            *path_segments,
        )
