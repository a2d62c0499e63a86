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

import json
from dataclasses import dataclass, fields
from typing import Any, Callable, Iterable, Sequence

from astradb_dataapi.constants import (
    APIVersion,
    CallerType,
    DataAPIDestination,
    Environment,
)
from astradb_dataapi.settings.defaults import (
    DEFAULT_ASTRA_DB_KEYSPACE,
    DEFAULT_BULK_OPERATION_TIMEOUT_MS,
    DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_DATABASE_ADMIN_TIMEOUT_MS,
    DEFAULT_FOLLOW_REDIRECTS,
    DEFAULT_INCLUDE_KEYSPACE_IN_URL,
    DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_TABLE_ADMIN_TIMEOUT_MS,
    DEFAULT_USE_HTTP2,
    FIXED_SECRET_PLACEHOLDER,
)
from astradb_dataapi.utils.cancellation import CancellationToken
from astradb_dataapi.utils.unset import _UNSET, UnsetType, is_set

InputConverterType = Callable[[dict[str, Any]], Any]
OutputConverterType = type[json.JSONEncoder]


def _pick(base: Any, override: Any) -> Any:
    return override if is_set(override) else base


@dataclass
class TimeoutOptions:
    """
    The group of settings concerning timeouts, one of the layers that can be
    set at client, database, collection/table or single-call level.

    All values are integers expressed in milliseconds. A timeout of zero means
    that no timeout is imposed on that kind of operation. Unspecified values
    are inherited from the enclosing layer, field by field: setting only
    `request_timeout_ms` at collection level keeps, for instance, the
    `connection_timeout_ms` configured on the client.

    Attributes:
        connection_timeout_ms: the time allowed to establish a connection.
            Defaults to 5 s.
        request_timeout_ms: the timeout imposed on a single HTTP request.
            Defaults to 10 s.
        bulk_operation_timeout_ms: the overall duration allowed to methods
            spanning several requests, such as `insert_many` or `delete_many`.
            Defaults to 30 s.
        collection_admin_timeout_ms: the timeout for collection schema
            operations (create, drop, list). Defaults to 60 s.
        table_admin_timeout_ms: the timeout for table schema operations
            (create, alter, drop, index management, listings). Defaults to 30 s.
        database_admin_timeout_ms: the timeout for database admin operations.
            Creating or dropping a database while waiting for completion can
            take several minutes. Defaults to 10 minutes.
        keyspace_admin_timeout_ms: the timeout for keyspace admin operations.
            Defaults to 60 s.
    """

    connection_timeout_ms: int | UnsetType = _UNSET
    request_timeout_ms: int | UnsetType = _UNSET
    bulk_operation_timeout_ms: int | UnsetType = _UNSET
    collection_admin_timeout_ms: int | UnsetType = _UNSET
    table_admin_timeout_ms: int | UnsetType = _UNSET
    database_admin_timeout_ms: int | UnsetType = _UNSET
    keyspace_admin_timeout_ms: int | UnsetType = _UNSET


@dataclass
class FullTimeoutOptions(TimeoutOptions):
    """
    The fully-resolved counterpart of `TimeoutOptions`: all attributes have a
    defined value. See `TimeoutOptions` for the meaning of each setting.
    """

    connection_timeout_ms: int
    request_timeout_ms: int
    bulk_operation_timeout_ms: int
    collection_admin_timeout_ms: int
    table_admin_timeout_ms: int
    database_admin_timeout_ms: int
    keyspace_admin_timeout_ms: int

    def with_override(self, other: TimeoutOptions | None | UnsetType) -> FullTimeoutOptions:
        if not isinstance(other, TimeoutOptions):
            return self
        return FullTimeoutOptions(
            **{
                fld.name: _pick(getattr(self, fld.name), getattr(other, fld.name))
                for fld in fields(TimeoutOptions)
            }
        )


@dataclass
class HttpClientOptions:
    """
    Settings for the underlying HTTP client.

    Attributes:
        use_http2: whether to negotiate HTTP/2 (requires the `httpx[http2]`
            extra to be installed). Defaults to False.
        follow_redirects: whether redirect responses are followed.
            Defaults to True.
    """

    use_http2: bool | UnsetType = _UNSET
    follow_redirects: bool | UnsetType = _UNSET


@dataclass
class FullHttpClientOptions(HttpClientOptions):
    """The fully-resolved counterpart of `HttpClientOptions`."""

    use_http2: bool
    follow_redirects: bool

    def with_override(
        self, other: HttpClientOptions | None | UnsetType
    ) -> FullHttpClientOptions:
        if not isinstance(other, HttpClientOptions):
            return self
        return FullHttpClientOptions(
            use_http2=_pick(self.use_http2, other.use_http2),
            follow_redirects=_pick(self.follow_redirects, other.follow_redirects),
        )


@dataclass
class CommandOptions:
    """
    One layer of configuration, to be applied on top of the layers above it.

    Layers exist at each level of the object hierarchy (DataAPIClient,
    Database, Collection/Table, admin objects) and for each single method call.
    When a command is executed, all layers involved are merged, from the
    least to the most specific, on top of the hardcoded defaults: for each
    setting, the most specific layer that sets it wins. Any attribute left
    unspecified (or set to None) simply defers to the enclosing layers.

    Attributes:
        environment: the Astra DB environment ("prod", "dev", "test"), which
            determines the DevOps API base URL. Defaults to "prod".
        destination: the kind of Data API deployment ("astra", "dse", "hcd",
            "cassandra", "others"). Defaults to "astra".
        api_version: the Data API version used in URLs. Defaults to "v1".
        keyspace: the working keyspace. Defaults to "default_keyspace".
        include_keyspace_in_url: whether the keyspace is part of the URL of
            requests. Defaults to True.
        token: the authentication token (an "AstraCS:..." string for Astra DB).
        embedding_api_key: an API key for the embedding provider, passed as
            a header for vectorize-related operations.
        callers: caller identities, as `(name, version)` pairs, prepended to
            the User-Agent header of all requests.
        additional_headers: free-form headers to add to requests. A None value
            suppresses the header. Merged (not replaced) across layers.
        redacted_header_names: case-insensitive names of further headers to
            mask when logging requests. Merged (not replaced) across layers.
        timeout_options: a `TimeoutOptions`, merged field by field.
        http_client_options: a `HttpClientOptions`, merged field by field.
        cancellation_token: a `CancellationToken` to interrupt operations.
        input_converter: a function applied to every JSON object decoded from
            responses (a `json.loads` object hook).
        output_converter: a `json.JSONEncoder` subclass used to serialize
            request payloads.
    """

    environment: str | Environment | UnsetType = _UNSET
    destination: str | DataAPIDestination | UnsetType = _UNSET
    api_version: str | APIVersion | UnsetType = _UNSET
    keyspace: str | UnsetType = _UNSET
    include_keyspace_in_url: bool | UnsetType = _UNSET
    token: str | None | UnsetType = _UNSET
    embedding_api_key: str | None | UnsetType = _UNSET
    callers: Sequence[CallerType] | UnsetType = _UNSET
    additional_headers: dict[str, str | None] | UnsetType = _UNSET
    redacted_header_names: Iterable[str] | UnsetType = _UNSET
    timeout_options: TimeoutOptions | UnsetType = _UNSET
    http_client_options: HttpClientOptions | UnsetType = _UNSET
    cancellation_token: CancellationToken | None | UnsetType = _UNSET
    input_converter: InputConverterType | None | UnsetType = _UNSET
    output_converter: OutputConverterType | None | UnsetType = _UNSET

    def __post_init__(self) -> None:
        if is_set(self.environment):
            self.environment = Environment.coerce(self.environment)  # type: ignore[arg-type]
        if is_set(self.destination):
            self.destination = DataAPIDestination.coerce(self.destination)  # type: ignore[arg-type]
        if is_set(self.api_version):
            self.api_version = APIVersion.coerce(self.api_version)  # type: ignore[arg-type]
        if is_set(self.redacted_header_names):
            self.redacted_header_names = set(self.redacted_header_names)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        set_pieces = [
            f"{fld.name}={FIXED_SECRET_PLACEHOLDER}"
            if fld.name in {"token", "embedding_api_key"}
            else f"{fld.name}={getattr(self, fld.name)!r}"
            for fld in fields(CommandOptions)
            if is_set(getattr(self, fld.name))
        ]
        return f"{self.__class__.__name__}({', '.join(set_pieces)})"


@dataclass(repr=False)
class FullCommandOptions(CommandOptions):
    """
    A fully-resolved set of command options: every attribute has a definite
    value (possibly None for the nullable ones, such as `token`).

    This is what the objects in the hierarchy (DataAPIClient, Database,
    Collection, ...) hold as their `command_options` snapshot, and what
    a command is executed with. Obtain one with `merge_command_options`.
    """

    environment: Environment
    destination: DataAPIDestination
    api_version: APIVersion
    keyspace: str
    include_keyspace_in_url: bool
    token: str | None
    embedding_api_key: str | None
    callers: Sequence[CallerType]
    additional_headers: dict[str, str | None]
    redacted_header_names: set[str]
    timeout_options: FullTimeoutOptions
    http_client_options: FullHttpClientOptions
    cancellation_token: CancellationToken | None
    input_converter: InputConverterType | None
    output_converter: OutputConverterType | None

    def with_override(self, other: CommandOptions | None | UnsetType) -> FullCommandOptions:
        """
        Apply a (partially specified) layer on top of this one and return the
        resulting full options, without altering either input.

        Set attributes of `other` replace the ones found here, except for
        the header dictionary and the redacted-names set (which are merged)
        and the timeout/HTTP-client groups (merged attribute by attribute).
        """

        if not isinstance(other, CommandOptions):
            return self

        additional_headers: dict[str, str | None]
        if is_set(other.additional_headers):
            additional_headers = {
                **self.additional_headers,
                **other.additional_headers,  # type: ignore[dict-item]
            }
        else:
            additional_headers = self.additional_headers
        redacted_header_names: set[str]
        if is_set(other.redacted_header_names):
            redacted_header_names = self.redacted_header_names | set(
                other.redacted_header_names  # type: ignore[arg-type]
            )
        else:
            redacted_header_names = self.redacted_header_names

        return FullCommandOptions(
            environment=_pick(self.environment, other.environment),
            destination=_pick(self.destination, other.destination),
            api_version=_pick(self.api_version, other.api_version),
            keyspace=_pick(self.keyspace, other.keyspace),
            include_keyspace_in_url=_pick(
                self.include_keyspace_in_url, other.include_keyspace_in_url
            ),
            token=_pick(self.token, other.token),
            embedding_api_key=_pick(self.embedding_api_key, other.embedding_api_key),
            callers=_pick(self.callers, other.callers),
            additional_headers=additional_headers,
            redacted_header_names=redacted_header_names,
            timeout_options=self.timeout_options.with_override(other.timeout_options),
            http_client_options=self.http_client_options.with_override(
                other.http_client_options
            ),
            cancellation_token=_pick(self.cancellation_token, other.cancellation_token),
            input_converter=_pick(self.input_converter, other.input_converter),
            output_converter=_pick(self.output_converter, other.output_converter),
        )


defaultTimeoutOptions = FullTimeoutOptions(
    connection_timeout_ms=DEFAULT_CONNECTION_TIMEOUT_MS,
    request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
    bulk_operation_timeout_ms=DEFAULT_BULK_OPERATION_TIMEOUT_MS,
    collection_admin_timeout_ms=DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS,
    table_admin_timeout_ms=DEFAULT_TABLE_ADMIN_TIMEOUT_MS,
    database_admin_timeout_ms=DEFAULT_DATABASE_ADMIN_TIMEOUT_MS,
    keyspace_admin_timeout_ms=DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS,
)
defaultHttpClientOptions = FullHttpClientOptions(
    use_http2=DEFAULT_USE_HTTP2,
    follow_redirects=DEFAULT_FOLLOW_REDIRECTS,
)


def defaultCommandOptions() -> FullCommandOptions:
    """
    Return the default, fully-specified command options: the implicit
    bottom layer of every merge.
    """

    return FullCommandOptions(
        environment=Environment.PROD,
        destination=DataAPIDestination.ASTRA,
        api_version=APIVersion.V1,
        keyspace=DEFAULT_ASTRA_DB_KEYSPACE,
        include_keyspace_in_url=DEFAULT_INCLUDE_KEYSPACE_IN_URL,
        token=None,
        embedding_api_key=None,
        callers=[],
        additional_headers={},
        redacted_header_names=set(),
        timeout_options=defaultTimeoutOptions,
        http_client_options=defaultHttpClientOptions,
        cancellation_token=None,
        input_converter=None,
        output_converter=None,
    )


def merge_command_options(
    *layers: CommandOptions | None | UnsetType,
) -> FullCommandOptions:
    """
    Resolve an ordered sequence of option layers, least specific first,
    into a full set of options.

    The defaults are implicitly prepended; then, for each setting, the last
    layer where it is set wins. Grouped settings (timeouts, HTTP client) are
    resolved setting by setting. Missing layers (None) are skipped.
    The input layers are left untouched, so that a layer can be safely
    reused across any number of merges.

    Example:
        >>> merged = merge_command_options(
        ...     CommandOptions(keyspace="ks1"),
        ...     CommandOptions(timeout_options=TimeoutOptions(request_timeout_ms=500)),
        ... )
        >>> merged.keyspace, merged.timeout_options.request_timeout_ms
        ('ks1', 500)
        >>> merged.timeout_options.connection_timeout_ms
        5000
    """

    merged = defaultCommandOptions()
    for layer in layers:
        merged = merged.with_override(layer)
    return merged
