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

import asyncio
import json
import logging
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Callable, ClassVar, Sequence

import httpx

from astradb_dataapi.exceptions import (
    DataAPIErrorDescriptor,
    DataAPIHttpException,
    DataAPIResponseException,
    DataAPITransportException,
    DataAPIWarningDescriptor,
    DevOpsAPIHttpException,
    DevOpsAPIResponseException,
    OperationCancelledException,
    UnexpectedDataAPIResponseException,
    _TimeoutContext,
    to_dataapi_timeout_exception,
)
from astradb_dataapi.settings.defaults import (
    DEFAULT_DATA_API_AUTH_HEADER,
    DEFAULT_DEV_OPS_AUTH_HEADER,
    DEFAULT_DEV_OPS_AUTH_PREFIX,
    EMBEDDING_HEADER_API_KEY,
)
from astradb_dataapi.utils.cancellation import CancellationToken
from astradb_dataapi.utils.command_options import (
    CommandOptions,
    FullCommandOptions,
    FullHttpClientOptions,
    merge_command_options,
)
from astradb_dataapi.utils.request_tools import (
    HttpMethod,
    log_httpx_request,
    log_httpx_response,
    redact_headers,
    to_httpx_timeout,
)
from astradb_dataapi.utils.str_enum import StrEnum
from astradb_dataapi.utils.url_builders import UrlBuilder
from astradb_dataapi.utils.user_agents import (
    compose_full_user_agent,
    detect_package_user_agent,
)

user_agent_package = detect_package_user_agent()

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[int, httpx.Headers], None]


class ResponseShape(StrEnum):
    """
    The expected shape of a response body:

    - RAW: the body itself is the result (it may even be empty);
    - STATUS: a `{"status": {...}}` object;
    - DATA_AND_STATUS: a `{"data": {...}, "status": {...}}` object, as
      returned by paginated reads. The "status" part is optional.
    """

    RAW = "raw"
    STATUS = "status"
    DATA_AND_STATUS = "data_and_status"


class TimeoutKind(StrEnum):
    """The classes of operations, each subject to its own timeout setting."""

    REQUEST = "request"
    BULK_OPERATION = "bulk_operation"
    COLLECTION_ADMIN = "collection_admin"
    TABLE_ADMIN = "table_admin"
    DATABASE_ADMIN = "database_admin"
    KEYSPACE_ADMIN = "keyspace_admin"

    @property
    def setting_name(self) -> str:
        return f"{self.value}_timeout_ms"


def timeout_context_for(
    options: FullCommandOptions, timeout_kind: TimeoutKind
) -> _TimeoutContext:
    """The timeout context for one request, as prescribed by resolved options."""

    timeout_ms: int = getattr(options.timeout_options, timeout_kind.setting_name)
    return _TimeoutContext(
        request_ms=timeout_ms,
        connect_ms=options.timeout_options.connection_timeout_ms,
        nominal_ms=timeout_ms,
        label=timeout_kind.setting_name,
    )


@dataclass
class Command:
    """
    One logical request to an API, built by a resource wrapper for each
    method call and executed (once) by an `APICommander`.

    Attributes:
        url_builder: the strategy producing the target URL.
        payload: the JSON-serializable content of the request. For Data API
            commands, it is wrapped as `{name: payload}` in the request body.
        name: the Data API command name (e.g. "findOne"). If None, the
            payload is sent as the whole body (as for the DevOps API).
        option_layers: the (not yet merged) option layers, least specific
            first. They are merged on top of the defaults upon execution.
        path_segments: further segments to append to the built URL
            (e.g. the collection name).
        http_method: the HTTP verb. Defaults to POST.
        timeout_kind: which timeout setting applies to the request.
        timeout_context: if provided, it replaces the timeout derived from the
            options (used by methods spanning several requests, which keep
            track of an overall deadline).
        request_params: query-string parameters for the request.
        response_handler: an optional callback invoked with the status code
            and headers of the response before its body is decoded.
        dev_ops_api: whether the request targets the DevOps API, which has
            its own authentication header and error classes.
        raise_api_errors: if False, an "errors" list in the response does not
            cause an exception and is returned as part of the response
            instead (as insert_many needs in order to account for partial
            successes).
    """

    url_builder: UrlBuilder
    payload: Any = None
    name: str | None = None
    option_layers: Sequence[CommandOptions | None] = ()
    path_segments: Sequence[str] = ()
    http_method: str = HttpMethod.POST
    timeout_kind: TimeoutKind = TimeoutKind.REQUEST
    timeout_context: _TimeoutContext | None = None
    request_params: dict[str, Any] | None = None
    response_handler: ResponseHandler | None = None
    dev_ops_api: bool = False
    raise_api_errors: bool = True

    def body(self) -> Any:
        if self.name is not None:
            return {self.name: self.payload if self.payload is not None else {}}
        return self.payload

    def describe(self) -> str:
        return self.name or f"{self.http_method} {'/'.join(self.path_segments)}"


@dataclass
class APIResponse:
    """
    A decoded API response.

    Attributes:
        status: the "status" part of the response, if any.
        data: the "data" part of the response, if any.
        errors: the errors reported in the response (only populated when the
            command was run with `raise_api_errors=False`, otherwise their
            presence results in an exception).
        warnings: the warnings found in the response.
        raw_response: the whole decoded body (None for an empty body).
        status_code: the HTTP status code of the response.
    """

    status: Any = None
    data: Any = None
    errors: list[DataAPIErrorDescriptor] = field(default_factory=list)
    warnings: list[DataAPIWarningDescriptor] = field(default_factory=list)
    raw_response: Any = None
    status_code: int = 200


@dataclass
class _PreparedRequest:
    options: FullCommandOptions
    url: str
    http_method: str
    headers: dict[str, str]
    encoded_payload: str | None
    timeout_context: _TimeoutContext


class APICommander:
    """
    The component that executes `Command` objects against the Data API or the
    DevOps API, in a blocking (`run`) or awaitable (`async_run`) fashion.

    The two modes are independent code paths, each on its own HTTP client,
    sharing only the preparation of the request and the processing of the
    response.

    The HTTP clients (and their connection pools) are shared by all
    commanders: one sync client per set of HTTP client options in the
    process, and one async client per set of options and event loop. They
    are created on first use. Closing a commander closes the shared clients,
    which are then transparently re-created by the next request.
    """

    _clients: ClassVar[dict[tuple[bool, bool], httpx.Client]] = {}
    _async_clients: ClassVar[
        weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[tuple[bool, bool], httpx.AsyncClient]
        ]
    ] = weakref.WeakKeyDictionary()
    _clients_lock: ClassVar[threading.Lock] = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __enter__(self) -> APICommander:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> APICommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.aclose()

    def close(self) -> None:
        with self._clients_lock:
            clients = list(APICommander._clients.values())
            APICommander._clients.clear()
        for client in clients:
            client.close()

    async def aclose(self) -> None:
        loop = asyncio.get_running_loop()
        with self._clients_lock:
            async_clients = list(APICommander._async_clients.pop(loop, {}).values())
        for async_client in async_clients:
            await async_client.aclose()

    def _client(self, http_options: FullHttpClientOptions) -> httpx.Client:
        key = (http_options.use_http2, http_options.follow_redirects)
        with self._clients_lock:
            client = APICommander._clients.get(key)
            if client is None or client.is_closed:
                client = httpx.Client(
                    http2=http_options.use_http2,
                    follow_redirects=http_options.follow_redirects,
                )
                APICommander._clients[key] = client
            return client

    def _async_client(self, http_options: FullHttpClientOptions) -> httpx.AsyncClient:
        key = (http_options.use_http2, http_options.follow_redirects)
        loop = asyncio.get_running_loop()
        with self._clients_lock:
            loop_clients = APICommander._async_clients.setdefault(loop, {})
            async_client = loop_clients.get(key)
            if async_client is None or async_client.is_closed:
                async_client = httpx.AsyncClient(
                    http2=http_options.use_http2,
                    follow_redirects=http_options.follow_redirects,
                )
                loop_clients[key] = async_client
            return async_client

    @staticmethod
    def _compose_headers(
        options: FullCommandOptions, dev_ops_api: bool
    ) -> dict[str, str]:
        auth_headers: dict[str, str | None]
        if dev_ops_api:
            auth_headers = {
                DEFAULT_DEV_OPS_AUTH_HEADER: (
                    f"{DEFAULT_DEV_OPS_AUTH_PREFIX}{options.token}"
                    if options.token
                    else None
                ),
            }
        else:
            auth_headers = {
                DEFAULT_DATA_API_AUTH_HEADER: options.token,
                EMBEDDING_HEADER_API_KEY: options.embedding_api_key,
            }
        user_agent = compose_full_user_agent(
            list(options.callers) + [user_agent_package]
        )
        return {
            k: v
            for k, v in {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": user_agent,
                **auth_headers,
                **options.additional_headers,
            }.items()
            if v is not None
        }

    @staticmethod
    def _encode_payload(body: Any, options: FullCommandOptions) -> str | None:
        if body is None:
            return None
        return json.dumps(
            body,
            allow_nan=False,
            separators=(",", ":"),
            ensure_ascii=False,
            cls=options.output_converter,
        )

    def _prepare_request(self, command: Command) -> _PreparedRequest:
        options = merge_command_options(*command.option_layers)
        url = command.url_builder.build(options, command.path_segments)
        headers = self._compose_headers(options, dev_ops_api=command.dev_ops_api)
        encoded_payload = self._encode_payload(command.body(), options)
        if command.timeout_context is not None:
            timeout_context = _TimeoutContext(
                request_ms=command.timeout_context.request_ms,
                connect_ms=(
                    command.timeout_context.connect_ms
                    or options.timeout_options.connection_timeout_ms
                ),
                nominal_ms=command.timeout_context.nominal_ms,
                label=command.timeout_context.label,
            )
        else:
            timeout_context = timeout_context_for(options, command.timeout_kind)
        log_httpx_request(
            http_method=command.http_method,
            full_url=url,
            redacted_request_headers=redact_headers(
                headers, options.redacted_header_names
            ),
            encoded_payload=encoded_payload,
            timeout_context=timeout_context,
        )
        return _PreparedRequest(
            options=options,
            url=url,
            http_method=command.http_method,
            headers=headers,
            encoded_payload=encoded_payload,
            timeout_context=timeout_context,
        )

    @staticmethod
    def _check_http_status(command: Command, raw_response: httpx.Response) -> None:
        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            log_httpx_response(response=raw_response)
            if command.dev_ops_api:
                raise DevOpsAPIHttpException.from_httpx_error(http_exc)
            raise DataAPIHttpException.from_httpx_error(http_exc)

    def _process_response(
        self,
        command: Command,
        prepared: _PreparedRequest,
        raw_response: httpx.Response,
        shape: ResponseShape,
    ) -> APIResponse:
        self._check_http_status(command, raw_response)
        if command.response_handler is not None:
            command.response_handler(raw_response.status_code, raw_response.headers)
        if prepared.options.cancellation_token is not None:
            prepared.options.cancellation_token.raise_if_cancelled(
                f"'{command.describe()}' command"
            )
        log_httpx_response(response=raw_response)

        decoded: Any
        if raw_response.text.strip():
            try:
                decoded = json.loads(
                    raw_response.text,
                    object_hook=prepared.options.input_converter,
                )
            except ValueError:
                raise UnexpectedDataAPIResponseException(
                    text=f"Unparseable response from API for '{command.describe()}'.",
                    raw_response={"raw_response": raw_response.text},
                )
        else:
            decoded = None

        api_response = APIResponse(
            raw_response=decoded,
            status_code=raw_response.status_code,
        )
        if isinstance(decoded, dict):
            api_response.status = decoded.get("status")
            api_response.data = decoded.get("data")
            if decoded.get("errors"):
                if command.raise_api_errors:
                    logger.warning(
                        f"APICommander about to raise from: {decoded['errors']}"
                    )
                    exc_class = (
                        DevOpsAPIResponseException
                        if command.dev_ops_api
                        else DataAPIResponseException
                    )
                    raise exc_class.from_response(
                        command=command.body(),
                        raw_response=decoded,
                    )
                api_response.errors = DataAPIErrorDescriptor.from_list(
                    decoded["errors"]
                )
            if not command.dev_ops_api:
                # the DevOps API 'status' can be a plain string
                api_response.warnings = self._extract_warnings(decoded)
                for warning in api_response.warnings:
                    logger.warning(f"The Data API returned a warning: {warning}")

        self._validate_shape(command, api_response, shape)
        return api_response

    @staticmethod
    def _extract_warnings(decoded: dict[str, Any]) -> list[DataAPIWarningDescriptor]:
        status = decoded.get("status")
        status_warnings = status.get("warnings") if isinstance(status, dict) else None
        return [
            DataAPIWarningDescriptor(**vars(descriptor))
            for descriptor in DataAPIErrorDescriptor.from_list(
                list(decoded.get("warnings") or []) + list(status_warnings or [])
            )
        ]

    @staticmethod
    def _validate_shape(
        command: Command, api_response: APIResponse, shape: ResponseShape
    ) -> None:
        if shape == ResponseShape.RAW:
            return
        # a response carrying unraised errors may legitimately lack the rest
        if api_response.errors:
            return
        if not isinstance(api_response.raw_response, dict):
            raise UnexpectedDataAPIResponseException(
                text=f"Response to '{command.describe()}' is not a JSON object.",
                raw_response=api_response.raw_response,
            )
        if shape == ResponseShape.STATUS and "status" not in api_response.raw_response:
            raise UnexpectedDataAPIResponseException(
                text=f"Faulty response from API for '{command.describe()}': no 'status'.",
                raw_response=api_response.raw_response,
            )
        if (
            shape == ResponseShape.DATA_AND_STATUS
            and "data" not in api_response.raw_response
        ):
            raise UnexpectedDataAPIResponseException(
                text=f"Faulty response from API for '{command.describe()}': no 'data'.",
                raw_response=api_response.raw_response,
            )

    def run(
        self, command: Command, shape: ResponseShape = ResponseShape.STATUS
    ) -> APIResponse:
        """
        Execute a command, blocking until its response is processed.

        Args:
            command: the Command to execute.
            shape: the expected shape of the response body.

        Returns:
            an APIResponse.
        """

        prepared = self._prepare_request(command)
        cancellation_token = prepared.options.cancellation_token
        if cancellation_token is None:
            raw_response = self._send(command, prepared)
        else:
            cancellation_token.raise_if_cancelled(f"'{command.describe()}' command")
            raw_response = self._send_cancellable(command, prepared, cancellation_token)
        return self._process_response(command, prepared, raw_response, shape)

    def _send(self, command: Command, prepared: _PreparedRequest) -> httpx.Response:
        client = self._client(prepared.options.http_client_options)
        try:
            return client.request(
                method=prepared.http_method,
                url=prepared.url,
                content=(
                    prepared.encoded_payload.encode()
                    if prepared.encoded_payload is not None
                    else None
                ),
                params=command.request_params,
                timeout=to_httpx_timeout(prepared.timeout_context),
                headers=prepared.headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_dataapi_timeout_exception(
                timeout_exc, timeout_context=prepared.timeout_context
            )
        except httpx.TransportError as transport_exc:
            raise DataAPITransportException.from_httpx_error(transport_exc)

    def _send_cancellable(
        self,
        command: Command,
        prepared: _PreparedRequest,
        cancellation_token: CancellationToken,
    ) -> httpx.Response:
        """
        Send the request from a worker thread, waiting for either its outcome
        or the cancellation of the token, whichever comes first.

        Upon cancellation the caller is released at once with an
        OperationCancelledException, while the abandoned exchange runs to
        completion (bounded by its timeout) and its outcome is discarded.
        """

        settled = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="astradb_dataapi_request"
        )
        try:
            future = executor.submit(self._send, command, prepared)
            future.add_done_callback(lambda _: settled.set())
            unregister = cancellation_token.add_callback(settled.set)
            try:
                settled.wait()
            finally:
                unregister()
        finally:
            executor.shutdown(wait=False)
        if future.done():
            return future.result()
        logger.info(f"abandoning in-flight '{command.describe()}' upon cancellation")
        raise OperationCancelledException(
            f"The '{command.describe()}' command was cancelled."
        )

    async def async_run(
        self, command: Command, shape: ResponseShape = ResponseShape.STATUS
    ) -> APIResponse:
        """
        Execute a command asynchronously. If a cancellation token is in force
        and gets triggered while the request is in flight, the request is
        aborted and an OperationCancelledException is raised.

        Args:
            command: the Command to execute.
            shape: the expected shape of the response body.

        Returns:
            an APIResponse.
        """

        prepared = self._prepare_request(command)
        cancellation_token = prepared.options.cancellation_token
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled(f"'{command.describe()}' command")
        async_client = self._async_client(prepared.options.http_client_options)
        request_task = asyncio.ensure_future(
            async_client.request(
                method=prepared.http_method,
                url=prepared.url,
                content=(
                    prepared.encoded_payload.encode()
                    if prepared.encoded_payload is not None
                    else None
                ),
                params=command.request_params,
                timeout=to_httpx_timeout(prepared.timeout_context),
                headers=prepared.headers,
            )
        )
        unregister: Callable[[], None] = lambda: None  # noqa: E731
        if cancellation_token is not None:
            loop = asyncio.get_running_loop()
            unregister = cancellation_token.add_callback(
                lambda: loop.call_soon_threadsafe(request_task.cancel)
            )
        try:
            raw_response = await request_task
        except asyncio.CancelledError:
            if cancellation_token is not None and cancellation_token.cancelled:
                raise OperationCancelledException(
                    f"The '{command.describe()}' command was cancelled."
                ) from None
            raise
        except httpx.TimeoutException as timeout_exc:
            raise to_dataapi_timeout_exception(
                timeout_exc, timeout_context=prepared.timeout_context
            )
        except httpx.TransportError as transport_exc:
            raise DataAPITransportException.from_httpx_error(transport_exc)
        finally:
            unregister()
        return self._process_response(command, prepared, raw_response, shape)
