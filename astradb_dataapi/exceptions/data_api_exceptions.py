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

from dataclasses import dataclass
from typing import Any

import httpx

from astradb_dataapi.exceptions.error_descriptors import (
    DataAPIErrorDescriptor,
    DataAPIWarningDescriptor,
    summarize_error_descriptors,
)


class DataAPIException(Exception):
    """
    Root of all exceptions raised by this package when talking to the
    Data API or the DevOps API, or when a method is used incorrectly.
    """

    pass


@dataclass
class DataAPITransportException(DataAPIException):
    """
    The HTTP exchange with the API could not be completed (connection refused,
    network unreachable, protocol error, timeout...). These failures may be
    transient, but they are never retried automatically.

    Attributes:
        text: a text message about the exception.
        endpoint: the URL the failed request was targeting, if known.
    """

    text: str
    endpoint: str | None

    def __init__(self, text: str, *, endpoint: str | None = None) -> None:
        super().__init__(text)
        self.text = text
        self.endpoint = endpoint

    @classmethod
    def from_httpx_error(
        cls, httpx_error: httpx.TransportError
    ) -> DataAPITransportException:
        try:
            endpoint = str(httpx_error.request.url)
        except RuntimeError:
            # the error was not bound to a request
            endpoint = None
        return cls(
            f"{httpx_error.__class__.__name__}: {httpx_error}",
            endpoint=endpoint,
        )


@dataclass
class DataAPITimeoutException(DataAPITransportException):
    """
    A single HTTP request timed out, or the overall time allotted to a method
    spanning several requests (e.g. an insert_many) ran out.

    Attributes:
        text: a textual description of the error.
        timeout_type: the phase of the HTTP request when the event occurred
            ("connect", "read", "write", "pool") or "generic" if there is
            no specific request associated to the exception.
        endpoint: if the timeout is tied to a specific request, the URL it
            was targeting.
        raw_payload: if the timeout is tied to a specific request, the
            associated (encoded) payload.
    """

    timeout_type: str
    raw_payload: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
    ) -> None:
        super().__init__(text, endpoint=endpoint)
        self.timeout_type = timeout_type
        self.raw_payload = raw_payload


@dataclass
class DataAPIHttpException(DataAPIException, httpx.HTTPStatusError):
    """
    A request resulted in an HTTP 4xx or 5xx response.

    The response body, when it can be parsed, usually lists structured errors:
    those are made available as error descriptors, while this remains a
    (subclass of) `httpx.HTTPStatusError`.

    Attributes:
        text: a text message about the exception.
        status_code: the HTTP status code of the response.
        error_descriptors: the DataAPIErrorDescriptor objects found in the body.
    """

    text: str | None
    status_code: int
    error_descriptors: list[DataAPIErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        error_descriptors: list[DataAPIErrorDescriptor],
    ) -> None:
        DataAPIException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.status_code = httpx_error.response.status_code
        self.error_descriptors = error_descriptors

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
    ) -> DataAPIHttpException:
        """Parse a httpx status error into this exception."""

        raw_response: dict[str, Any]
        # a body that is not JSON (or not a dict) just yields no descriptors
        try:
            _parsed = httpx_error.response.json()
            raw_response = _parsed if isinstance(_parsed, dict) else {}
        except ValueError:
            raw_response = {}
        error_descriptors = DataAPIErrorDescriptor.from_list(
            raw_response.get("errors")
        )
        if error_descriptors:
            text = f"{summarize_error_descriptors(error_descriptors)}. {httpx_error}"
        else:
            text = str(httpx_error)

        return cls(
            text=text,
            httpx_error=httpx_error,
            error_descriptors=error_descriptors,
        )


class DevOpsAPIHttpException(DataAPIHttpException):
    """A request to the DevOps API resulted in an HTTP 4xx or 5xx response."""

    pass


@dataclass
class DataAPIResponseException(DataAPIException):
    """
    The API returned a successful HTTP response whose body nevertheless
    reports errors, possibly alongside a partial "status" or "data".

    Attributes:
        text: a summary of the errors.
        command: the payload sent to the API that led to the response.
        raw_response: the full response from the API.
        error_descriptors: one DataAPIErrorDescriptor per item in "errors".
        warning_descriptors: one DataAPIWarningDescriptor per item
            in "warnings" (if any).
    """

    text: str | None
    command: Any
    raw_response: dict[str, Any]
    error_descriptors: list[DataAPIErrorDescriptor]
    warning_descriptors: list[DataAPIWarningDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        command: Any,
        raw_response: dict[str, Any],
        error_descriptors: list[DataAPIErrorDescriptor],
        warning_descriptors: list[DataAPIWarningDescriptor],
    ) -> None:
        super().__init__(text)
        self.text = text
        self.command = command
        self.raw_response = raw_response
        self.error_descriptors = error_descriptors
        self.warning_descriptors = warning_descriptors

    @classmethod
    def from_response(
        cls,
        *,
        command: Any,
        raw_response: dict[str, Any],
    ) -> DataAPIResponseException:
        """Parse a raw response from the API into this exception."""

        _raw_response = raw_response or {}
        error_descriptors = DataAPIErrorDescriptor.from_list(
            _raw_response.get("errors")
        )
        # warnings may come at top level or within "status"
        _status = _raw_response.get("status")
        _status_warnings = _status.get("warnings") if isinstance(_status, dict) else None
        warning_descriptors: list[DataAPIWarningDescriptor] = [
            DataAPIWarningDescriptor(**vars(descriptor))
            for descriptor in DataAPIErrorDescriptor.from_list(
                list(_raw_response.get("warnings") or []) + list(_status_warnings or [])
            )
        ]
        return cls(
            summarize_error_descriptors(error_descriptors),
            command=command,
            raw_response=raw_response,
            error_descriptors=error_descriptors,
            warning_descriptors=warning_descriptors,
        )


class DevOpsAPIResponseException(DataAPIResponseException):
    """The DevOps API returned a response body reporting errors."""

    pass


@dataclass
class UnexpectedDataAPIResponseException(DataAPIException):
    """
    The API response could not be decoded, or it lacks the expected fields
    (e.g. a "status" for a status-wrapped result). This points to a defect
    or to a version skew between client and API.

    Attributes:
        text: a text message about the exception.
        raw_response: the response body, as a dict when it was JSON.
    """

    text: str
    raw_response: Any

    def __init__(
        self,
        text: str,
        raw_response: Any,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response


class DataAPIUsageException(DataAPIException, ValueError):
    """
    A method was called with conflicting or invalid arguments, or in a state
    that does not allow it. Such errors are detected before any request is
    issued.
    """

    pass


@dataclass
class CursorException(DataAPIUsageException):
    """
    A cursor was used in a way its current state does not allow, for instance
    reading its current page before any page has been fetched.

    Attributes:
        text: a text message about the exception.
        cursor_state: a string description of the current state of the cursor.
    """

    text: str
    cursor_state: str

    def __init__(
        self,
        text: str,
        *,
        cursor_state: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_state = cursor_state


@dataclass
class WaitTimeoutException(DataAPIException):
    """
    A polling wait (e.g. for a database to become active) ran out of time
    before the awaited condition was met. The individual requests made while
    polling may all have succeeded.

    Attributes:
        text: a text message about the exception.
        condition: a description of the condition that was awaited.
        max_wait_ms: the maximum waiting time that was allotted.
    """

    text: str
    condition: str
    max_wait_ms: int

    def __init__(self, text: str, *, condition: str, max_wait_ms: int) -> None:
        super().__init__(text)
        self.text = text
        self.condition = condition
        self.max_wait_ms = max_wait_ms


class OperationCancelledException(DataAPIException):
    """
    An operation was interrupted because its cancellation token was triggered.
    Work completed before the cancellation (e.g. some chunks of an insert_many)
    is not rolled back.
    """

    pass


class InvalidEnvironmentException(DataAPIException):
    """
    An operation was attempted that is not available on the specified
    environment/destination, for example asking for an Astra DB admin
    on a client targeting a self-deployed Data API.
    """

    pass


@dataclass
class TooManyDocumentsToCountException(DataAPIException):
    """
    A count operation could not complete because the number of matching
    documents/rows exceeds the requested upper bound or the API hard limit.

    Attributes:
        text: a text message about the exception.
        server_max_count_exceeded: True if the limit imposed by the API
            was reached (in that case a larger upper bound does not help).
    """

    text: str
    server_max_count_exceeded: bool

    def __init__(
        self,
        text: str,
        *,
        server_max_count_exceeded: bool,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.server_max_count_exceeded = server_max_count_exceeded
