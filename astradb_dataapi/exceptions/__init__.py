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

import time
from dataclasses import dataclass

import httpx

from astradb_dataapi.exceptions.bulk_exceptions import (
    CollectionInsertManyException,
    InsertManyException,
    TableInsertManyException,
)
from astradb_dataapi.exceptions.data_api_exceptions import (
    CursorException,
    DataAPIException,
    DataAPIHttpException,
    DataAPIResponseException,
    DataAPITimeoutException,
    DataAPITransportException,
    DataAPIUsageException,
    DevOpsAPIHttpException,
    DevOpsAPIResponseException,
    InvalidEnvironmentException,
    OperationCancelledException,
    TooManyDocumentsToCountException,
    UnexpectedDataAPIResponseException,
    WaitTimeoutException,
)
from astradb_dataapi.exceptions.error_descriptors import (
    DataAPIErrorDescriptor,
    DataAPIWarningDescriptor,
)


@dataclass
class _TimeoutContext:
    """
    A timeout value to obey, enriched with the information needed to present
    a helpful message should the timeout be hit: the name of the setting
    responsible for it and its "nominal" value (which may differ from the
    time actually granted to a request, when a deadline spans several requests).

    Args:
        request_ms: the number of milliseconds a given HTTP request may last.
        connect_ms: the number of milliseconds allowed to establish a connection.
        nominal_ms: the timeout, in milliseconds, as originally set.
        label: the name of the timeout setting, as known to the user.
    """

    request_ms: int | None
    connect_ms: int | None
    nominal_ms: int | None
    label: str | None

    def __init__(
        self,
        *,
        request_ms: int | None,
        connect_ms: int | None = None,
        nominal_ms: int | None = None,
        label: str | None = None,
    ) -> None:
        self.request_ms = request_ms
        self.connect_ms = connect_ms
        self.nominal_ms = nominal_ms
        self.label = label

    def __bool__(self) -> bool:
        return self.nominal_ms is not None or self.request_ms is not None


def to_dataapi_timeout_exception(
    httpx_timeout: httpx.TimeoutException,
    timeout_context: _TimeoutContext,
) -> DataAPITimeoutException:
    text_0 = str(httpx_timeout) or "timed out"
    timeout_ms = timeout_context.nominal_ms or timeout_context.request_ms
    if timeout_ms:
        if timeout_context.label:
            text = f"{text_0} (timeout honoured: {timeout_context.label} = {timeout_ms} ms)"
        else:
            text = f"{text_0} (timeout honoured: {timeout_ms} ms)"
    else:
        text = text_0
    if isinstance(httpx_timeout, httpx.ConnectTimeout):
        timeout_type = "connect"
    elif isinstance(httpx_timeout, httpx.ReadTimeout):
        timeout_type = "read"
    elif isinstance(httpx_timeout, httpx.WriteTimeout):
        timeout_type = "write"
    elif isinstance(httpx_timeout, httpx.PoolTimeout):
        timeout_type = "pool"
    else:
        timeout_type = "generic"
    endpoint: str | None = None
    raw_payload: str | None = None
    try:
        request = httpx_timeout.request
        endpoint = str(request.url)
        if isinstance(request.content, bytes):
            raw_payload = request.content.decode()
    except RuntimeError:
        # the exception carries no request
        pass
    return DataAPITimeoutException(
        text=text,
        timeout_type=timeout_type,
        endpoint=endpoint,
        raw_payload=raw_payload,
    )


def _first_valid_timeout(
    *items: tuple[int | None, str | None],
) -> tuple[int, str | None]:
    # items are (timeout ms, label); zero stands for 'no timeout' downstream
    not_nulls = [itm for itm in items if itm[0] is not None]
    if not_nulls:
        return not_nulls[0]  # type: ignore[return-value]
    return 0, None


class MultiCallTimeoutManager:
    """
    A helper class to keep track of an overall deadline in a method that
    issues several requests (paginated operations, insert_many, polling).

    Args:
        overall_timeout_ms: an optional max duration to track (milliseconds).
            Zero or None mean no deadline.
        timeout_label: the name of the setting `overall_timeout_ms` comes from.
        connect_ms: the connection timeout to propagate to each request.
    """

    overall_timeout_ms: int | None
    started_ms: int
    deadline_ms: int | None
    timeout_label: str | None

    def __init__(
        self,
        overall_timeout_ms: int | None,
        timeout_label: str | None = None,
        connect_ms: int | None = None,
    ) -> None:
        self.started_ms = int(time.time() * 1000)
        self.timeout_label = timeout_label
        self.connect_ms = connect_ms
        self.overall_timeout_ms = overall_timeout_ms or None
        if self.overall_timeout_ms is not None:
            self.deadline_ms = self.started_ms + self.overall_timeout_ms
        else:
            self.deadline_ms = None

    def remaining_timeout(
        self, cap_time_ms: int | None = None, cap_timeout_label: str | None = None
    ) -> _TimeoutContext:
        """
        Ensure the deadline, if any, is not yet in the past (raising a
        DataAPITimeoutException otherwise) and return the timeout context
        for the next request.

        Args:
            cap_time_ms: an additional per-request constraint. If the time left
                before the deadline exceeds it, the cap is used instead.
            cap_timeout_label: the name of the setting the cap comes from.
        """

        _cap_time_ms = cap_time_ms or None
        now_ms = int(time.time() * 1000)
        if self.deadline_ms is not None:
            if now_ms < self.deadline_ms:
                remaining = self.deadline_ms - now_ms
                if _cap_time_ms is not None and remaining > _cap_time_ms:
                    return _TimeoutContext(
                        request_ms=_cap_time_ms,
                        connect_ms=self.connect_ms,
                        nominal_ms=_cap_time_ms,
                        label=cap_timeout_label,
                    )
                return _TimeoutContext(
                    request_ms=remaining,
                    connect_ms=self.connect_ms,
                    nominal_ms=self.overall_timeout_ms,
                    label=self.timeout_label,
                )
            else:
                if self.timeout_label:
                    err_msg = (
                        f"Operation timed out (timeout honoured: {self.timeout_label} "
                        f"= {self.overall_timeout_ms} ms)."
                    )
                else:
                    err_msg = (
                        f"Operation timed out (timeout honoured: "
                        f"{self.overall_timeout_ms} ms)."
                    )
                raise DataAPITimeoutException(
                    text=err_msg,
                    timeout_type="generic",
                    endpoint=None,
                    raw_payload=None,
                )
        return _TimeoutContext(
            request_ms=_cap_time_ms,
            connect_ms=self.connect_ms,
            nominal_ms=_cap_time_ms,
            label=cap_timeout_label,
        )


__all__ = [
    "CollectionInsertManyException",
    "CursorException",
    "DataAPIErrorDescriptor",
    "DataAPIException",
    "DataAPIHttpException",
    "DataAPIResponseException",
    "DataAPITimeoutException",
    "DataAPITransportException",
    "DataAPIUsageException",
    "DataAPIWarningDescriptor",
    "DevOpsAPIHttpException",
    "DevOpsAPIResponseException",
    "InsertManyException",
    "InvalidEnvironmentException",
    "MultiCallTimeoutManager",
    "OperationCancelledException",
    "TableInsertManyException",
    "TooManyDocumentsToCountException",
    "UnexpectedDataAPIResponseException",
    "WaitTimeoutException",
]
