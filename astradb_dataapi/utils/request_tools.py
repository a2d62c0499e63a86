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
from typing import Iterable, Mapping

import httpx

from astradb_dataapi.exceptions import _TimeoutContext
from astradb_dataapi.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)

logger = logging.getLogger(__name__)


class HttpMethod:
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


def redact_headers(
    headers: Mapping[str, str],
    redacted_header_names: Iterable[str] = (),
) -> dict[str, str]:
    """
    Return a copy of the headers where the values of secret-bearing ones
    (the default auth/API-key headers plus any further names supplied)
    are masked. Header names are compared case-insensitively.
    """

    upper_names = {
        name.upper() for name in set(redacted_header_names) | DEFAULT_REDACTED_HEADER_NAMES
    }
    return {
        k: FIXED_SECRET_PLACEHOLDER if k.upper() in upper_names else v
        for k, v in headers.items()
    }


def log_httpx_request(
    http_method: str,
    full_url: str,
    redacted_request_headers: dict[str, str],
    encoded_payload: str | None,
    timeout_context: _TimeoutContext,
) -> None:
    """
    Log the details of an HTTP request for debugging purposes.

    Args:
        http_method: the HTTP verb of the request (e.g. "POST").
        full_url: the URL of the request.
        redacted_request_headers: caution, as these will be logged as they are.
        encoded_payload: the serialized body of the request, if any.
        timeout_context: the timeouts applied to the request.
    """
    logger.debug(f"Request URL: {http_method} {full_url}")
    if redacted_request_headers:
        logger.debug(f"Request headers: '{redacted_request_headers}'")
    if encoded_payload is not None:
        logger.debug(f"Request payload: '{encoded_payload}'")
    if timeout_context:
        logger.debug(
            f"Timeout (ms): for request {timeout_context.request_ms or '(unset)'} ms"
            f", connect {timeout_context.connect_ms or '(unset)'} ms"
            f", overall operation {timeout_context.nominal_ms or '(unset)'} ms"
        )


def log_httpx_response(response: httpx.Response) -> None:
    logger.debug(f"Response status code: {response.status_code}")
    logger.debug(f"Response headers: '{response.headers}'")
    logger.debug(f"Response text: '{response.text}'")


def to_httpx_timeout(timeout_context: _TimeoutContext) -> httpx.Timeout:
    """
    Express a timeout context as a httpx.Timeout: the request timeout applies
    to reads, writes and pool acquisition, the connect timeout to connecting.
    Zero or missing values mean no limit.
    """

    request_s = (
        timeout_context.request_ms / 1000 if timeout_context.request_ms else None
    )
    connect_s = (
        timeout_context.connect_ms / 1000 if timeout_context.connect_ms else request_s
    )
    return httpx.Timeout(request_s, connect=connect_s)
