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
import logging
import time
from typing import Awaitable, Callable

from astradb_dataapi.exceptions import (
    OperationCancelledException,
    WaitTimeoutException,
)
from astradb_dataapi.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


def _next_sleep_s(
    poll_interval_ms: int, deadline: float | None, now: float
) -> float | None:
    # None: the deadline has passed
    interval_s = poll_interval_ms / 1000
    if deadline is None:
        return interval_s
    if now >= deadline:
        return None
    return min(interval_s, deadline - now)


def _timeout_error(condition: str, max_wait_ms: int, attempts: int) -> WaitTimeoutException:
    return WaitTimeoutException(
        f"Timed out waiting for {condition} after {max_wait_ms} ms "
        f"({attempts} attempts).",
        condition=condition,
        max_wait_ms=max_wait_ms,
    )


def wait_until(
    predicate: Callable[[], bool],
    *,
    poll_interval_ms: int,
    max_wait_ms: int | None,
    condition: str,
    cancellation_token: CancellationToken | None = None,
) -> None:
    """
    Evaluate a predicate repeatedly until it returns True, sleeping
    `poll_interval_ms` between attempts (never past the deadline).

    The predicate is always evaluated at least once. A predicate raising
    an exception stops the wait, propagating the exception.

    Args:
        predicate: a function with no arguments returning a boolean.
        poll_interval_ms: the sleep between consecutive attempts.
        max_wait_ms: the maximum overall wait. Zero or None mean no limit.
        condition: a description of the awaited condition, for logging
            and error reporting.
        cancellation_token: if provided and triggered, the wait is
            interrupted with an OperationCancelledException.

    Raises:
        WaitTimeoutException: if the condition is not met in time.
    """

    deadline = time.monotonic() + max_wait_ms / 1000 if max_wait_ms else None
    attempts = 0
    while True:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled(f"wait for {condition}")
        attempts += 1
        if predicate():
            logger.info(f"{condition}: reached after {attempts} attempt(s)")
            return
        sleep_s = _next_sleep_s(poll_interval_ms, deadline, time.monotonic())
        if sleep_s is None:
            raise _timeout_error(condition, max_wait_ms or 0, attempts)
        logger.debug(f"{condition}: not yet, sleeping {sleep_s:.3f} s")
        if cancellation_token is not None:
            if cancellation_token.wait(sleep_s):
                raise OperationCancelledException(
                    f"The wait for {condition} was cancelled."
                )
        else:
            time.sleep(sleep_s)


async def async_wait_until(
    predicate: Callable[[], Awaitable[bool]],
    *,
    poll_interval_ms: int,
    max_wait_ms: int | None,
    condition: str,
    cancellation_token: CancellationToken | None = None,
) -> None:
    """
    The awaitable counterpart of `wait_until`: the predicate is a coroutine
    function, and the sleeps between attempts do not block the event loop.
    """

    deadline = time.monotonic() + max_wait_ms / 1000 if max_wait_ms else None
    attempts = 0
    while True:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled(f"wait for {condition}")
        attempts += 1
        if await predicate():
            logger.info(f"{condition}: reached after {attempts} attempt(s), async")
            return
        sleep_s = _next_sleep_s(poll_interval_ms, deadline, time.monotonic())
        if sleep_s is None:
            raise _timeout_error(condition, max_wait_ms or 0, attempts)
        logger.debug(f"{condition}: not yet, sleeping {sleep_s:.3f} s")
        if cancellation_token is not None:
            if await cancellation_token.async_wait(sleep_s):
                raise OperationCancelledException(
                    f"The wait for {condition} was cancelled."
                )
        else:
            await asyncio.sleep(sleep_s)
