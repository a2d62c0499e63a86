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
import threading
from typing import Callable

from astradb_dataapi.exceptions import OperationCancelledException

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    A thread-safe, one-shot cancellation signal that can be attached to
    command options at any level (client, database, collection, single call).

    Once `cancel()` is called, in-flight async requests carrying the token are
    aborted, sync requests are stopped before they are sent (or before their
    response is decoded), polling waits are interrupted and bulk operations
    stop dispatching new chunks. Cancellation is final.

    Example:
        >>> token = CancellationToken()
        >>> my_coll.insert_many(
        ...     documents,
        ...     command_options=CommandOptions(cancellation_token=token),
        ... )
        >>> # from another thread:
        >>> token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cancelled={self.cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = self._callbacks
            self._callbacks = []
        logger.info("cancellation requested")
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self, what: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelledException(f"The {what} was cancelled.")

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a function to be called upon cancellation (immediately, if
        the token is already cancelled). Return a function that unregisters it.
        """

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _remove
        callback()
        return lambda: None

    def wait(self, timeout_s: float | None) -> bool:
        """Block for up to `timeout_s` seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout_s)

    async def async_wait(self, timeout_s: float | None) -> bool:
        """Sleep for up to `timeout_s` seconds; return True if cancelled meanwhile."""
        if self._event.is_set():
            return True
        loop = asyncio.get_running_loop()
        cancelled_future: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not cancelled_future.done():
                cancelled_future.set_result(None)

        remove = self.add_callback(lambda: loop.call_soon_threadsafe(_resolve))
        try:
            await asyncio.wait_for(cancelled_future, timeout=timeout_s)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            remove()
