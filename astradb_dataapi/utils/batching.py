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
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from astradb_dataapi.exceptions import (
    DataAPIUsageException,
    OperationCancelledException,
)
from astradb_dataapi.utils.cancellation import CancellationToken

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass
class BatchPlan(Generic[T]):
    """
    The partition of a sequence of items into chunks of (at most) `chunk_size`
    items, to be written with up to `concurrency` chunks in flight at a time.

    Ordered plans write chunks strictly one after the other and stop at the
    first failure, hence they require `concurrency` to be 1: any other value
    is rejected, never adjusted.

    Raises:
        DataAPIUsageException: for an invalid chunk size or concurrency,
            or an ordered plan with a concurrency other than 1.
    """

    items: Sequence[T]
    chunk_size: int
    concurrency: int
    ordered: bool

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise DataAPIUsageException(
                f"The chunk size must be a positive integer (got {self.chunk_size})."
            )
        if self.concurrency < 1:
            raise DataAPIUsageException(
                f"The concurrency must be a positive integer (got {self.concurrency})."
            )
        if self.ordered and self.concurrency != 1:
            raise DataAPIUsageException(
                "Cannot run an ordered insertion concurrently: "
                f"concurrency must be 1 (got {self.concurrency})."
            )

    @property
    def chunks(self) -> list[list[T]]:
        items = list(self.items)
        return [
            items[i : i + self.chunk_size]
            for i in range(0, len(items), self.chunk_size)
        ]


@dataclass
class BatchResult(Generic[R]):
    """
    The merged outcome of the chunked writes of a BatchPlan.

    Attributes:
        inserted_ids: the identifiers written, merged across all chunks
            (in chunk order for ordered plans, in completion order otherwise).
        chunk_results: the raw result of each chunk that received a response,
            by chunk index.
        succeeded_chunks: the indices of the chunks fully written.
        failed_chunks: the indices of the chunks that failed, wholly or in part.
        exceptions: the root exceptions met. A cancellation is reported here
            as an OperationCancelledException.
        total_chunks: the number of chunks in the plan.
    """

    inserted_ids: list[Any] = field(default_factory=list)
    chunk_results: dict[int, R] = field(default_factory=dict)
    succeeded_chunks: list[int] = field(default_factory=list)
    failed_chunks: list[int] = field(default_factory=list)
    exceptions: list[Exception] = field(default_factory=list)
    total_chunks: int = 0

    @property
    def complete(self) -> bool:
        return not self.exceptions and len(self.succeeded_chunks) == self.total_chunks

    def _record(
        self,
        index: int,
        result: R | None,
        ids: list[Any],
        exception: Exception | None,
    ) -> None:
        if result is not None:
            self.chunk_results[index] = result
        self.inserted_ids.extend(ids)
        if exception is None:
            self.succeeded_chunks.append(index)
        else:
            self.failed_chunks.append(index)
            self.exceptions.append(exception)

    def _is_cancelled(self) -> bool:
        return any(
            isinstance(exc, OperationCancelledException) for exc in self.exceptions
        )

    def _record_cancellation(self) -> None:
        if not self._is_cancelled():
            self.exceptions.append(
                OperationCancelledException(
                    "The batched write was cancelled before all chunks were sent."
                )
            )

    def _finalize(self) -> BatchResult[R]:
        self.succeeded_chunks.sort()
        self.failed_chunks.sort()
        return self


def _evaluate_chunk(
    result: R,
    extract_ids: Callable[[R], list[Any]],
    extract_error: Callable[[R], Exception | None] | None,
) -> tuple[list[Any], Exception | None]:
    ids = extract_ids(result)
    error = extract_error(result) if extract_error is not None else None
    return ids, error


def run_batches(
    plan: BatchPlan[T],
    send_chunk: Callable[[int, list[T]], R],
    extract_ids: Callable[[R], list[Any]],
    extract_error: Callable[[R], Exception | None] | None = None,
    cancellation_token: CancellationToken | None = None,
) -> BatchResult[R]:
    """
    Write all chunks of a plan, on a thread pool when the plan is concurrent.

    Args:
        plan: the BatchPlan to execute.
        send_chunk: a function writing one chunk, given its index and items,
            and returning the raw result of the write. If it raises, the chunk
            counts as failed.
        extract_ids: a function reading the written ids out of a chunk result.
        extract_error: a function returning the exception to attribute to
            a chunk result reporting (partial) failure, None for a success.
        cancellation_token: if triggered, no further chunks are dispatched.

    Returns:
        a BatchResult. Failures do not raise: they are found in the result.
    """

    chunks = plan.chunks
    result: BatchResult[R] = BatchResult(total_chunks=len(chunks))
    lock = threading.Lock()

    def _write_chunk(index: int, chunk: list[T]) -> bool:
        if cancellation_token is not None and cancellation_token.cancelled:
            with lock:
                result._record_cancellation()
            return False
        logger.info(f"writing chunk {index} ({len(chunk)} items)")
        try:
            chunk_result = send_chunk(index, chunk)
        except Exception as exc:
            logger.warning(f"chunk {index} failed: {exc}")
            with lock:
                result._record(index, None, [], exc)
            return False
        ids, error = _evaluate_chunk(chunk_result, extract_ids, extract_error)
        with lock:
            result._record(index, chunk_result, ids, error)
        logger.info(f"finished writing chunk {index}")
        return error is None

    if plan.ordered or plan.concurrency == 1:
        for index, chunk in enumerate(chunks):
            success = _write_chunk(index, chunk)
            if not success and (plan.ordered or result._is_cancelled()):
                break
    else:
        with ThreadPoolExecutor(max_workers=plan.concurrency) as executor:
            list(executor.map(_write_chunk, range(len(chunks)), chunks))
    return result._finalize()


async def async_run_batches(
    plan: BatchPlan[T],
    send_chunk: Callable[[int, list[T]], Awaitable[R]],
    extract_ids: Callable[[R], list[Any]],
    extract_error: Callable[[R], Exception | None] | None = None,
    cancellation_token: CancellationToken | None = None,
) -> BatchResult[R]:
    """
    The awaitable counterpart of `run_batches`: chunks are written as tasks,
    with an asyncio.Semaphore bounding how many are in flight.
    """

    chunks = plan.chunks
    result: BatchResult[R] = BatchResult(total_chunks=len(chunks))
    lock = asyncio.Lock()
    sem = asyncio.Semaphore(plan.concurrency)

    async def _write_chunk(index: int, chunk: list[T]) -> bool:
        async with sem:
            if cancellation_token is not None and cancellation_token.cancelled:
                async with lock:
                    result._record_cancellation()
                return False
            logger.info(f"writing chunk {index} ({len(chunk)} items), async")
            try:
                chunk_result = await send_chunk(index, chunk)
            except Exception as exc:
                logger.warning(f"chunk {index} failed: {exc}")
                async with lock:
                    result._record(index, None, [], exc)
                return False
            ids, error = _evaluate_chunk(chunk_result, extract_ids, extract_error)
            async with lock:
                result._record(index, chunk_result, ids, error)
            logger.info(f"finished writing chunk {index}, async")
            return error is None

    if plan.ordered or plan.concurrency == 1:
        for index, chunk in enumerate(chunks):
            success = await _write_chunk(index, chunk)
            if not success and (plan.ordered or result._is_cancelled()):
                break
    else:
        tasks = [
            asyncio.create_task(_write_chunk(index, chunk))
            for index, chunk in enumerate(chunks)
        ]
        await asyncio.gather(*tasks)
    return result._finalize()
