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
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Iterator,
    TypeVar,
    cast,
)

from astradb_dataapi.exceptions import CursorException

# A cursor reads TRAW from the API and maps them to T if any mapping.
# A new cursor returned by .map will map to TNEW
TRAW = TypeVar("TRAW")
T = TypeVar("T")
TNEW = TypeVar("TNEW")

logger = logging.getLogger(__name__)


@dataclass
class FindPage(Generic[TRAW]):
    """
    One page of results of a find-like command.

    Attributes:
        items: the documents or rows in the page.
        next_page_state: the continuation token to fetch the next page,
            None (or empty) if this is the last page.
        sort_vector: the vector used by the API to sort the results,
            when it was asked to echo it.
    """

    items: list[TRAW]
    next_page_state: str | None = None
    sort_vector: list[float] | None = None

    @classmethod
    def from_response(
        cls, data: dict[str, Any] | None, status: dict[str, Any] | None, items_key: str
    ) -> FindPage[Any]:
        """Read a page from the "data" and "status" of a find-like response."""
        _data = data or {}
        return cls(
            items=list(_data.get(items_key) or []),
            next_page_state=_data.get("nextPageState") or None,
            sort_vector=(status or {}).get("sortVector"),
        )

    @classmethod
    def from_rerank_response(
        cls, data: dict[str, Any] | None, status: dict[str, Any] | None
    ) -> FindPage[RerankedResult[dict[str, Any]]]:
        """
        Read a page from a findAndRerank response, pairing each document with
        its scores. These come in the "documentResponses" of the status,
        positionally, and only when scores were requested.
        """
        page = cls.from_response(data, status, "documents")
        document_responses = (status or {}).get("documentResponses")
        if document_responses is None:
            document_responses = [{}] * len(page.items)
        return FindPage(
            items=[
                RerankedResult(
                    document=document, scores=dict(doc_response.get("scores") or {})
                )
                for document, doc_response in zip(page.items, document_responses)
            ],
            next_page_state=page.next_page_state,
            sort_vector=page.sort_vector,
        )


@dataclass
class RerankedResult(Generic[T]):
    """
    A document found by a find-and-rerank search.

    Attributes:
        document: the document itself.
        scores: the scores attached to the document by the search, such as
            "$rerank", "$vector" and "$lexical". Empty unless scores were
            requested.
    """

    document: T
    scores: dict[str, float]


class CursorState(Enum):
    """
    The possible states for a cursor.

    Values:
        IDLE: no page has been fetched yet.
        STARTED: at least one page has been fetched; more may follow.
        EXHAUSTED: the last page has been fetched, no more requests will be made.
        CLOSED: the cursor was closed by the caller.
    """

    IDLE = "idle"
    STARTED = "started"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class _BaseCursor(Generic[TRAW, T]):
    """
    The state machine common to the sync and async cursors. Subclasses only
    differ in how a page is obtained (blocking or awaiting).
    """

    _state: CursorState
    _current_page: list[TRAW]
    _buffer: deque[TRAW]
    _next_page_state: str | None
    _sort_vectors: list[list[float]]
    _pages_retrieved: int
    _consumed: int

    def __init__(self, mapper: Callable[[TRAW], T] | None = None) -> None:
        self._mapper = mapper
        self._state = CursorState.IDLE
        self._current_page = []
        self._buffer = deque()
        self._next_page_state = None
        self._sort_vectors = []
        self._pages_retrieved = 0
        self._consumed = 0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(state={self._state.value}, "
            f"pages_retrieved={self._pages_retrieved}, consumed={self._consumed})"
        )

    def _map(self, item: TRAW) -> T:
        if self._mapper is None:
            return cast(T, item)
        return self._mapper(item)

    def _should_fetch(self) -> bool:
        if self._state in {CursorState.EXHAUSTED, CursorState.CLOSED}:
            return False
        if self._state == CursorState.STARTED and not self._next_page_state:
            self._state = CursorState.EXHAUSTED
            return False
        return True

    def _ingest_page(self, page: FindPage[TRAW]) -> bool:
        self._pages_retrieved += 1
        if page.sort_vector is not None:
            self._sort_vectors.append(page.sort_vector)
        if not page.items:
            logger.info("cursor: empty page received, cursor exhausted")
            self._state = CursorState.EXHAUSTED
            self._next_page_state = None
            return False
        self._current_page = list(page.items)
        self._buffer = deque(page.items)
        self._next_page_state = page.next_page_state or None
        self._state = CursorState.STARTED
        return True

    def _next_from_buffer(self) -> T:
        item = self._buffer.popleft()
        self._consumed += 1
        return self._map(item)

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def current(self) -> list[T]:
        """
        The items of the page currently loaded. After the cursor is exhausted,
        this keeps returning the last non-empty page.

        Raises:
            CursorException: if no page has been loaded yet or the cursor
                is closed.
        """

        if self._state == CursorState.IDLE:
            raise CursorException(
                text="No page is available before the first advance.",
                cursor_state=self._state.value,
            )
        if self._state == CursorState.CLOSED:
            raise CursorException(
                text="Cursor is closed.",
                cursor_state=self._state.value,
            )
        return [self._map(item) for item in self._current_page]

    @property
    def sort_vectors(self) -> list[list[float]]:
        """The sort vectors echoed by the API so far, one per page, in fetch order."""
        return list(self._sort_vectors)

    @property
    def sort_vector(self) -> list[float] | None:
        """The sort vector echoed by the API with the first page, if any."""
        return self._sort_vectors[0] if self._sort_vectors else None

    @property
    def consumed(self) -> int:
        """The number of items yielded by iterating over the cursor."""
        return self._consumed

    @property
    def pages_retrieved(self) -> int:
        return self._pages_retrieved

    @property
    def buffered_count(self) -> int:
        """The number of fetched items not yet yielded by iteration."""
        return len(self._buffer)

    def close(self) -> None:
        """
        Close the cursor, discarding whatever has not been consumed yet.
        A closed cursor never fetches pages again.
        """

        self._state = CursorState.CLOSED
        self._buffer = deque()
        self._current_page = []


class Cursor(_BaseCursor[TRAW, T]):
    """
    A forward-only cursor over the results of a find-like operation,
    fetching pages from the API as they are needed.

    The cursor can be driven page by page, with `advance()` and `current`,
    or item by item, by iterating over it. Each page is fetched at most once:
    once the results are drained, scanning them again requires a new cursor.

    Args:
        fetch_page: a function that, given a page state (None for the first
            page), returns a FindPage. The cursor never inspects the state.
        mapper: an optional function to apply to each item.

    Example:
        >>> cursor = my_coll.find({"genre": "fantasy"})
        >>> while cursor.advance():
        ...     print(len(cursor.current))
        ...
        20
        7
    """

    def __init__(
        self,
        fetch_page: Callable[[str | None], FindPage[TRAW]],
        mapper: Callable[[TRAW], T] | None = None,
    ) -> None:
        super().__init__(mapper=mapper)
        self._fetch_page = fetch_page

    def advance(self) -> bool:
        """
        Fetch the next page of results.

        Returns:
            True if a new, non-empty page has been loaded, False if there are
            no more results (from then on, no further requests are made).
        """

        if not self._should_fetch():
            return False
        logger.info(f"cursor fetching page #{self._pages_retrieved + 1}")
        page = self._fetch_page(self._next_page_state)
        logger.info(f"cursor finished fetching page #{self._pages_retrieved + 1}")
        return self._ingest_page(page)

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        while not self._buffer:
            if not self.advance():
                raise StopIteration
        return self._next_from_buffer()

    def to_list(self) -> list[T]:
        """Drain all remaining results into a list."""
        return list(self)

    def map(self, mapper: Callable[[T], TNEW]) -> Cursor[TRAW, TNEW]:
        """
        Return a new cursor applying a further mapping to the items.
        Only possible on a cursor that has not fetched anything yet.
        """

        if self._state != CursorState.IDLE:
            raise CursorException(
                text="Cannot map a cursor that has already started.",
                cursor_state=self._state.value,
            )
        old_mapper = self._mapper

        def _composed(item: TRAW) -> TNEW:
            if old_mapper is None:
                return mapper(cast(T, item))
            return mapper(old_mapper(item))

        return Cursor(fetch_page=self._fetch_page, mapper=_composed)


class AsyncCursor(_BaseCursor[TRAW, T]):
    """
    The asynchronous counterpart of `Cursor`: pages are awaited and iteration
    is done with `async for`.

    Args:
        fetch_page: a coroutine function that, given a page state (None for
            the first page), returns a FindPage.
        mapper: an optional function to apply to each item.

    Example:
        >>> cursor = my_async_coll.find({"genre": "fantasy"})
        >>> async for doc in cursor:
        ...     print(doc["title"])
    """

    def __init__(
        self,
        fetch_page: Callable[[str | None], Awaitable[FindPage[TRAW]]],
        mapper: Callable[[TRAW], T] | None = None,
    ) -> None:
        super().__init__(mapper=mapper)
        self._fetch_page = fetch_page

    async def advance(self) -> bool:
        """
        Fetch the next page of results.

        Returns:
            True if a new, non-empty page has been loaded, False if there are
            no more results (from then on, no further requests are made).
        """

        if not self._should_fetch():
            return False
        logger.info(f"cursor fetching page #{self._pages_retrieved + 1}, async")
        page = await self._fetch_page(self._next_page_state)
        logger.info(f"cursor finished fetching page #{self._pages_retrieved + 1}, async")
        return self._ingest_page(page)

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        while not self._buffer:
            if not await self.advance():
                raise StopAsyncIteration
        return self._next_from_buffer()

    async def to_list(self) -> list[T]:
        """Drain all remaining results into a list."""
        return [item async for item in self]

    def map(self, mapper: Callable[[T], TNEW]) -> AsyncCursor[TRAW, TNEW]:
        """
        Return a new cursor applying a further mapping to the items.
        Only possible on a cursor that has not fetched anything yet.
        """

        if self._state != CursorState.IDLE:
            raise CursorException(
                text="Cannot map a cursor that has already started.",
                cursor_state=self._state.value,
            )
        old_mapper = self._mapper

        def _composed(item: TRAW) -> TNEW:
            if old_mapper is None:
                return mapper(cast(T, item))
            return mapper(old_mapper(item))

        return AsyncCursor(fetch_page=self._fetch_page, mapper=_composed)
