#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

"""Lazy, pull-based iteration over paginated list responses.

A `PageIterator` fetches one page per advancement, strictly in server order, and never fetches ahead of the consumer.
An `ItemIterator` flattens the pages of a `PageIterator` into a sequence of items.
"""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from arm import logging

logger = logging.getLogger("pager")

__all__ = [
    "ItemIterator",
    "PageIterator",
    "PagerResult",
    "PagerState",
]

T = TypeVar("T")
P = TypeVar("P")


class _Paged(Protocol[T]):
    def items(self) -> Iterable[T]: ...


@dataclass(frozen=True)
class PagerState:
    """The position of a pager, passed to the callback that fetches the next page."""

    continuation: str | None = None
    """The continuation cursor of the next page, or None if the first page has not been fetched yet."""

    @property
    def is_initial(self) -> bool:
        """Whether the next page is the first page."""
        return self.continuation is None

    @classmethod
    def initial(cls) -> PagerState:
        return cls()

    @classmethod
    def more(cls, continuation: str) -> PagerState:
        return cls(continuation=continuation)


@dataclass(frozen=True)
class PagerResult(Generic[P]):
    """The outcome of fetching a single page: the page itself and, if there are more pages, the next cursor."""

    page: P
    continuation: str | None = None

    @property
    def is_done(self) -> bool:
        """Whether this is the last page."""
        return not self.continuation

    @classmethod
    def more(cls, page: P, continuation: str) -> PagerResult[P]:
        return cls(page=page, continuation=continuation)

    @classmethod
    def done(cls, page: P) -> PagerResult[P]:
        return cls(page=page)

    @classmethod
    def from_page(cls, page: P) -> PagerResult[P]:
        """Build a result from a page that knows its own continuation cursor.

        :param page: A decoded page with a `continuation()` method, such as a `PageModel`.

        :return: A result that continues if the page carries a non-empty cursor.
        """
        continuation = page.continuation()
        return cls.more(page, continuation) if continuation else cls.done(page)

    @classmethod
    def from_response_header(cls, page: P, headers: Mapping[str, str], header_name: str) -> PagerResult[P]:
        """Build a result from a page whose continuation cursor is returned in a response header.

        :param page: The decoded page.
        :param headers: The response headers.
        :param header_name: The name of the header that carries the cursor.

        :return: A result that continues if the header is present and not empty.
        """
        continuation = headers.get(header_name)
        return cls.more(page, continuation) if continuation else cls.done(page)


class _Status(enum.Enum):
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class PageIterator(AsyncIterator[P]):
    """An async iterator over the pages of a paginated list response.

    Each advancement awaits exactly one call to `make_request`. The cursor returned with a page is only stored once the
    page has been fetched and decoded, so a cancelled advancement can be retried without skipping a page. The iterator
    is single pass: once it is exhausted, or once a fetch has failed, it yields nothing further.

    Only one advancement may be in flight at a time; advancing again before the previous one completes raises
    `RuntimeError`, as it does for an async generator.
    """

    def __init__(
        self,
        make_request: Callable[[PagerState], Awaitable[PagerResult[P]]],
        state: PagerState | None = None,
    ) -> None:
        """
        :param make_request: Callback that fetches the page at the given state.
        :param state: The state to start from. Defaults to the first page.
        """
        self._make_request = make_request
        self._state = state or PagerState.initial()
        self._status = _Status.READY
        self._pages_fetched = 0
        self._running = False

    @classmethod
    def from_callback(cls, make_request: Callable[[PagerState], Awaitable[PagerResult[P]]]) -> PageIterator[P]:
        """Create a page iterator that starts at the first page."""
        return cls(make_request)

    @property
    def continuation_token(self) -> str | None:
        """The cursor of the next page to be fetched.

        This is None before the first page has been fetched and after the last page has been fetched. A saved token can
        be used to resume iteration with `with_continuation_token()`.
        """
        if self._status is not _Status.READY:
            return None
        return self._state.continuation

    def with_continuation_token(self, token: str) -> PageIterator[P]:
        """Create a new page iterator that resumes at a saved continuation cursor.

        :param token: A value previously read from `continuation_token`.

        :return: A fresh iterator whose first advancement fetches the page at `token`.
        """
        return PageIterator(self._make_request, PagerState.more(token))

    @property
    def exhausted(self) -> bool:
        """Whether the last page has been yielded."""
        return self._status is _Status.EXHAUSTED

    @property
    def failed(self) -> bool:
        """Whether iteration stopped because a page could not be fetched."""
        return self._status is _Status.FAILED

    def __aiter__(self) -> PageIterator[P]:
        return self

    async def __anext__(self) -> P:
        if self._status is not _Status.READY:
            raise StopAsyncIteration

        if self._running:
            raise RuntimeError("anext(): page iterator is already running")

        logger.debug(f"Fetching page {self._pages_fetched + 1} (continuation={self._state.continuation!r})")
        self._running = True
        try:
            result = await self._make_request(self._state)
        except Exception:
            self._status = _Status.FAILED
            raise
        finally:
            self._running = False

        self._pages_fetched += 1
        if result.is_done:
            self._status = _Status.EXHAUSTED
        else:
            self._state = PagerState.more(result.continuation)
        return result.page


class ItemIterator(AsyncIterator[T]):
    """An async iterator over the items of every page of a paginated list response, in server order."""

    def __init__(self, pages: PageIterator[_Paged[T]]) -> None:
        """
        :param pages: The page iterator to flatten. Every page must provide an `items()` method.
        """
        self._pages = pages
        self._buffer: deque[T] = deque()

    def by_page(self) -> PageIterator[_Paged[T]]:
        """Get the underlying page iterator.

        Pages that have already been consumed through this item iterator are not yielded again.
        """
        return self._pages

    def __aiter__(self) -> ItemIterator[T]:
        return self

    async def __anext__(self) -> T:
        while not self._buffer:
            page = await self._pages.__anext__()
            self._buffer.extend(page.items())
        return self._buffer.popleft()
