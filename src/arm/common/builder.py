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

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from .connector import APIConnector
from .data import PageModel, RequestDescriptor
from .pager import ItemIterator, PageIterator, PagerResult, PagerState

__all__ = ["RequestBuilder"]

T = TypeVar("T")
P = TypeVar("P", bound=PageModel)

_Timeout = int | float | tuple[int | float, int | float] | None


class RequestBuilder(Generic[T]):
    """Configures the optional parts of a single operation, then executes it.

    Setters return the builder so that calls can be chained. The request itself is held as an immutable
    `RequestDescriptor`, so a pager created from the builder is not affected by later changes to the builder.
    """

    def __init__(
        self,
        connector: APIConnector,
        descriptor: RequestDescriptor,
        response_types_map: Mapping[str, type[T]] | None = None,
        parse_error_code: bool = True,
    ) -> None:
        """
        :param connector: The connector used to send requests.
        :param descriptor: The descriptor of the first request.
        :param response_types_map: Mapping of expected status codes to response types, for `send()`.
        :param parse_error_code: Whether `send()` reads the structured service error code from error responses.
        """
        self._connector = connector
        self._descriptor = descriptor
        self._response_types_map = response_types_map
        self._parse_error_code = parse_error_code
        self._request_timeout: _Timeout = None

    @property
    def descriptor(self) -> RequestDescriptor:
        """The descriptor of the request, as currently configured."""
        return self._descriptor

    def query(self, **params: Any) -> RequestBuilder[T]:
        """Set optional query parameters. A value of None removes the parameter."""
        self._descriptor = self._descriptor.with_query(**params)
        return self

    def header(self, name: str, value: str) -> RequestBuilder[T]:
        """Set an operation specific request header."""
        self._descriptor = self._descriptor.with_headers(**{name: value})
        return self

    def body(self, body: object | None) -> RequestBuilder[T]:
        """Set the JSON body of the first request."""
        self._descriptor = self._descriptor.with_body(body)
        return self

    def timeout(self, request_timeout: _Timeout) -> RequestBuilder[T]:
        """Set the timeout for each request, as a total or as a (connection, read) pair."""
        self._request_timeout = request_timeout
        return self

    async def send(self) -> T:
        """Send the request once and decode the response.

        :return: The decoded response.

        :raise HttpResponseError: If the response status is not one of the expected status codes.
        :raise DecodeError: If the response body could not be decoded.
        """
        return await self._connector.execute(
            self._descriptor,
            self._response_types_map,
            parse_error_code=self._parse_error_code,
            request_timeout=self._request_timeout,
        )

    def pager(self, page_type: type[P]) -> PageIterator[P]:
        """Create a page iterator for a list operation.

        The first page is fetched with the configured descriptor. Every following page is fetched from the server
        supplied continuation link, with the same method and headers, but without the original query parameters or
        body. Only HTTP 200 is a successful page response.

        :param page_type: The page model to decode each response into.

        :return: A page iterator. No request is sent until the iterator is advanced.
        """
        connector = self._connector
        descriptor = self._descriptor
        request_timeout = self._request_timeout

        async def make_request(state: PagerState) -> PagerResult[P]:
            request = descriptor if state.is_initial else descriptor.continue_at(state.continuation)
            page = await connector.execute(
                request, {"200": page_type}, parse_error_code=False, request_timeout=request_timeout
            )
            return PagerResult.from_page(page)

        return PageIterator.from_callback(make_request)

    def items(self, page_type: type[PageModel[T]]) -> ItemIterator[T]:
        """Create an item iterator for a list operation. See `pager()`."""
        return ItemIterator(self.pager(page_type))
