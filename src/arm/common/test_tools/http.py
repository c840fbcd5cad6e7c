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

import json
import unittest
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any
from unittest import mock

from arm.identity.data import AccessToken

from ..client import Client
from ..data import HTTPHeaderDict, HTTPResponse, RequestMethod
from ..interfaces import ITokenCredential, ITransport
from .consts import ACCESS_TOKEN, BASE_URL

_Timeout = int | float | tuple[int | float, int | float] | None


class TestHTTPHeaderDict(HTTPHeaderDict):
    """HTTPHeaderDict with an unmasked repr, so that a failed header assertion shows the token that was sent."""

    __test__ = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self.items())!r})"


class MockResponse(mock.Mock):
    """A canned HTTPResponse, returned by TestTransport."""

    def __init__(
        self,
        status_code: int,
        reason: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        content: str = "",
    ):
        """
        :param status_code: HTTP status code.
        :param reason: Response reason.
        :param headers: Response headers.
        :param body: Raw response body. Takes precedence over `content`.
        :param content: Response body as text, encoded as UTF-8.
        """
        super().__init__(spec=HTTPResponse)
        self.status = status_code
        self.reason = reason
        self.headers = TestHTTPHeaderDict(headers)
        self.data = content.encode("utf-8") if body is None else body
        self.getheader = mock.Mock(side_effect=lambda name, default=None: self.headers.get(name, default))
        self.getheaders = mock.Mock(side_effect=self.headers.copy)

    @classmethod
    def page(cls, value: Sequence[Any], next_link: str | None = None) -> "MockResponse":
        """A 200 response holding one page of a list operation."""
        content: dict[str, Any] = {"value": list(value)}
        if next_link is not None:
            content["nextLink"] = next_link
        return cls(200, reason="OK", headers={"Content-Type": "application/json"}, content=json.dumps(content))


class AbstractTestRequestHandler(ABC):
    """Computes responses from requests, for tests that need more than a fixed sequence of responses."""

    @abstractmethod
    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> MockResponse:
        """Called in place of ITransport.request()."""
        ...  # pragma: no cover

    @staticmethod
    def not_found() -> MockResponse:
        return MockResponse(status_code=404, reason="Not Found")

    @staticmethod
    def bad_request() -> MockResponse:
        return MockResponse(status_code=400, reason="Bad Request")


class TestTransport(mock.AsyncMock):
    """An ITransport that records requests and replies with canned responses.

    Until told otherwise, every request is answered with 503 Service Unavailable.
    """

    open: mock.AsyncMock
    close: mock.AsyncMock
    request: mock.AsyncMock

    def __init__(self, *, base_url: str = BASE_URL) -> None:
        super().__init__(spec=ITransport)
        self._base_url = base_url.rstrip("/")
        self.request.return_value = MockResponse(status_code=503, reason="Service Unavailable")

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        # Not urljoin: "runs:query" would be read as a URL scheme.
        return f"{self._base_url}/{path.lstrip('/')}"

    @contextmanager
    def set_http_response(
        self,
        status_code: int,
        content: str = "",
        reason: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[MockResponse]:
        """Answer every request with the same response until the context exits.

        :yields: The response.
        """
        saved = self.request.return_value, self.request.side_effect
        response = MockResponse(status_code=status_code, content=content, reason=reason, headers=headers)
        self.request.return_value, self.request.side_effect = response, None
        try:
            yield response
        finally:
            self.request.return_value, self.request.side_effect = saved

    def set_http_responses(self, *responses: MockResponse | Exception) -> None:
        """Answer the next requests with these responses, one each. An exception is raised instead of returned."""
        self.request.side_effect = list(responses)

    def set_request_handler(self, handler: AbstractTestRequestHandler) -> None:
        """Answer every request with the handler."""
        self.request.side_effect = handler.request

    def _expected_call(
        self,
        method: RequestMethod,
        path: str,
        headers: Mapping[str, str] | None,
        body: str | bytes | None,
        request_timeout: _Timeout,
    ) -> dict[str, Any]:
        return {
            "method": method,
            "url": self._url(path),
            "headers": TestHTTPHeaderDict(headers or {}),
            "body": body,
            "request_timeout": request_timeout,
        }

    def assert_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> None:
        """Assert that the most recent request matches exactly.

        :param method: HTTP method.
        :param path: Path and query relative to the base URL, or an absolute URL.
        :param headers: All request headers.
        :param body: Serialized request body.
        :param request_timeout: Timeout passed to the transport.
        """
        self.request.assert_called_with(**self._expected_call(method, path, headers, body, request_timeout))

    def assert_any_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> None:
        """Like `assert_request_made()`, but for any request so far."""
        self.request.assert_any_call(**self._expected_call(method, path, headers, body, request_timeout))

    def requested_urls(self) -> list[str]:
        """The URL of every request so far, in order."""
        return [call.kwargs["url"] for call in self.request.await_args_list]

    def assert_n_requests_made(self, n: int) -> None:
        assert self.request.await_count == n, f"Expected {n} request(s), got {self.request.await_count}"

    def assert_no_requests(self) -> None:
        self.request.assert_not_called()


class TestCredential(mock.AsyncMock):
    """An ITokenCredential that issues a fixed token, or fails on demand."""

    get_token: mock.AsyncMock

    def __init__(self, token: str = ACCESS_TOKEN) -> None:
        super().__init__(spec=ITokenCredential)
        self.token = token
        self.get_token.side_effect = self._issue

    async def _issue(self, scopes: str) -> AccessToken:
        return AccessToken(token=self.token)

    def set_next_access_token(self, token: str) -> None:
        """Issue this token from now on."""
        self.token = token

    def fail_with(self, *errors: Exception | None) -> None:
        """Raise these errors from the next token requests, in order. None issues a token instead.

        Once the errors are used up, tokens are issued again.
        """
        outcomes = iter(errors)

        async def get_token(scopes: str) -> AccessToken:
            if (error := next(outcomes, None)) is not None:
                raise error
            return await self._issue(scopes)

        self.get_token.side_effect = get_token


class TestWithClient(unittest.IsolatedAsyncioTestCase):
    """Test case with a Client wired to a TestTransport and a TestCredential."""

    def setUp(self) -> None:
        self.transport = TestTransport()
        self.credential = TestCredential()
        self.client = Client.builder(self.credential).endpoint(BASE_URL).transport(self.transport).build()

    def _with_authorization(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.credential.token}", **(headers or {})}

    def assert_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> None:
        """Assert that the most recent request matches exactly. See `TestTransport.assert_request_made()`.

        :param headers: Operation specific headers. The bearer header of the current test token is added.
        """
        self.transport.assert_request_made(method, path, self._with_authorization(headers), body, request_timeout)

    def assert_any_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        request_timeout: _Timeout = None,
    ) -> None:
        """Like `assert_request_made()`, but for any request so far."""
        self.transport.assert_any_request_made(method, path, self._with_authorization(headers), body, request_timeout)
