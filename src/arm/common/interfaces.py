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

from types import TracebackType
from typing import TYPE_CHECKING

from pure_interface import Interface

from .data import HTTPHeaderDict, HTTPResponse, RequestMethod

if TYPE_CHECKING:
    from arm.identity.data import AccessToken

__all__ = [
    "IAuthorizer",
    "ITokenCredential",
    "ITransport",
]


class ITransport(Interface):
    """The pipeline that moves requests over the wire.

    A transport owns connection pooling, TLS, connection retries and transport logging; the caller owns everything
    above that, including the status code of the response. Transports are opened and closed in matched pairs and
    release their resources on the last close, so one transport can be shared by many clients.
    """

    async def open(self) -> None:
        """Acquire a handle on the transport. Requests may be sent while at least one handle is held."""
        ...  # pragma: no cover

    async def close(self) -> None:
        """Release a handle acquired by `open()`. Resources are released with the last handle."""
        ...  # pragma: no cover

    async def __aenter__(self) -> ITransport:
        """Acquire a handle for the duration of an `async with` block."""
        ...

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        ...

    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        body: str | bytes | None = None,
        request_timeout: int | float | tuple[int | float, int | float] | None = None,
    ) -> HTTPResponse:
        """Send one request and return whatever response the service sends back.

        Redirects are never followed, because the `Authorization` header is bound to the endpoint.

        :param method: HTTP method.
        :param url: Absolute request URL, including the query.
        :param headers: Request headers.
        :param body: Serialized request body, if any.
        :param request_timeout: A total timeout in seconds, or a (connect, read) pair.

        :return: The response, with the body read in full.

        :raise TransportError: If no response could be received.
        """
        ...  # pragma: no cover


class ITokenCredential(Interface):
    """Interface for credential providers.

    A credential provider produces bearer tokens for a set of scopes. The client calls `get_token` once for every HTTP
    request it sends, and does not cache tokens itself. Implementations that want to avoid acquiring a new token for each
    request should cache tokens internally.
    """

    async def get_token(self, scopes: str) -> AccessToken:
        """Get an access token for the requested scopes.

        :param scopes: The required scopes, as a single space-separated string.

        :return: The access token.

        :raise Exception: Any error raised here is reported to the caller as an `AuthenticationError`.
        """
        ...  # pragma: no cover


class IAuthorizer(Interface):
    """Interface for authorizing HTTP requests.

    IAuthorizer is responsible for providing the headers that authorize an HTTP request. `get_default_headers` is
    called once per request.
    """

    async def get_default_headers(self) -> HTTPHeaderDict:
        """Get the headers that authorize a single HTTP request.

        :return: A header dictionary to be included in the HTTP request.

        :raise AuthenticationError: If the headers could not be produced.
        """
        ...  # pragma: no cover
