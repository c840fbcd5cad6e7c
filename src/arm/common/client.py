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

from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import TypeVar

from arm.aio import AioTransport
from arm.identity import BearerTokenAuthorizer

from .builder import RequestBuilder
from .connector import APIConnector
from .data import RequestDescriptor
from .exceptions import ClientValueError
from .interfaces import ITokenCredential, ITransport
from .utils import BackoffIncremental, BackoffMethod

__all__ = [
    "DEFAULT_ENDPOINT",
    "DEFAULT_USER_AGENT",
    "Client",
    "ClientBuilder",
]

T = TypeVar("T")

DEFAULT_ENDPOINT = "https://management.azure.com"
"""The public cloud resource-management endpoint."""

DEFAULT_USER_AGENT = "arm-clients/0.1.0"


class Client:
    """The shared execution context of every operation: endpoint, credential, scopes and transport.

    A client is immutable. It may be shared by any number of service clients, request builders and pagers, including
    concurrently running ones. Use `Client.builder()` to create one.
    """

    __slots__ = ("_endpoint", "_credential", "_scopes", "_transport", "_connector")

    def __init__(
        self,
        endpoint: str,
        credential: ITokenCredential,
        scopes: Sequence[str],
        transport: ITransport,
    ) -> None:
        """
        :param endpoint: The service endpoint.
        :param credential: The credential used to acquire a token for every request.
        :param scopes: The token scopes, joined by spaces when a token is requested.
        :param transport: The transport pipeline.
        """
        self._endpoint = endpoint.rstrip("/")
        self._credential = credential
        self._scopes = tuple(scopes)
        self._transport = transport
        self._connector = APIConnector(self._endpoint, transport, BearerTokenAuthorizer(credential, self._scopes))

    @staticmethod
    def builder(credential: ITokenCredential) -> ClientBuilder:
        """Start building a client with the given credential."""
        return ClientBuilder(credential)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def credential(self) -> ITokenCredential:
        return self._credential

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    @property
    def transport(self) -> ITransport:
        return self._transport

    @property
    def connector(self) -> APIConnector:
        """The connector that sends authenticated requests to the endpoint."""
        return self._connector

    def request(
        self,
        descriptor: RequestDescriptor,
        response_types_map: Mapping[str, type[T]] | None = None,
        parse_error_code: bool = True,
    ) -> RequestBuilder[T]:
        """Create a request builder for a single operation.

        :param descriptor: The descriptor of the first request.
        :param response_types_map: Mapping of expected status codes to response types.
        :param parse_error_code: Whether to read the structured service error code from error responses.

        :return: The request builder.
        """
        return RequestBuilder(self._connector, descriptor, response_types_map, parse_error_code)

    async def __aenter__(self) -> Client:
        await self._connector.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self._connector.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(endpoint={self._endpoint!r}, scopes={self._scopes!r})"


class ClientBuilder:
    """Collects the configuration of a `Client`.

    Nothing is sent over the network while a client is being built.
    """

    def __init__(self, credential: ITokenCredential) -> None:
        """
        :param credential: The credential used to acquire a token for every request. Required.
        """
        if credential is None:
            raise ClientValueError("A credential is required")
        self._credential = credential
        self._endpoint = DEFAULT_ENDPOINT
        self._scopes: tuple[str, ...] | None = None
        self._transport: ITransport | None = None
        self._user_agent = DEFAULT_USER_AGENT
        self._max_attempts = 3
        self._backoff_method: BackoffMethod = BackoffIncremental(2)

    def endpoint(self, endpoint: str) -> ClientBuilder:
        """Override the service endpoint."""
        if not endpoint.startswith(("http://", "https://")):
            raise ClientValueError(f"Invalid endpoint: {endpoint!r}")
        self._endpoint = endpoint.rstrip("/")
        return self

    def scopes(self, scopes: Sequence[str]) -> ClientBuilder:
        """Set the token scopes explicitly. Defaults to the endpoint followed by '/'."""
        if isinstance(scopes, str):
            scopes = [scopes]
        if len(scopes) == 0:
            raise ClientValueError("At least one scope is required")
        self._scopes = tuple(scopes)
        return self

    def retry(self, max_attempts: int, backoff_method: BackoffMethod | None = None) -> ClientBuilder:
        """Configure the connection retry policy of the default transport."""
        if max_attempts < 1:
            raise ClientValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        if backoff_method is not None:
            self._backoff_method = backoff_method
        return self

    def user_agent(self, user_agent: str) -> ClientBuilder:
        """Set the `User-Agent` of the default transport."""
        self._user_agent = user_agent
        return self

    def transport(self, transport: ITransport) -> ClientBuilder:
        """Use a custom transport. The retry policy and user agent of the default transport are then ignored."""
        self._transport = transport
        return self

    def build(self) -> Client:
        """Build the client."""
        scopes = self._scopes or (self._endpoint + "/",)
        transport = self._transport
        if transport is None:
            transport = AioTransport(
                user_agent=self._user_agent,
                max_attempts=self._max_attempts,
                backoff_method=self._backoff_method,
            )
        return Client(self._endpoint, self._credential, scopes, transport)
